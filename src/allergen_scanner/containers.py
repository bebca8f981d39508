"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from allergen_scanner.adapters.memory_profile_repository import (
    InMemoryProfileRepository,
)
from allergen_scanner.adapters.openai_inference_client import OpenAIInferenceClient
from allergen_scanner.config import Settings, parse_critical_allergens
from allergen_scanner.services.allergens import (
    AllergenEvaluator,
    InferenceAllergenEvaluator,
    RuleBasedAllergenEvaluator,
)
from allergen_scanner.services.classification import ClassificationService
from allergen_scanner.services.foods import FoodReferenceStore, load_food_records
from allergen_scanner.services.inference import InferenceClient, InferenceOptions
from allergen_scanner.services.profiles import ProfileService
from allergen_scanner.services.recommendations import RecommendationService
from allergen_scanner.services.scans import ScanOrchestrator
from allergen_scanner.services.text_extraction import TextExtractionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_store: FoodReferenceStore
    profile_service: ProfileService
    rule_evaluator: RuleBasedAllergenEvaluator
    evaluator: AllergenEvaluator
    scan_orchestrator: ScanOrchestrator
    recommendation_service: RecommendationService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    openai_client = OpenAIInferenceClient.create(resolved_settings.openai_api_key)

    async def close_resources() -> None:
        await openai_client.close()

    return assemble_container(resolved_settings, openai_client, close_resources)


def assemble_container(
    settings: Settings,
    client: InferenceClient,
    close_resources: Callable[[], Awaitable[None]],
) -> AppContainer:
    """Wire services around an inference client."""
    options = InferenceOptions(
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )
    critical = parse_critical_allergens(settings.critical_allergens)
    food_store = FoodReferenceStore.from_records(
        load_food_records(settings.food_data_path)
    )
    rule_evaluator = RuleBasedAllergenEvaluator(critical_allergens=critical)
    evaluator: AllergenEvaluator
    if settings.allergen_evaluator == "inference":
        evaluator = InferenceAllergenEvaluator(
            client=client, options=options, critical_allergens=critical
        )
    else:
        evaluator = rule_evaluator
    scan_orchestrator = ScanOrchestrator(
        classifier=ClassificationService(client=client, options=options),
        text_extractor=TextExtractionService(client=client, options=options),
        evaluator=evaluator,
        food_store=food_store,
        timeout_seconds=settings.inference_timeout_seconds,
        debug_errors=settings.environment == "local",
    )
    recommendation_service = RecommendationService(
        client=client, options=options, evaluator=rule_evaluator
    )
    return AppContainer(
        settings=settings,
        food_store=food_store,
        profile_service=ProfileService(InMemoryProfileRepository()),
        rule_evaluator=rule_evaluator,
        evaluator=evaluator,
        scan_orchestrator=scan_orchestrator,
        recommendation_service=recommendation_service,
        close_resources=close_resources,
    )
