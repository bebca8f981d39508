"""Tests for container wiring."""

import asyncio

from allergen_scanner.containers import assemble_container, build_container
from allergen_scanner.services.allergens import (
    InferenceAllergenEvaluator,
    RuleBasedAllergenEvaluator,
)
from tests.conftest import FakeInferenceClient


async def _noop() -> None:
    return None


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.scan_orchestrator is not None
    assert container.food_store.lookup("banku") is not None
    asyncio.run(container.close_resources())


def test_rule_evaluator_is_default(settings) -> None:
    container = assemble_container(settings, FakeInferenceClient(), _noop)

    assert isinstance(container.evaluator, RuleBasedAllergenEvaluator)
    assert container.scan_orchestrator.timeout_seconds == 30.0


def test_inference_evaluator_selected_by_config(settings) -> None:
    configured = settings.model_copy(
        update={"allergen_evaluator": "inference", "critical_allergens": "sesame"}
    )

    container = assemble_container(configured, FakeInferenceClient(), _noop)

    assert isinstance(container.evaluator, InferenceAllergenEvaluator)
    assert container.evaluator.critical_allergens == ("sesame",)
    assert container.rule_evaluator.critical_allergens == ("sesame",)
