"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from allergen_scanner.api.models import (
    AllergenCheckPayload,
    CustomAllergenPayload,
    PhotoPayload,
    ProfilePayload,
)
from allergen_scanner.app_logging import configure_logging
from allergen_scanner.containers import AppContainer
from allergen_scanner.domain.allergens import COMMON_ALLERGENS, AllergenVerdict
from allergen_scanner.domain.errors import InferenceFailure, PreconditionError
from allergen_scanner.domain.foods import FoodRecord
from allergen_scanner.domain.profiles import AllergyProfile
from allergen_scanner.domain.scans import EncodedImage, ScanContext, ScanResult

ANONYMOUS_SESSION_PREFIX = "anonymous-"


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(PreconditionError)
    async def precondition_error(
        request: Request, exc: PreconditionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"error": str(exc)},
        )

    @app.exception_handler(InferenceFailure)
    async def inference_failure(
        request: Request, exc: InferenceFailure
    ) -> JSONResponse:
        logger.error("Inference failed for %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Analysis failed. Please try again."},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/allergens/common")
    async def common_allergens() -> dict[str, list[str]]:
        """List the allergens offered when building a profile."""
        return {"allergens": list(COMMON_ALLERGENS)}

    @app.get("/foods/{name}")
    async def food_detail(name: str, request: Request) -> dict[str, object]:
        """Return the reference record for a food."""
        state_container: AppContainer = request.app.state.container
        record = state_container.food_store.lookup(name)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _format_food(record)

    @app.get("/profile")
    async def get_profile(
        request: Request, x_session_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        """Return the session's allergy profile."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.get_profile(
            _session_id(x_session_id)
        )
        return _format_profile(profile)

    @app.put("/profile")
    async def put_profile(
        payload: ProfilePayload,
        request: Request,
        x_session_id: str = Header(),
    ) -> dict[str, object]:
        """Replace the session's allergy profile."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.update_profile(
            x_session_id,
            allergens=payload.allergens,
            dietary_preferences=payload.dietary_preferences,
            cuisine_preference=payload.cuisine_preference,
            nutrition_goals=payload.nutrition_goals,
        )
        return _format_profile(profile)

    @app.post("/profile/allergens")
    async def add_allergen(
        payload: CustomAllergenPayload,
        request: Request,
        x_session_id: str = Header(),
    ) -> dict[str, object]:
        """Add a custom allergen to the session's profile."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.add_custom_allergen(
            x_session_id, payload.allergen
        )
        return _format_profile(profile)

    @app.post("/allergens/check")
    async def check_allergens(
        payload: AllergenCheckPayload,
        request: Request,
        x_session_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Check free-text ingredients against a set of allergens."""
        state_container: AppContainer = request.app.state.container
        allergens = payload.allergens
        if allergens is None:
            allergens = state_container.profile_service.get_profile(
                _session_id(x_session_id)
            ).allergens
        if not allergens:
            raise PreconditionError("No allergens to check against.")
        verdict = await state_container.evaluator.evaluate(
            payload.ingredients, allergens
        )
        return _format_verdict(verdict)

    @app.post("/scans/food")
    async def scan_food(
        payload: PhotoPayload,
        request: Request,
        x_session_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Identify a food photo and check it against the session's profile."""
        state_container: AppContainer = request.app.state.container
        image = EncodedImage.from_data_uri(payload.photo_data_uri)
        context = _scan_context(state_container, _session_id(x_session_id))
        result = await state_container.scan_orchestrator.scan_food(context, image)
        return _format_scan(result)

    @app.post("/scans/label")
    async def scan_label(
        payload: PhotoPayload,
        request: Request,
        x_session_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Read an ingredient label and check it against the session's profile."""
        state_container: AppContainer = request.app.state.container
        image = EncodedImage.from_data_uri(payload.photo_data_uri)
        context = _scan_context(state_container, _session_id(x_session_id))
        result = await state_container.scan_orchestrator.scan_label(context, image)
        return _format_scan(result)

    @app.delete("/scans/current")
    async def cancel_scan(
        request: Request, x_session_id: str | None = Header(default=None)
    ) -> dict[str, bool]:
        """Discard the session's in-flight scan, if any."""
        state_container: AppContainer = request.app.state.container
        cancelled = state_container.scan_orchestrator.cancel(
            _session_id(x_session_id)
        )
        return {"cancelled": cancelled}

    @app.post("/recommendations")
    async def recommendations(
        request: Request, x_session_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        """Recommend dishes that avoid the session's allergens."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.get_profile(
            _session_id(x_session_id)
        )
        result = await state_container.recommendation_service.recommend(profile)
        return {
            "recommendations": [
                {
                    "name": dish.name,
                    "description": dish.description,
                    "reasoning": dish.reasoning,
                    "dataAiHint": dish.data_ai_hint,
                    "typicalIngredients": dish.typical_ingredients,
                }
                for dish in result.recommendations
            ],
            "overallReasoning": result.overall_reasoning,
        }

    return app


def _session_id(header: str | None) -> str:
    """Use the client's session, or a fresh one for anonymous requests."""
    if header and header.strip():
        return header.strip()
    return f"{ANONYMOUS_SESSION_PREFIX}{uuid4().hex}"


def _scan_context(container: AppContainer, session_id: str) -> ScanContext:
    """Snapshot the session's profile for one scan."""
    return ScanContext(
        session_id=session_id,
        profile=container.profile_service.get_profile(session_id),
    )


def _format_verdict(verdict: AllergenVerdict) -> dict[str, object]:
    """Render a verdict in the allergen-evaluation boundary shape."""
    return {
        "allergenDetected": verdict.allergen_detected,
        "alert": verdict.risk_level.value,
        "detectedAllergens": list(verdict.detected_allergens),
    }


def _format_scan(result: ScanResult) -> dict[str, object]:
    """Render a scan result; every outcome keeps the same keys."""
    classification = result.classification
    return {
        "mode": result.mode.value,
        "outcome": result.outcome.value,
        "classification": (
            classification.model_dump(by_alias=True) if classification else None
        ),
        "ingredients": list(result.ingredients),
        "extractedText": result.extracted_text,
        "verdict": _format_verdict(result.verdict) if result.verdict else None,
        "error": result.error,
    }


def _format_profile(profile: AllergyProfile) -> dict[str, object]:
    return {
        "allergens": profile.allergens,
        "dietaryPreferences": profile.dietary_preferences,
        "cuisinePreference": profile.cuisine_preference,
        "nutritionGoals": profile.nutrition_goals,
    }


def _format_food(record: FoodRecord) -> dict[str, object]:
    return {
        "name": record.name,
        "ingredients": list(record.ingredients),
        "nutritionalData": record.nutritional_summary,
        "region": record.region,
        "history": record.history_note,
        "dataAiHint": record.image_hint,
    }
