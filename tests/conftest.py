"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from allergen_scanner.config import Settings
from allergen_scanner.containers import AppContainer, assemble_container
from allergen_scanner.domain.errors import InferenceFailure
from allergen_scanner.domain.profiles import AllergyProfile
from allergen_scanner.domain.scans import EncodedImage, ScanContext
from allergen_scanner.services.inference import InferenceClient, InferenceOptions

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-image-bytes"


def classification_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "is_food": True,
        "classification": "Margherita Pizza",
        "confidence": 0.92,
        "alternative_suggestions": [],
        "food_details": None,
    }
    payload.update(overrides)
    return payload


@dataclass
class FakeInferenceClient(InferenceClient):
    """Fake inference client returning canned payloads per call name."""

    payloads: dict[str, object] = field(
        default_factory=lambda: {
            "classify_food": classification_payload(),
            "extract_ingredients": {"extracted_text": "Sugar, peanuts, salt"},
            "detect_allergens": {
                "allergen_detected": False,
                "alert": "SAFE",
                "detected_allergens": [],
            },
            "recommend_safe_foods": {
                "recommendations": [
                    {
                        "name": "Jollof Rice",
                        "description": "Smoky tomato rice.",
                        "reasoning": "Free of your allergens.",
                        "data_ai_hint": "jollof rice",
                        "typical_ingredients": ["Rice", "Tomatoes", "Onions"],
                    }
                ],
                "overall_reasoning": "Naturally allergen-free staples.",
            },
        }
    )
    failures: dict[str, Exception] = field(default_factory=dict)
    delay_seconds: float = 0.0
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        name: str,
        prompt: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        self.calls.append(
            {"name": name, "prompt": prompt, "image_data_url": image_data_url}
        )
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if name in self.failures:
            raise self.failures[name]
        if name not in self.payloads:
            raise InferenceFailure(f"No payload configured for {name}")
        return self.payloads[name]

    def call_names(self) -> list[str]:
        return [str(call["name"]) for call in self.calls]


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="openai-key", environment="test")


@pytest.fixture
def inference_client() -> FakeInferenceClient:
    return FakeInferenceClient()


@pytest.fixture
def options() -> InferenceOptions:
    return InferenceOptions(model="gpt-5.2", reasoning_effort="low")


@pytest.fixture
def image() -> EncodedImage:
    return EncodedImage.from_bytes(PNG_BYTES)


@pytest.fixture
def context() -> ScanContext:
    return ScanContext(
        session_id="session-1",
        profile=AllergyProfile(allergens=["Peanuts", "Milk (Dairy)"]),
    )


@pytest.fixture
def container(
    settings: Settings, inference_client: FakeInferenceClient
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return assemble_container(settings, inference_client, close_resources)
