"""Tests for the OpenAI inference adapter."""

import asyncio
import json

import pytest

from allergen_scanner.adapters.openai_inference_client import OpenAIInferenceClient


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str) -> None:
        self.responses = _FakeResponses(output_text)


def test_openai_client_sends_image_and_parses_output() -> None:
    fake = _FakeOpenAI(json.dumps({"extracted_text": "Oats"}))
    client = OpenAIInferenceClient(client=fake)

    result = asyncio.run(
        client.generate(
            model="gpt-5.2",
            reasoning_effort="low",
            store=False,
            name="extract_ingredients",
            prompt="Read the label",
            schema={"type": "object"},
            image_data_url="data:image/jpeg;base64,ZmFrZQ==",
        )
    )

    assert result == {"extracted_text": "Oats"}
    payload = fake.responses.last_payload
    assert payload is not None
    content = payload["input"][0]["content"]
    assert content[1] == {
        "type": "input_image",
        "image_url": "data:image/jpeg;base64,ZmFrZQ==",
    }
    assert payload["text"]["format"]["name"] == "extract_ingredients"
    assert payload["reasoning"] == {"effort": "low"}


def test_openai_client_text_only_request() -> None:
    fake = _FakeOpenAI(json.dumps({"allergen_detected": False}))
    client = OpenAIInferenceClient(client=fake)

    asyncio.run(
        client.generate(
            model="gpt-5.2",
            reasoning_effort=None,
            store=False,
            name="detect_allergens",
            prompt="Check allergens",
            schema={"type": "object"},
        )
    )

    payload = fake.responses.last_payload
    assert payload is not None
    assert len(payload["input"][0]["content"]) == 1
    assert "reasoning" not in payload


def test_openai_client_rejects_empty_output() -> None:
    client = OpenAIInferenceClient(client=_FakeOpenAI(""))

    with pytest.raises(RuntimeError):
        asyncio.run(
            client.generate(
                model="gpt-5.2",
                reasoning_effort=None,
                store=False,
                name="classify_food",
                prompt="Classify",
                schema={"type": "object"},
            )
        )
