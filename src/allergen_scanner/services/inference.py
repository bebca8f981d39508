"""Shared boundary for calls to the multimodal inference provider."""

import logging
from dataclasses import dataclass
from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from allergen_scanner.domain.errors import InferenceFailure

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_logger = logging.getLogger(__name__)


class InferenceClient(Protocol):
    """Interface for structured-output LLM calls."""

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
        """Return JSON output matching the given schema."""


@dataclass(frozen=True)
class InferenceOptions:
    """Model settings shared by every inference-backed service."""

    model: str
    reasoning_effort: str | None = None
    store: bool = False


async def request_structured(  # noqa: PLR0913
    client: InferenceClient,
    options: InferenceOptions,
    *,
    name: str,
    prompt: str,
    schema: dict[str, object],
    image_data_url: str | None = None,
) -> dict[str, object]:
    """Call the client, converting any provider error to InferenceFailure."""
    try:
        return await client.generate(
            model=options.model,
            reasoning_effort=options.reasoning_effort,
            store=options.store,
            name=name,
            prompt=prompt,
            schema=schema,
            image_data_url=image_data_url,
        )
    except InferenceFailure:
        raise
    except Exception as exc:
        _logger.warning("Inference call %s failed: %s", name, exc)
        raise InferenceFailure(f"Inference call {name} failed") from exc


def validate_payload(model_type: type[_ModelT], raw: object, *, name: str) -> _ModelT:
    """Validate a raw payload, raising InferenceFailure on schema mismatch."""
    try:
        return model_type.model_validate(raw)
    except ValidationError as exc:
        _logger.warning("Inference call %s returned an invalid payload", name)
        raise InferenceFailure(f"Inference call {name} returned invalid data") from exc
