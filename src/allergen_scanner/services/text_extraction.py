"""Ingredient text extraction from label photos."""

from dataclasses import dataclass

from pydantic import BaseModel

from allergen_scanner.domain.scans import EncodedImage
from allergen_scanner.services.inference import (
    InferenceClient,
    InferenceOptions,
    request_structured,
    validate_payload,
)

EXTRACTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"extracted_text": {"type": "string"}},
    "required": ["extracted_text"],
    "additionalProperties": False,
}

EXTRACTION_PROMPT = (
    "Read the product label in the image and return the ingredient list exactly "
    "as printed, separated by commas. If no ingredient text is legible, return "
    "an empty string."
)


class TextExtract(BaseModel):
    """Structured output of the extraction call."""

    extracted_text: str


@dataclass
class TextExtractionService:
    """Extracts free-text ingredients from label photos."""

    client: InferenceClient
    options: InferenceOptions

    async def extract_text(self, image: EncodedImage) -> str:
        """Return the label's ingredient text, or an empty string."""
        raw = await request_structured(
            self.client,
            self.options,
            name="extract_ingredients",
            prompt=EXTRACTION_PROMPT,
            schema=EXTRACTION_SCHEMA,
            image_data_url=image.to_data_uri(),
        )
        extract = validate_payload(TextExtract, raw, name="extract_ingredients")
        return extract.extracted_text.strip()
