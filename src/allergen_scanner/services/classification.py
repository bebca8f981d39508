"""Food classification via the inference provider."""

from dataclasses import dataclass

from allergen_scanner.domain.classification import (
    LOW_CONFIDENCE_THRESHOLD,
    MAX_ALTERNATIVE_SUGGESTIONS,
    NOT_FOOD_SENTINEL,
    ClassificationResult,
)
from allergen_scanner.domain.scans import EncodedImage
from allergen_scanner.services.inference import (
    InferenceClient,
    InferenceOptions,
    request_structured,
    validate_payload,
)

_NULLABLE_STRING: dict[str, object] = {"anyOf": [{"type": "string"}, {"type": "null"}]}

CLASSIFICATION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "is_food": {"type": "boolean"},
        "classification": {"type": "string"},
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
        "alternative_suggestions": {
            "type": "array",
            "items": {"type": "string"},
        },
        "food_details": {
            "anyOf": [
                {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "ingredients": {"type": "array", "items": {"type": "string"}},
                        "nutritional_data": _NULLABLE_STRING,
                        "region": _NULLABLE_STRING,
                        "history": _NULLABLE_STRING,
                        "data_ai_hint": _NULLABLE_STRING,
                    },
                    "required": [
                        "name",
                        "ingredients",
                        "nutritional_data",
                        "region",
                        "history",
                        "data_ai_hint",
                    ],
                    "additionalProperties": False,
                },
                {"type": "null"},
            ]
        },
    },
    "required": [
        "is_food",
        "classification",
        "confidence",
        "alternative_suggestions",
        "food_details",
    ],
    "additionalProperties": False,
}

CLASSIFICATION_PROMPT = (
    "You are an expert food classifier. Identify the food item in the image and "
    "provide a confidence level (0-1) for your classification.\n"
    "If the confidence level is below 0.7, suggest up to three alternative food "
    "item interpretations. If the confidence level is 0.7 or higher, return an "
    "empty list of alternative suggestions.\n"
    "If the image does not show food, set is_food to false, set classification "
    f'to "{NOT_FOOD_SENTINEL}", and leave food_details and '
    "alternative_suggestions empty.\n"
    "When you recognise the dish, fill food_details with its typical "
    "ingredients, a short nutritional summary, its region of origin, a brief "
    "history, and one or two keywords for illustrative imagery."
)


@dataclass
class ClassificationService:
    """Classifies food photos and normalises the result."""

    client: InferenceClient
    options: InferenceOptions

    async def classify(self, image: EncodedImage) -> ClassificationResult:
        """Classify the food shown in an image."""
        raw = await request_structured(
            self.client,
            self.options,
            name="classify_food",
            prompt=CLASSIFICATION_PROMPT,
            schema=CLASSIFICATION_SCHEMA,
            image_data_url=image.to_data_uri(),
        )
        result = validate_payload(ClassificationResult, raw, name="classify_food")
        return _apply_policy(result)


def _apply_policy(result: ClassificationResult) -> ClassificationResult:
    """Enforce the not-food and low-confidence rules on a raw result."""
    if not result.is_food:
        return result.model_copy(
            update={
                "classification": NOT_FOOD_SENTINEL,
                "alternative_suggestions": [],
                "food_details": None,
            }
        )
    if result.confidence >= LOW_CONFIDENCE_THRESHOLD:
        alternatives: list[str] = []
    else:
        alternatives = [
            suggestion.strip()
            for suggestion in result.alternative_suggestions
            if suggestion.strip()
        ][:MAX_ALTERNATIVE_SUGGESTIONS]
    return result.model_copy(update={"alternative_suggestions": alternatives})
