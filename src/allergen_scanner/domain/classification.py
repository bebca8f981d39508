"""Models for food classification results."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NOT_FOOD_SENTINEL = "Not a food item"
LOW_CONFIDENCE_THRESHOLD = 0.7
MAX_ALTERNATIVE_SUGGESTIONS = 3


class FoodDetails(BaseModel):
    """Food details supplied directly by the classifier."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    ingredients: list[str]
    nutritional_data: str | None = None
    region: str | None = None
    history: str | None = None
    data_ai_hint: str | None = None


class ClassificationResult(BaseModel):
    """Structured output of the classification adapter."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_food: bool
    classification: str
    confidence: float = Field(ge=0.0, le=1.0)
    alternative_suggestions: list[str] = Field(default_factory=list)
    food_details: FoodDetails | None = None
