"""Models for safe-dish recommendations."""

from pydantic import BaseModel, Field


class Recommendation(BaseModel):
    """Single recommended dish."""

    name: str
    description: str
    reasoning: str
    data_ai_hint: str
    typical_ingredients: list[str] = Field(default_factory=list)


class Recommendations(BaseModel):
    """Recommended dishes with the overall rationale."""

    recommendations: list[Recommendation]
    overall_reasoning: str
