"""Allergy profile models."""

from pydantic import BaseModel, Field, field_validator


class AllergyProfile(BaseModel):
    """Allergens and preferences declared by a user."""

    allergens: list[str] = Field(default_factory=list)
    dietary_preferences: str | None = None
    cuisine_preference: str | None = None
    nutrition_goals: str | None = None

    @field_validator("allergens")
    @classmethod
    def _dedupe_allergens(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for entry in value:
            cleaned = entry.strip()
            if cleaned and cleaned not in seen:
                seen.append(cleaned)
        return seen
