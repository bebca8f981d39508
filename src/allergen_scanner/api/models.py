"""Pydantic models for API request payloads."""

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PhotoPayload(_CamelModel):
    """Photo submitted as a base64 data URI."""

    photo_data_uri: str = Field(alias="photoDataUri")


class AllergenCheckPayload(_CamelModel):
    """Free-text ingredients to check, with an optional allergen override."""

    ingredients: str | list[str]
    allergens: list[str] | None = None


class ProfilePayload(_CamelModel):
    """Full replacement of the session's allergy profile."""

    allergens: list[str]
    dietary_preferences: str | None = Field(default=None, alias="dietaryPreferences")
    cuisine_preference: str | None = Field(default=None, alias="cuisinePreference")
    nutrition_goals: str | None = Field(default=None, alias="nutritionGoals")


class CustomAllergenPayload(BaseModel):
    """Single allergen to add to the profile."""

    allergen: str
