"""Food reference domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FoodRecord:
    """Reference details for a known food."""

    name: str
    ingredients: tuple[str, ...]
    nutritional_summary: str = ""
    region: str = ""
    history_note: str = ""
    image_hint: str = ""
