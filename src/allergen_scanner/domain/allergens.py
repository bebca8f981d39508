"""Allergen domain models and reference tables."""

from dataclasses import dataclass
from enum import StrEnum


class RiskLevel(StrEnum):
    """Three-tier allergen risk alert."""

    HIGH = "HIGH"
    MODERATE = "MODERATE"
    SAFE = "SAFE"


@dataclass(frozen=True)
class AllergenVerdict:
    """Outcome of checking ingredients against an allergy profile."""

    allergen_detected: bool
    risk_level: RiskLevel
    detected_allergens: tuple[str, ...]

    @classmethod
    def safe(cls) -> "AllergenVerdict":
        """Return a verdict with nothing detected."""
        return cls(
            allergen_detected=False,
            risk_level=RiskLevel.SAFE,
            detected_allergens=(),
        )


COMMON_ALLERGENS: tuple[str, ...] = (
    "Peanuts",
    "Tree Nuts",
    "Milk (Dairy)",
    "Eggs",
    "Wheat (Gluten)",
    "Soy",
    "Fish",
    "Shellfish",
    "Sesame",
    "Corn",
    "Snails",
    "Agushi (Melon Seeds)",
)

DEFAULT_CRITICAL_ALLERGENS: tuple[str, ...] = ("peanut", "shellfish", "tree nut")

# Keys and values are lower-case singular terms.
ALLERGEN_SYNONYMS: dict[str, tuple[str, ...]] = {
    "milk": (
        "dairy",
        "cream",
        "cheese",
        "butter",
        "buttermilk",
        "whey",
        "casein",
        "lactose",
        "yogurt",
        "yoghurt",
        "ghee",
        "mozzarella",
        "parmesan",
    ),
    "dairy": (
        "milk",
        "cream",
        "cheese",
        "butter",
        "buttermilk",
        "whey",
        "casein",
        "lactose",
    ),
    "egg": ("mayonnaise", "meringue", "albumin", "ovalbumin"),
    "peanut": ("groundnut", "arachis"),
    "tree nut": (
        "almond",
        "walnut",
        "cashew",
        "pecan",
        "pistachio",
        "macadamia",
        "hazelnut",
        "brazil nut",
        "pine nut",
        "praline",
        "marzipan",
    ),
    "wheat": ("gluten", "semolina", "durum", "spelt", "couscous", "crouton"),
    "gluten": ("wheat", "barley", "rye", "semolina", "spelt", "crouton"),
    "soy": ("soya", "soybean", "tofu", "tempeh", "edamame", "miso"),
    "fish": ("anchovy", "salmon", "tuna", "cod", "tilapia", "sardine", "mackerel"),
    "shellfish": (
        "shrimp",
        "prawn",
        "crab",
        "lobster",
        "crayfish",
        "clam",
        "mussel",
        "oyster",
        "scallop",
    ),
    "sesame": ("tahini", "benne"),
    "corn": ("maize", "cornmeal", "cornstarch", "polenta"),
    "snail": ("escargot",),
    "melon seed": ("agushi", "egusi"),
}
