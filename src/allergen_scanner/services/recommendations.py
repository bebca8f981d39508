"""Safe-dish recommendations for an allergy profile."""

import logging
from dataclasses import dataclass

from allergen_scanner.domain.profiles import AllergyProfile
from allergen_scanner.domain.recommendations import Recommendations
from allergen_scanner.services.allergens import RuleBasedAllergenEvaluator
from allergen_scanner.services.inference import (
    InferenceClient,
    InferenceOptions,
    request_structured,
    validate_payload,
)

_logger = logging.getLogger(__name__)

RECOMMENDATION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "recommendations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "reasoning": {"type": "string"},
                    "data_ai_hint": {"type": "string"},
                    "typical_ingredients": {
                        "type": "array",
                        "items": {"type": "string"},
                    },
                },
                "required": [
                    "name",
                    "description",
                    "reasoning",
                    "data_ai_hint",
                    "typical_ingredients",
                ],
                "additionalProperties": False,
            },
        },
        "overall_reasoning": {"type": "string"},
    },
    "required": ["recommendations", "overall_reasoning"],
    "additionalProperties": False,
}


@dataclass
class RecommendationService:
    """Suggests dishes and drops any that trip the allergen rules."""

    client: InferenceClient
    options: InferenceOptions
    evaluator: RuleBasedAllergenEvaluator

    async def recommend(self, profile: AllergyProfile) -> Recommendations:
        """Return safe dish recommendations for the profile."""
        raw = await request_structured(
            self.client,
            self.options,
            name="recommend_safe_foods",
            prompt=_recommendation_prompt(profile),
            schema=RECOMMENDATION_SCHEMA,
        )
        result = validate_payload(Recommendations, raw, name="recommend_safe_foods")
        safe = []
        for dish in result.recommendations:
            verdict = self.evaluator.check(dish.typical_ingredients, profile.allergens)
            if verdict.allergen_detected:
                _logger.info(
                    "Dropped recommendation %s: contains %s",
                    dish.name,
                    ", ".join(verdict.detected_allergens),
                )
                continue
            safe.append(dish)
        return result.model_copy(update={"recommendations": safe})


def _recommendation_prompt(profile: AllergyProfile) -> str:
    allergens = ", ".join(profile.allergens) or "none"
    return (
        "You are an AI food recommendation expert and creative chef. Recommend "
        "3 delicious dishes that are safe for this user.\n"
        "User profile:\n"
        f"- Allergens to avoid: {allergens}\n"
        f"- Dietary preferences: {profile.dietary_preferences or 'none'}\n"
        f"- Nutrition goals: {profile.nutrition_goals or 'none'}\n"
        f"- Preferred cuisine: {profile.cuisine_preference or 'any'}\n"
        "For each dish give a name, a short appetizing description, why it suits "
        "the user, a 1-2 word hint for image search, and its typical "
        "ingredients. The typical ingredients must not contain any of the "
        "user's allergens. Recommend complete dishes (e.g. 'Baked Apple with "
        "Cinnamon'), not single ingredients. Finish with a brief overall "
        "reasoning for the set."
    )
