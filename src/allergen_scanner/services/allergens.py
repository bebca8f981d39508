"""Allergen risk evaluation."""

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import BaseModel

from allergen_scanner.domain.allergens import (
    ALLERGEN_SYNONYMS,
    DEFAULT_CRITICAL_ALLERGENS,
    AllergenVerdict,
    RiskLevel,
)
from allergen_scanner.services.inference import (
    InferenceClient,
    InferenceOptions,
    request_structured,
    validate_payload,
)

_ALIAS_PATTERN = re.compile(r"\(([^)]*)\)")
_WHITESPACE = re.compile(r"\s+")

_logger = logging.getLogger(__name__)


class AllergenEvaluator(Protocol):
    """Interface for allergen risk evaluators."""

    async def evaluate(
        self, ingredients: str | Sequence[str], allergens: Iterable[str]
    ) -> AllergenVerdict:
        """Return the risk verdict for ingredients against allergens."""


def evaluate_allergens(
    ingredients: str | Sequence[str],
    allergens: Iterable[str],
    critical_allergens: Iterable[str] = DEFAULT_CRITICAL_ALLERGENS,
    synonyms: Mapping[str, Iterable[str]] = ALLERGEN_SYNONYMS,
) -> AllergenVerdict:
    """Match allergens against ingredient text and grade the risk.

    An allergen matches when its name, a parenthesised alias such as the
    ``Dairy`` in ``Milk (Dairy)``, or a synonym of either appears in the
    ingredient text as a whole word, singular or plural. Matching is
    case-insensitive.
    Empty text or an empty allergen list is always ``SAFE``.
    """
    text = _join_ingredients(ingredients).casefold()
    profile = _unique(allergens)
    if not text.strip() or not profile:
        return AllergenVerdict.safe()

    detected = [
        allergen
        for allergen in profile
        if any(_occurs(term, text) for term in expand_terms(allergen, synonyms))
    ]
    return grade_detected(detected, critical_allergens)


def grade_detected(
    detected: Sequence[str],
    critical_allergens: Iterable[str] = DEFAULT_CRITICAL_ALLERGENS,
) -> AllergenVerdict:
    """Assign a risk level to an already-detected set of allergens."""
    found = tuple(_unique(detected))
    if not found:
        return AllergenVerdict.safe()
    critical = {_singular(_normalize(term)) for term in critical_allergens}
    if len(found) >= 2 or any(
        allergen_terms(allergen) & critical for allergen in found
    ):
        level = RiskLevel.HIGH
    else:
        level = RiskLevel.MODERATE
    return AllergenVerdict(
        allergen_detected=True,
        risk_level=level,
        detected_allergens=found,
    )


def allergen_terms(allergen: str) -> set[str]:
    """Return the base name and aliases of a profile entry."""
    aliases = _ALIAS_PATTERN.findall(allergen)
    base = _ALIAS_PATTERN.sub(" ", allergen)
    terms: set[str] = set()
    for raw in [base, *aliases]:
        for part in raw.split(","):
            term = _singular(_normalize(part))
            if term:
                terms.add(term)
    return terms


def expand_terms(
    allergen: str, synonyms: Mapping[str, Iterable[str]] = ALLERGEN_SYNONYMS
) -> set[str]:
    """Return every term that signals the allergen, synonyms included."""
    terms = allergen_terms(allergen)
    expanded = set(terms)
    for term in terms:
        expanded.update(_normalize(synonym) for synonym in synonyms.get(term, ()))
    return {term for term in expanded if term}


@dataclass
class RuleBasedAllergenEvaluator(AllergenEvaluator):
    """Deterministic evaluator using the synonym table."""

    critical_allergens: tuple[str, ...] = DEFAULT_CRITICAL_ALLERGENS
    synonyms: Mapping[str, Iterable[str]] = field(
        default_factory=lambda: ALLERGEN_SYNONYMS
    )

    async def evaluate(
        self, ingredients: str | Sequence[str], allergens: Iterable[str]
    ) -> AllergenVerdict:
        """Evaluate with the reference matching policy."""
        return self.check(ingredients, allergens)

    def check(
        self, ingredients: str | Sequence[str], allergens: Iterable[str]
    ) -> AllergenVerdict:
        """Synchronous form of evaluate."""
        return evaluate_allergens(
            ingredients,
            allergens,
            critical_allergens=self.critical_allergens,
            synonyms=self.synonyms,
        )


ALLERGEN_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "allergen_detected": {"type": "boolean"},
        "alert": {"type": "string", "enum": [level.value for level in RiskLevel]},
        "detected_allergens": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["allergen_detected", "alert", "detected_allergens"],
    "additionalProperties": False,
}


class AllergenDetection(BaseModel):
    """Raw allergen detection returned by the provider."""

    allergen_detected: bool
    alert: RiskLevel
    detected_allergens: list[str]


@dataclass
class InferenceAllergenEvaluator(AllergenEvaluator):
    """Evaluator that asks the provider which allergens are present.

    The provider only decides which profile allergens occur. The risk level
    is recomputed locally so it depends on the detected set alone.
    """

    client: InferenceClient
    options: InferenceOptions
    critical_allergens: tuple[str, ...] = DEFAULT_CRITICAL_ALLERGENS

    async def evaluate(
        self, ingredients: str | Sequence[str], allergens: Iterable[str]
    ) -> AllergenVerdict:
        """Evaluate via the provider, keeping only profile allergens."""
        text = _join_ingredients(ingredients)
        profile = _unique(allergens)
        if not text.strip() or not profile:
            return AllergenVerdict.safe()

        raw = await request_structured(
            self.client,
            self.options,
            name="detect_allergens",
            prompt=_allergen_prompt(text, profile),
            schema=ALLERGEN_SCHEMA,
        )
        detection = validate_payload(AllergenDetection, raw, name="detect_allergens")
        reported = [name for name in detection.detected_allergens if name.strip()]
        matched = [
            allergen
            for allergen in profile
            if any(_same_allergen(name, allergen) for name in reported)
        ]
        ignored = [
            name
            for name in reported
            if not any(_same_allergen(name, allergen) for allergen in profile)
        ]
        if ignored:
            _logger.info("Ignored allergens outside the profile: %s", ignored)
        return grade_detected(matched, self.critical_allergens)


def _allergen_prompt(ingredients: str, allergens: Sequence[str]) -> str:
    return (
        "You are an AI assistant specialized in detecting allergens in food "
        "ingredients. Compare the following list of ingredients against the "
        "user's allergy profile to identify potential allergens, including "
        "derived ingredients (for example cheese contains milk).\n"
        f"Ingredients: {ingredients}\n"
        f"Allergens: {', '.join(allergens)}\n"
        "Output:\n"
        "- allergen_detected: true if any of the user-specified allergens are "
        "present in the ingredients, false otherwise.\n"
        "- alert: HIGH if multiple allergens are detected or if a critical "
        "allergen is detected, MODERATE if one allergen is detected, SAFE if no "
        "allergens are detected.\n"
        "- detected_allergens: the allergens found, spelled exactly as given in "
        "the allergy profile."
    )


def _same_allergen(reported: str, allergen: str) -> bool:
    """Return True when a reported name refers to the profile entry."""
    return bool(allergen_terms(reported) & expand_terms(allergen))


def _join_ingredients(ingredients: str | Sequence[str]) -> str:
    if isinstance(ingredients, str):
        return ingredients
    return ", ".join(item for item in ingredients if item)


def _unique(values: Iterable[str]) -> list[str]:
    unique: list[str] = []
    for value in values:
        cleaned = value.strip()
        if cleaned and cleaned not in unique:
            unique.append(cleaned)
    return unique


def _normalize(term: str) -> str:
    return _WHITESPACE.sub(" ", term).strip().casefold()


def _singular(term: str) -> str:
    """Drop a plural 's' so 'Peanuts' and 'peanut' share one term."""
    if len(term) > 3 and term.endswith("s") and not term.endswith("ss"):
        return term[:-1]
    return term


def _occurs(term: str, text: str) -> bool:
    return re.search(_word_pattern(term), text) is not None


def _word_pattern(term: str) -> str:
    """Match the term or its plural as whole words."""
    if len(term) > 3 and term.endswith("y") and term[-2] not in "aeiou":
        body = re.escape(term[:-1]) + "(?:y|ies)"
    else:
        body = re.escape(term) + "(?:e?s)?"
    body = body.replace(r"\ ", r"\s+")
    return rf"(?<![a-z]){body}(?![a-z])"
