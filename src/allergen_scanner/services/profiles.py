"""Session-scoped allergy profile management."""

from dataclasses import dataclass
from typing import Protocol

from allergen_scanner.domain.allergens import COMMON_ALLERGENS
from allergen_scanner.domain.profiles import AllergyProfile

DEFAULT_PROFILE_ALLERGENS: tuple[str, ...] = COMMON_ALLERGENS[:3]


class ProfileRepository(Protocol):
    """Storage interface for allergy profiles."""

    def get_profile(self, session_id: str) -> AllergyProfile | None:
        """Return the stored profile for a session, if any."""

    def save_profile(self, session_id: str, profile: AllergyProfile) -> None:
        """Replace the stored profile for a session."""

    def delete_profile(self, session_id: str) -> None:
        """Remove the stored profile for a session."""


@dataclass
class ProfileService:
    """Reads and updates allergy profiles through explicit operations."""

    repository: ProfileRepository

    def get_profile(self, session_id: str) -> AllergyProfile:
        """Return the session's profile, falling back to the defaults."""
        return self.repository.get_profile(session_id) or AllergyProfile(
            allergens=list(DEFAULT_PROFILE_ALLERGENS)
        )

    def update_profile(  # noqa: PLR0913
        self,
        session_id: str,
        *,
        allergens: list[str],
        dietary_preferences: str | None = None,
        cuisine_preference: str | None = None,
        nutrition_goals: str | None = None,
    ) -> AllergyProfile:
        """Replace the session's profile. The last write wins."""
        profile = AllergyProfile(
            allergens=allergens,
            dietary_preferences=dietary_preferences,
            cuisine_preference=cuisine_preference,
            nutrition_goals=nutrition_goals,
        )
        self.repository.save_profile(session_id, profile)
        return profile

    def add_custom_allergen(self, session_id: str, allergen: str) -> AllergyProfile:
        """Append an allergen unless it is blank or already present."""
        current = self.get_profile(session_id)
        cleaned = allergen.strip()
        if not cleaned or cleaned in current.allergens:
            return current
        updated = current.model_copy(
            update={"allergens": [*current.allergens, cleaned]}
        )
        self.repository.save_profile(session_id, updated)
        return updated

    def reset_profile(self, session_id: str) -> AllergyProfile:
        """Drop stored changes and return the default profile."""
        self.repository.delete_profile(session_id)
        return self.get_profile(session_id)
