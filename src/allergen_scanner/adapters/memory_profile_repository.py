"""In-process profile storage keyed by session id."""

from dataclasses import dataclass, field

from allergen_scanner.domain.profiles import AllergyProfile
from allergen_scanner.services.profiles import ProfileRepository


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """Profile repository kept in process memory."""

    profiles: dict[str, AllergyProfile] = field(default_factory=dict)

    def get_profile(self, session_id: str) -> AllergyProfile | None:
        """Return the stored profile, if present."""
        return self.profiles.get(session_id)

    def save_profile(self, session_id: str, profile: AllergyProfile) -> None:
        """Store the profile, replacing any previous one."""
        self.profiles[session_id] = profile

    def delete_profile(self, session_id: str) -> None:
        """Forget the session's profile."""
        self.profiles.pop(session_id, None)
