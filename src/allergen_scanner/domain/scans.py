"""Domain models for scan invocations."""

import base64
import binascii
import re
from dataclasses import dataclass
from enum import StrEnum

from allergen_scanner.domain.allergens import AllergenVerdict
from allergen_scanner.domain.classification import ClassificationResult
from allergen_scanner.domain.errors import PreconditionError
from allergen_scanner.domain.profiles import AllergyProfile

_DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL
)


@dataclass(frozen=True)
class EncodedImage:
    """Image payload with an explicit MIME type."""

    mime_type: str
    data: bytes

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str | None = None) -> "EncodedImage":
        """Wrap raw bytes, sniffing the MIME type when not given."""
        if not data:
            raise PreconditionError("Image is empty.")
        return cls(mime_type=mime_type or _detect_mime_type(data), data=data)

    @classmethod
    def from_data_uri(cls, data_uri: str) -> "EncodedImage":
        """Parse a data:<mimetype>;base64,<payload> URI."""
        match = _DATA_URI_PATTERN.match(data_uri.strip())
        if match is None:
            raise PreconditionError(
                "Photo must be a data URI like data:<mimetype>;base64,<data>."
            )
        try:
            data = base64.b64decode(match.group("payload"), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise PreconditionError("Photo payload is not valid base64.") from exc
        return cls.from_bytes(data, mime_type=match.group("mime"))

    def to_data_uri(self) -> str:
        """Return the image as a base64 data URI."""
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class ScanContext:
    """Per-scan context passed explicitly to the orchestrator."""

    session_id: str
    profile: AllergyProfile


class ScanMode(StrEnum):
    """Supported scan modes."""

    FOOD = "FOOD"
    LABEL = "LABEL"


class ScanState(StrEnum):
    """States visited while a scan runs."""

    IDLE = "IDLE"
    CLASSIFYING = "CLASSIFYING"
    LOOKING_UP_DETAILS = "LOOKING_UP_DETAILS"
    EXTRACTING = "EXTRACTING"
    EVALUATING = "EVALUATING"
    NOT_FOOD = "NOT_FOOD"
    DONE = "DONE"
    FAILED = "FAILED"


class ScanOutcome(StrEnum):
    """Distinguishable terminal results of a scan."""

    VERDICT = "VERDICT"
    NO_DETAIL = "NO_DETAIL"
    NOT_FOOD = "NOT_FOOD"
    NO_TEXT = "NO_TEXT"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class ScanResult:
    """Composite result of a single scan."""

    mode: ScanMode
    outcome: ScanOutcome
    classification: ClassificationResult | None = None
    ingredients: tuple[str, ...] = ()
    extracted_text: str | None = None
    verdict: AllergenVerdict | None = None
    error: str | None = None
    states: tuple[ScanState, ...] = ()

    @classmethod
    def failed(cls, mode: ScanMode, error: str) -> "ScanResult":
        """Build a failure result with no partial data."""
        return cls(mode=mode, outcome=ScanOutcome.FAILED, error=error)

    @classmethod
    def cancelled(cls, mode: ScanMode) -> "ScanResult":
        """Build the result returned for a discarded scan."""
        return cls(mode=mode, outcome=ScanOutcome.CANCELLED)


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
