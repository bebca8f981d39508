"""Error types raised by the scanning pipeline."""


class PreconditionError(ValueError):
    """Raised when a request is rejected before any inference call."""


class InferenceFailure(RuntimeError):
    """Raised when the inference provider fails or returns an invalid payload."""
