"""Engine exception hierarchy with stable machine-readable codes."""
from __future__ import annotations


class EngineError(RuntimeError):
    """Base class for engine errors; ``code`` is stable across releases."""

    code: str = "engine_error"

    def __init__(self, code: str | None = None, message: str | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message or self.code)


class InputValidationError(EngineError):
    """Raised for missing or malformed identifiers and values."""

    code = "invalid_input"


class EligibilityError(EngineError):
    """Raised when a named business rule refuses the operation."""

    code = "not_eligible"


class NotFoundError(EngineError):
    """Raised when a referenced row does not exist for the tenant."""

    code = "not_found"


def require_identifier(value: str | None, name: str) -> str:
    """Return the stripped identifier or raise ``missing_identifier``."""

    stripped = (value or "").strip()
    if not stripped:
        raise InputValidationError("missing_identifier", f"{name} is required")
    return stripped


__all__ = [
    "EligibilityError",
    "EngineError",
    "InputValidationError",
    "NotFoundError",
    "require_identifier",
]
