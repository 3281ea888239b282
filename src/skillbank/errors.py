"""Error taxonomy shared by the gamification core and its adapters."""

from __future__ import annotations


class SkillBankError(Exception):
    """Base class for all errors raised by the core."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SkillBankError):
    """A referenced user, skill, badge or progress record does not exist."""

    status_code = 404


class ValidationError(SkillBankError):
    """Input is out of range or malformed. The request is rejected."""

    status_code = 422


class MalformedRequirementsError(ValidationError):
    """A badge's stored requirement set cannot be loaded."""

    def __init__(self, message: str, keys: list[str] | None = None) -> None:
        super().__init__(message)
        self.keys = keys or []


class InternalError(SkillBankError):
    """Persistence or storage failure. Surfaced to callers as an opaque failure."""

    status_code = 500
