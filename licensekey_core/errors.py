from __future__ import annotations
from typing import Optional


class LicenseKeyError(Exception):
    pass


class ConfigurationError(LicenseKeyError):
    """Raised locally, before anything is submitted to a provisioning engine."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ApplyError(LicenseKeyError):
    """
    Failure reported by a provisioning engine.

    `code` is the platform error code exactly as the engine returned it.
    Nothing in this package retries on ApplyError; backoff belongs to the
    engine layer.
    """

    def __init__(self, code: str, message: str = ""):
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code
        self.message = message


class PermissionDeniedError(ApplyError):
    pass


class LimitExceededError(ApplyError):
    pass


class NamingConflictError(ApplyError):
    pass


_CODE_MAP = {
    "AccessDenied": PermissionDeniedError,
    "AccessDeniedException": PermissionDeniedError,
    "InsufficientCapabilitiesException": PermissionDeniedError,
    "LimitExceeded": LimitExceededError,
    "LimitExceededException": LimitExceededError,
    "AlreadyExistsException": NamingConflictError,
    "NameConflict": NamingConflictError,
}


def apply_error_for(code: str, message: str = "") -> ApplyError:
    cls = _CODE_MAP.get(code, ApplyError)
    return cls(code, message)
