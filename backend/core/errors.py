"""
Error types for exercise media resolution.

"Not found" is not an error: MediaResolver.resolve returns the NOT_FOUND
sentinel for names the index has no media for. Only transport and
configuration failures are raised.
"""
from typing import Optional


class MediaResolutionError(Exception):
    """Base exception for the media resolution engine."""

    pass


class ConfigurationError(MediaResolutionError):
    """Raised at startup when a required credential is missing."""

    pass


class LookupTransportError(MediaResolutionError):
    """Raised when a call to the external lookup API fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LookupUnavailableError(MediaResolutionError):
    """Raised when every lookup attempt for a name failed in transport."""

    def __init__(self, name: str, failed_attempts: int):
        super().__init__(
            f"Media lookup unavailable for '{name}' "
            f"({failed_attempts} attempts failed)"
        )
        self.name = name
        self.failed_attempts = failed_attempts


class _NotFound:
    """Sentinel for a name that resolved to no exercise."""

    _instance: Optional["_NotFound"] = None

    def __new__(cls) -> "_NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()
