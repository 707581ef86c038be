"""Custom exceptions for unistt."""


class UnisttError(Exception):
    """Base exception for all unistt errors."""


class ConfigError(UnisttError):
    """Configuration-related errors."""


class InvalidLocaleError(UnisttError, ValueError):
    """Locale identifier cannot be brought into canonical form."""


class BackendError(UnisttError):
    """Base exception for failures reported by a recognition backend."""


class RecognitionError(BackendError):
    """Engine fault during a recognition session."""


class TranscriptError(BackendError):
    """Transcript file missing or malformed."""


class BackendNotFoundError(UnisttError):
    """Requested backend is not registered."""


class BackendNotAvailableError(UnisttError):
    """Backend is registered but cannot currently be used."""
