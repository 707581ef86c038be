"""unistt - A common front for speech-to-text backends."""

from unistt.coordinator import STT
from unistt.exceptions import (
    BackendError,
    BackendNotAvailableError,
    BackendNotFoundError,
    ConfigError,
    InvalidLocaleError,
    RecognitionError,
    TranscriptError,
    UnisttError,
)
from unistt.locales import canonical_locale, current_locale
from unistt.models import Mode, Result, Segment, Status
from unistt.protocol import STTBackend
from unistt.streams import (
    CurrentValueSubject,
    ImmediateDispatcher,
    Observable,
    QueueDispatcher,
    Subject,
    Subscription,
    SubscriptionGroup,
)

__version__ = "0.1.0"

__all__ = [
    # Coordinator
    "STT",
    # Protocol
    "STTBackend",
    # Models
    "Mode",
    "Result",
    "Segment",
    "Status",
    # Streams
    "CurrentValueSubject",
    "ImmediateDispatcher",
    "Observable",
    "QueueDispatcher",
    "Subject",
    "Subscription",
    "SubscriptionGroup",
    # Exceptions
    "BackendError",
    "BackendNotAvailableError",
    "BackendNotFoundError",
    "ConfigError",
    "InvalidLocaleError",
    "RecognitionError",
    "TranscriptError",
    "UnisttError",
    # Functions
    "canonical_locale",
    "current_locale",
]


# Lazy imports so that importing the package does not register backends
def __getattr__(name: str):
    """Lazy import for registry helpers."""
    if name == "get_backend":
        from unistt.registry import get_backend

        return get_backend
    if name == "get_registered_backends":
        from unistt.registry import get_registered_backends

        return get_registered_backends
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
