"""Protocol definition for speech recognition backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from unistt.models import Mode, Result, Status
from unistt.streams import Observable


@runtime_checkable
class STTBackend(Protocol):
    """Generic interface for speech recognition engines.

    Any engine (on-device, cloud, test double) must implement this
    protocol to be driven by the ``STT`` coordinator. Locales are canonical
    strings such as "en" or "en_US".
    """

    locale: str
    """Locale the engine should recognize. Engines may ignore it."""

    mode: Mode
    """Recognition mode hint."""

    contextual_strings: list[str]
    """Phrases used to increase recognition accuracy."""

    @property
    def available(self) -> bool:
        """Whether the engine can currently be started."""
        ...

    @property
    def available_locales(self) -> frozenset[str] | None:
        """Locales the engine believes it can service, None if unknown."""
        ...

    @property
    def result_stream(self) -> Observable[Result]:
        """Non-final results, optionally followed by a final one, per session."""
        ...

    @property
    def status_stream(self) -> Observable[Status]:
        """Status transitions."""
        ...

    @property
    def error_stream(self) -> Observable[Exception]:
        """Failures as they occur."""
        ...

    @property
    def available_locales_stream(self) -> Observable[frozenset[str] | None]:
        """Snapshots of ``available_locales``. May emit repeatedly."""
        ...

    def start(self) -> None:
        """Start recognizing speech."""
        ...

    def stop(self) -> None:
        """Stop immediately without waiting for a final result."""
        ...

    def done(self) -> None:
        """Stop recognizing and let a final result be published."""
        ...
