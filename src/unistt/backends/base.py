"""Base class for recognition backends with common plumbing."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from unistt.locales import canonical_locale, canonical_locales
from unistt.models import Mode, Result, Status
from unistt.streams import CurrentValueSubject, Observable, Subject

logger = logging.getLogger(__name__)


class BaseSTTBackend(ABC):
    """Abstract base class for backends.

    Owns the four outbound subjects and keeps the synchronous
    ``available_locales`` snapshot equal to the last published value.
    Subclasses implement the commands and ``available``.
    """

    def __init__(
        self,
        locale: str = "en_US",
        available_locales: Iterable[str] | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            locale: Initial locale. The coordinator overwrites it on attach.
            available_locales: Initially known locales, None if unknown.
        """
        self._locale = canonical_locale(locale)
        self.mode = Mode.UNSPECIFIED
        self.contextual_strings: list[str] = []

        initial = None if available_locales is None else canonical_locales(available_locales)
        self._results: Subject[Result] = Subject()
        self._errors: Subject[Exception] = Subject()
        self._status: CurrentValueSubject[Status] = CurrentValueSubject(Status.IDLE)
        self._available_locales: CurrentValueSubject[frozenset[str] | None] = (
            CurrentValueSubject(initial)
        )

    @property
    def locale(self) -> str:
        """Locale used for recognition."""
        return self._locale

    @locale.setter
    def locale(self, value: str) -> None:
        self._locale = canonical_locale(value)

    @property
    def status(self) -> Status:
        """Last published status."""
        return self._status.value

    @property
    def available_locales(self) -> frozenset[str] | None:
        return self._available_locales.value

    @property
    def result_stream(self) -> Observable[Result]:
        return self._results

    @property
    def status_stream(self) -> Observable[Status]:
        return self._status

    @property
    def error_stream(self) -> Observable[Exception]:
        return self._errors

    @property
    def available_locales_stream(self) -> Observable[frozenset[str] | None]:
        return self._available_locales

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether the backend can currently be started."""
        ...

    @abstractmethod
    def start(self) -> None:
        """Start recognizing speech."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop immediately without waiting for a final result."""
        ...

    @abstractmethod
    def done(self) -> None:
        """Stop recognizing and wait for a final result."""
        ...

    def _publish_status(self, status: Status) -> None:
        if status != self._status.value:
            logger.debug(f"{type(self).__name__} status: {status.value}")
        self._status.send(status)

    def _publish_result(self, result: Result) -> None:
        self._results.send(result)

    def _publish_error(self, error: Exception) -> None:
        logger.warning(f"{type(self).__name__} error: {error}")
        self._errors.send(error)

    def _publish_available_locales(self, locales: Iterable[str] | None) -> None:
        snapshot = None if locales is None else canonical_locales(locales)
        self._available_locales.send(snapshot)
