"""Coordinator owning the active recognition backend."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from unistt.locales import canonical_locale, current_locale
from unistt.models import Mode, Result, Status
from unistt.protocol import STTBackend
from unistt.streams import (
    CurrentValueSubject,
    Dispatcher,
    Observable,
    QueueDispatcher,
    Subject,
    SubscriptionGroup,
)

logger = logging.getLogger(__name__)


class STT:
    """Common front for speech recognition backends.

    Holds at most one backend and re-publishes its status, results,
    failures and available locales on streams that survive backend swaps,
    so subscribers never resubscribe. Locale, mode and contextual strings
    are owned here and mirrored onto whichever backend is attached.

    Events reach subscribers on ``dispatcher``. By default that is a
    ``QueueDispatcher`` the owning thread drains through ``stt.dispatcher``,
    so backends may publish from any thread. Pass an ``ImmediateDispatcher``
    when backend and owner share a thread. The coordinator itself is meant
    to be driven from a single thread. Configuration streams emit
    synchronously from the setters.
    """

    def __init__(
        self,
        backend: STTBackend | None = None,
        locale: str | None = None,
        mode: Mode = Mode.UNSPECIFIED,
        contextual_strings: Iterable[str] | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            backend: Backend to attach right away.
            locale: Recognition locale. Defaults to the process locale.
            mode: Recognition mode hint.
            contextual_strings: Phrases that help the recognizer.
            dispatcher: Delivery context for forwarded events. Defaults to a
                new ``QueueDispatcher`` owned by this coordinator.
        """
        self._dispatcher: Dispatcher = dispatcher or QueueDispatcher()
        self._backend: STTBackend | None = None
        self._subscriptions = SubscriptionGroup()

        self._locale = CurrentValueSubject(
            canonical_locale(locale) if locale else current_locale()
        )
        self._mode = CurrentValueSubject(Mode(mode))
        self._contextual_strings: CurrentValueSubject[tuple[str, ...]] = (
            CurrentValueSubject(tuple(contextual_strings or ()))
        )
        self._disabled = CurrentValueSubject(False)

        self._results: Subject[Result] = Subject()
        self._failures: Subject[Exception] = Subject()
        self._status: CurrentValueSubject[Status] = CurrentValueSubject(Status.IDLE)
        self._available_locales: CurrentValueSubject[frozenset[str] | None] = (
            CurrentValueSubject(None)
        )

        if backend is not None:
            self.set_backend(backend)

    # Backend lifecycle

    @property
    def backend(self) -> STTBackend | None:
        """The attached backend, if any."""
        return self._backend

    @backend.setter
    def backend(self, backend: STTBackend | None) -> None:
        self.set_backend(backend)

    def set_backend(self, backend: STTBackend | None) -> None:
        """Replace the active backend.

        Subscriptions held against the previous backend are released before
        this returns, including events already queued for delivery. Passing
        None also forgets the accumulated available locales.

        Args:
            backend: New backend, or None to detach.
        """
        self._subscriptions.cancel()
        previous, self._backend = self._backend, backend

        if previous is not None and previous is not backend:
            logger.info(f"Detached STT backend: {type(previous).__name__}")

        if backend is None:
            self._available_locales.send(None)
            return

        self.update_available_locales(backend.available_locales)

        backend.locale = self.locale
        backend.mode = self.mode
        backend.contextual_strings = self.contextual_strings

        dispatcher = self._dispatcher
        self._subscriptions.add(
            backend.status_stream.receive_on(dispatcher).subscribe(self._status.send)
        )
        self._subscriptions.add(
            backend.error_stream.receive_on(dispatcher).subscribe(self._failures.send)
        )
        self._subscriptions.add(
            backend.result_stream.receive_on(dispatcher).subscribe(self._results.send)
        )
        self._subscriptions.add(
            backend.available_locales_stream.receive_on(dispatcher).subscribe(
                self.update_available_locales
            )
        )
        logger.info(f"Attached STT backend: {type(backend).__name__}")

    def update_available_locales(self, locales: Iterable[str] | None) -> None:
        """Fold a locale snapshot into the accumulated set and republish it.

        The accumulated set only grows while a backend is attached. A None
        snapshot leaves it unchanged.
        """
        current = self._available_locales.value
        if locales is not None:
            reported = frozenset(locales)
            current = reported if current is None else current | reported
        self._available_locales.send(current)

    def close(self) -> None:
        """Detach the backend and release all subscriptions."""
        self.set_backend(None)

    def __enter__(self) -> STT:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # Configuration

    @property
    def locale(self) -> str:
        """Recognition locale in canonical form."""
        return self._locale.value

    @locale.setter
    def locale(self, value: str) -> None:
        locale = canonical_locale(value)
        if self._backend is not None:
            self._backend.locale = locale
        self._locale.send(locale)

    @property
    def locale_stream(self) -> Observable[str]:
        """Locale changes. Replays the current locale on subscribe."""
        return self._locale

    @property
    def mode(self) -> Mode:
        """Recognition mode hint."""
        return self._mode.value

    @mode.setter
    def mode(self, value: Mode) -> None:
        mode = Mode(value)
        if self._backend is not None:
            self._backend.mode = mode
        self._mode.send(mode)

    @property
    def mode_stream(self) -> Observable[Mode]:
        """Mode changes. Replays the current mode on subscribe."""
        return self._mode

    @property
    def contextual_strings(self) -> list[str]:
        """Phrases used to increase recognition accuracy."""
        return list(self._contextual_strings.value)

    @contextual_strings.setter
    def contextual_strings(self, value: Iterable[str]) -> None:
        phrases = tuple(value)
        if self._backend is not None:
            self._backend.contextual_strings = list(phrases)
        self._contextual_strings.send(phrases)

    @property
    def contextual_strings_stream(self) -> Observable[tuple[str, ...]]:
        """Contextual string changes, as immutable tuples."""
        return self._contextual_strings

    @property
    def disabled(self) -> bool:
        """When set, ``start`` is ignored."""
        return self._disabled.value

    @disabled.setter
    def disabled(self, value: bool) -> None:
        disabled = bool(value)
        if disabled and self._backend is not None:
            self._backend.stop()
        self._disabled.send(disabled)

    @property
    def disabled_stream(self) -> Observable[bool]:
        """Disabled flag changes. Replays the current flag on subscribe."""
        return self._disabled

    # Outward streams

    @property
    def dispatcher(self) -> Dispatcher:
        """Delivery context forwarded events are scheduled on."""
        return self._dispatcher

    @property
    def results(self) -> Observable[Result]:
        """Results from whichever backend is attached."""
        return self._results

    @property
    def failures(self) -> Observable[Exception]:
        """Failures from whichever backend is attached."""
        return self._failures

    @property
    def status(self) -> Status:
        """Last status forwarded from a backend."""
        return self._status.value

    @property
    def status_stream(self) -> Observable[Status]:
        """Status changes. Replays the current status on subscribe."""
        return self._status

    @property
    def available_locales(self) -> frozenset[str] | None:
        """Union of locales reported since the last detach, None if unknown."""
        return self._available_locales.value

    @property
    def available_locales_stream(self) -> Observable[frozenset[str] | None]:
        """Accumulated available locales. Replays the current value on subscribe."""
        return self._available_locales

    @property
    def available(self) -> bool:
        """Whether a backend is attached and reports itself available."""
        return self._backend is not None and self._backend.available

    # Commands

    def start(self) -> None:
        """Start recognizing speech.

        Ignored without a backend, with an unavailable backend, or while
        disabled.
        """
        backend = self._backend
        if backend is None:
            logger.debug("start() ignored: no backend")
            return
        if not backend.available:
            logger.debug("start() ignored: backend unavailable")
            return
        if self.disabled:
            logger.debug("start() ignored: disabled")
            return
        backend.start()

    def stop(self) -> None:
        """Stop recognizing speech immediately without waiting for a final result."""
        if self._backend is None:
            return
        self._backend.stop()

    def done(self) -> None:
        """Stop recognizing and wait for a final result."""
        if self._backend is None:
            return
        self._backend.done()
