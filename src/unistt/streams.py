"""Minimal publish/subscribe primitives.

Backends publish on subjects from whatever thread they run on. Consumers
that need events on a single thread subscribe through ``receive_on`` with a
``QueueDispatcher`` drained by the owning thread.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Observer = Callable[[T], None]


class Subscription:
    """Handle to an active subscription.

    Cancelling is idempotent. Once ``cancel`` returns the observer is never
    invoked again by the stream it was subscribed to.
    """

    def __init__(self, on_cancel: Callable[[], None] | None = None) -> None:
        self._on_cancel = on_cancel
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        """Whether the subscription has been cancelled."""
        return self._cancelled

    def cancel(self) -> None:
        """Stop delivery to the observer."""
        if self._cancelled:
            return
        self._cancelled = True
        on_cancel, self._on_cancel = self._on_cancel, None
        if on_cancel is not None:
            on_cancel()


class SubscriptionGroup:
    """A set of subscriptions released together.

    Used as a scope: subscriptions are added while attaching to a source and
    all of them are cancelled when the source goes away.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def add(self, subscription: Subscription) -> Subscription:
        """Add a subscription to the group and return it."""
        self._subscriptions.append(subscription)
        return subscription

    def cancel(self) -> None:
        """Cancel every subscription in the group and empty it."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.cancel()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __enter__(self) -> SubscriptionGroup:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


class Dispatcher(ABC):
    """Execution context on which observers are invoked."""

    @abstractmethod
    def schedule(self, callback: Callable[[], None]) -> None:
        """Arrange for ``callback`` to run on this context."""
        ...


class ImmediateDispatcher(Dispatcher):
    """Runs callbacks inline on the calling thread."""

    def schedule(self, callback: Callable[[], None]) -> None:
        callback()


class QueueDispatcher(Dispatcher):
    """Hands callbacks over to an owner thread through a FIFO queue.

    Producers never block. The owner calls ``drain`` (or ``run_until``)
    to run queued callbacks in the order they were scheduled.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[Callable[[], None]] = queue.Queue()

    def schedule(self, callback: Callable[[], None]) -> None:
        self._queue.put(callback)

    @property
    def pending(self) -> int:
        """Approximate number of callbacks waiting to run."""
        return self._queue.qsize()

    def drain(self, max_items: int | None = None) -> int:
        """Run queued callbacks on the calling thread.

        Args:
            max_items: Stop after this many callbacks (None for all queued).

        Returns:
            Number of callbacks run.
        """
        processed = 0
        while max_items is None or processed < max_items:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                break
            self._run(callback)
            processed += 1
        return processed

    def run_until(
        self,
        predicate: Callable[[], bool],
        timeout: float | None = None,
        poll_interval: float = 0.05,
    ) -> bool:
        """Process callbacks until ``predicate`` is true.

        Args:
            predicate: Checked after each callback and each idle poll.
            timeout: Give up after this many seconds (None waits forever).
            poll_interval: Queue wait between predicate checks.

        Returns:
            True if the predicate became true, False on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not predicate():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            try:
                callback = self._queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            self._run(callback)
        return True

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Dispatched callback failed")


class Observable(ABC, Generic[T]):
    """A stream of values that observers can subscribe to."""

    @abstractmethod
    def subscribe(self, observer: Observer[T]) -> Subscription:
        """Register ``observer`` and return its subscription."""
        ...

    def receive_on(self, dispatcher: Dispatcher) -> Observable[T]:
        """Return a view of this stream delivering on ``dispatcher``."""
        return _ReceiveOn(self, dispatcher)


class Subject(Observable[T]):
    """A stream that forwards every sent value to current observers."""

    def __init__(self) -> None:
        self._observers: dict[int, Observer[T]] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count()

    @property
    def subscriber_count(self) -> int:
        """Number of active observers."""
        with self._lock:
            return len(self._observers)

    def subscribe(self, observer: Observer[T]) -> Subscription:
        with self._lock:
            token = next(self._ids)
            self._observers[token] = observer

        def remove() -> None:
            with self._lock:
                self._observers.pop(token, None)

        return Subscription(on_cancel=remove)

    def send(self, value: T) -> None:
        """Deliver ``value`` to every observer subscribed right now."""
        with self._lock:
            observers = list(self._observers.values())
        for observer in observers:
            try:
                observer(value)
            except Exception:
                logger.exception(f"Observer {observer!r} failed")


class CurrentValueSubject(Subject[T]):
    """A subject that holds a current value and replays it on subscribe."""

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value
        # Held across replay and send so each observer sees values in send order.
        self._emit_lock = threading.RLock()

    @property
    def value(self) -> T:
        """The most recently sent value."""
        return self._value

    def subscribe(self, observer: Observer[T]) -> Subscription:
        with self._emit_lock:
            subscription = super().subscribe(observer)
            try:
                observer(self._value)
            except Exception:
                logger.exception(f"Observer {observer!r} failed")
        return subscription

    def send(self, value: T) -> None:
        with self._emit_lock:
            self._value = value
            super().send(value)


class _ReceiveOn(Observable[T]):
    """Re-schedules each upstream value onto a dispatcher."""

    def __init__(self, upstream: Observable[T], dispatcher: Dispatcher) -> None:
        self._upstream = upstream
        self._dispatcher = dispatcher

    def subscribe(self, observer: Observer[T]) -> Subscription:
        subscription = Subscription()

        def forward(value: T) -> None:
            def deliver() -> None:
                # Values queued before cancellation are dropped.
                if not subscription.cancelled:
                    observer(value)

            self._dispatcher.schedule(deliver)

        upstream = self._upstream.subscribe(forward)
        subscription._on_cancel = upstream.cancel
        if subscription.cancelled:
            upstream.cancel()
        return subscription
