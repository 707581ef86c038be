"""Scripted backend for tests, demos and UI development."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from unistt.backends.base import BaseSTTBackend
from unistt.models import Result, Status

logger = logging.getLogger(__name__)

ScriptItem = Result | Exception


class ScriptedBackend(BaseSTTBackend):
    """Backend that plays back a fixed script on the calling thread.

    On ``start`` every non-final result and every exception in the script
    is published in order. Final results are held back until ``done`` and
    discarded by ``stop``. Command invocations are counted so callers can
    verify what the coordinator forwarded.
    """

    def __init__(
        self,
        script: Sequence[ScriptItem] = (),
        locale: str = "en_US",
        available_locales: Iterable[str] | None = None,
        available: bool = True,
    ) -> None:
        super().__init__(locale=locale, available_locales=available_locales)
        self._script = list(script)
        self._available = available
        self._pending_final: list[Result] = []

        self.start_count = 0
        self.stop_count = 0
        self.done_count = 0

        if not available:
            self._status.send(Status.UNAVAILABLE)

    @property
    def available(self) -> bool:
        return self._available

    def set_available(self, available: bool) -> None:
        """Change availability and publish the matching status."""
        self._available = available
        self._publish_status(Status.IDLE if available else Status.UNAVAILABLE)

    @property
    def is_recording(self) -> bool:
        """Whether a session is in progress."""
        return self.status == Status.RECORDING

    def start(self) -> None:
        self.start_count += 1
        if self.is_recording:
            return

        self._publish_status(Status.PREPARING)
        self._publish_status(Status.RECORDING)
        self._pending_final = []
        for item in self._script:
            if isinstance(item, Exception):
                self._publish_error(item)
            elif item.is_final:
                self._pending_final.append(item)
            else:
                self._publish_result(item)

    def stop(self) -> None:
        self.stop_count += 1
        if self._pending_final:
            logger.debug(f"Discarding {len(self._pending_final)} final result(s)")
        self._pending_final = []
        if self._available:
            self._publish_status(Status.IDLE)

    def done(self) -> None:
        self.done_count += 1
        if not self.is_recording:
            return

        self._publish_status(Status.PROCESSING)
        pending, self._pending_final = self._pending_final, []
        for result in pending:
            self._publish_result(result)
        self._publish_status(Status.IDLE)

    # Helpers for driving the backend from outside

    def emit_result(self, result: Result) -> None:
        """Publish a result immediately."""
        self._publish_result(result)

    def emit_error(self, error: Exception) -> None:
        """Publish a failure immediately."""
        self._publish_error(error)

    def emit_status(self, status: Status) -> None:
        """Publish a status immediately."""
        self._publish_status(status)

    def announce_locales(self, locales: Iterable[str] | None) -> None:
        """Publish a new available-locales snapshot."""
        self._publish_available_locales(locales)
