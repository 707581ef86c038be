"""Transcript replay backend.

Replays a prepared transcript word by word on a worker thread, publishing
growing interim results the way a live engine would. Useful for demos and
for exercising consumers against events arriving from a foreign thread.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from unistt.backends.base import BaseSTTBackend
from unistt.exceptions import TranscriptError
from unistt.locales import canonical_locale
from unistt.models import Result, Segment, Status

logger = logging.getLogger(__name__)


class TranscriptSegment(BaseModel):
    """A single word or phrase of a transcript."""

    text: str
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class Transcript(BaseModel):
    """Transcript contents: utterances made of segments."""

    locale: str | None = Field(default=None)
    locales: list[str] = Field(default_factory=list)
    utterances: list[list[TranscriptSegment]] = Field(default_factory=list)


def load_transcript(path: Path) -> Transcript:
    """Load a transcript file.

    JSON and YAML files are validated against ``Transcript``. Any other
    file is read as plain text: one utterance per non-empty line, one
    segment per word, confidence 1.0.

    Args:
        path: Path to the transcript.

    Returns:
        Parsed Transcript.

    Raises:
        TranscriptError: If the file is missing or malformed.
    """
    if not path.exists():
        raise TranscriptError(f"Transcript not found: {path}")

    suffix = path.suffix.lower()
    try:
        raw = path.read_text(encoding="utf-8")
        if suffix == ".json":
            data = json.loads(raw)
        elif suffix in (".yml", ".yaml"):
            data = yaml.safe_load(raw) or {}
        else:
            data = {
                "utterances": [
                    [{"text": word} for word in line.split()]
                    for line in raw.splitlines()
                    if line.strip()
                ]
            }
        transcript = Transcript.model_validate(data)
    except (OSError, json.JSONDecodeError, yaml.YAMLError, ValidationError) as e:
        raise TranscriptError(f"Failed to load transcript {path}: {e}") from e

    try:
        if transcript.locale is not None:
            transcript.locale = canonical_locale(transcript.locale)
        transcript.locales = sorted({canonical_locale(loc) for loc in transcript.locales})
    except ValueError as e:
        raise TranscriptError(f"Invalid locale in transcript {path}: {e}") from e

    return transcript


class ReplayBackend(BaseSTTBackend):
    """Backend replaying a transcript file on a background thread.

    The transcript is loaded when a session starts. Locales declared in
    the transcript are announced once loading succeeds. ``done`` ends the
    session early with a final result for the words replayed so far;
    ``stop`` ends it without one. An exhausted transcript behaves like
    ``done``.
    """

    def __init__(
        self,
        transcript_path: Path | str,
        interval_s: float = 0.25,
        locale: str = "en_US",
    ) -> None:
        """Initialize the replay backend.

        Args:
            transcript_path: Transcript to replay.
            interval_s: Delay between words.
            locale: Initial locale, used when the transcript declares none.
        """
        super().__init__(locale=locale)
        self._path = Path(transcript_path)
        self._interval_s = interval_s

        self._thread: threading.Thread | None = None
        self._halt = threading.Event()
        self._discard = False

    @property
    def transcript_path(self) -> Path:
        """Path of the replayed transcript."""
        return self._path

    @property
    def available(self) -> bool:
        return self._path.exists()

    @property
    def is_running(self) -> bool:
        """Whether a replay session is in progress."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return

        self._halt.clear()
        self._discard = False
        self._publish_status(Status.PREPARING)
        self._thread = threading.Thread(target=self._replay, daemon=True)
        self._thread.start()
        logger.info(f"Replaying transcript: {self._path}")

    def stop(self) -> None:
        if not self.is_running:
            return
        self._discard = True
        self._halt.set()

    def done(self) -> None:
        if not self.is_running:
            return
        self._halt.set()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the replay thread to finish."""
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _replay(self) -> None:
        """Worker loop running in the background thread."""
        try:
            transcript = load_transcript(self._path)
        except TranscriptError as e:
            self._publish_error(e)
            self._publish_status(Status.UNAVAILABLE)
            return

        if transcript.locales:
            self._publish_available_locales(transcript.locales)

        locale = transcript.locale or self.locale
        self._publish_status(Status.RECORDING)

        segments: list[Segment] = []
        for utterance in transcript.utterances:
            for item in utterance:
                if self._halt.wait(self._interval_s):
                    break
                segments.append(Segment(text=item.text, confidence=item.confidence))
                self._publish_result(Result.from_segments(segments, locale=locale))
            else:
                continue
            break

        if self._discard:
            logger.debug("Replay stopped, discarding result")
            self._publish_status(Status.IDLE)
            return

        self._publish_status(Status.PROCESSING)
        if segments:
            self._publish_result(
                Result.from_segments(segments, locale=locale, is_final=True)
            )
        self._publish_status(Status.IDLE)
        logger.info(f"Replay finished: {len(segments)} segment(s)")
