"""Data models for speech recognition results."""

from __future__ import annotations

import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Status(str, Enum):
    """Current status of a recognition backend."""

    UNAVAILABLE = "unavailable"  # network, permissions, missing model...
    IDLE = "idle"
    PREPARING = "preparing"
    PROCESSING = "processing"  # stopped recording, final result pending
    RECORDING = "recording"


class Mode(str, Enum):
    """Recognition mode hint. Interpretation is up to the backend."""

    TASK = "task"
    SEARCH = "search"
    DICTATION = "dictation"
    UNSPECIFIED = "unspecified"


@dataclass(frozen=True)
class Segment:
    """A fragment of recognized text with its own confidence."""

    text: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        """Convert segment to dictionary."""
        return {"text": self.text, "confidence": self.confidence}


def _mean_confidence(segments: Sequence[Segment]) -> float:
    """Arithmetic mean of segment confidences, NaN for no segments."""
    if not segments:
        return math.nan
    return math.fsum(s.confidence for s in segments) / len(segments)


@dataclass(frozen=True, eq=False)
class Result:
    """A recognition result published by a backend.

    Results compare equal only when their ``id`` matches; content is not
    considered. Treat instances as immutable once published.
    """

    text: str
    confidence: float
    locale: str
    is_final: bool = False
    segments: tuple[Segment, ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if not isinstance(self.segments, tuple):
            object.__setattr__(self, "segments", tuple(self.segments))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @classmethod
    def from_text_and_segments(
        cls,
        text: str,
        segments: Sequence[Segment],
        locale: str,
        is_final: bool = False,
    ) -> Result:
        """Build a result whose confidence is the mean of its segments.

        Args:
            text: The entire recognized string.
            segments: Segments used to compute the confidence.
            locale: Locale the text was recognized in.
            is_final: Whether this is the last result of the session.
        """
        return cls(
            text=text,
            confidence=_mean_confidence(segments),
            locale=locale,
            is_final=is_final,
            segments=tuple(segments),
        )

    @classmethod
    def from_segments(
        cls,
        segments: Sequence[Segment],
        locale: str,
        is_final: bool = False,
    ) -> Result:
        """Build a result from segments alone.

        The text is the space-joined segment texts in order and the
        confidence is the mean of the segment confidences.
        """
        return cls(
            text=" ".join(s.text for s in segments),
            confidence=_mean_confidence(segments),
            locale=locale,
            is_final=is_final,
            segments=tuple(segments),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "confidence": None if math.isnan(self.confidence) else self.confidence,
            "locale": self.locale,
            "is_final": self.is_final,
            "segments": [s.to_dict() for s in self.segments],
        }
