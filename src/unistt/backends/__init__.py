"""Speech recognition backend implementations."""

from unistt.backends.base import BaseSTTBackend
from unistt.backends.replay import ReplayBackend, load_transcript
from unistt.backends.scripted import ScriptedBackend

__all__ = [
    "BaseSTTBackend",
    "ReplayBackend",
    "ScriptedBackend",
    "load_transcript",
]
