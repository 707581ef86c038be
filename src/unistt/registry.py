"""Backend registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from unistt.exceptions import BackendNotAvailableError, BackendNotFoundError

if TYPE_CHECKING:
    from unistt.config import BackendConfig
    from unistt.protocol import STTBackend

logger = logging.getLogger(__name__)

# Registry of backend factories by name
_BACKENDS: dict[str, type[STTBackend]] = {}

# Human readable descriptions for listings
_DESCRIPTIONS: dict[str, str] = {}


def register_backend(
    name: str,
    backend_class: type[STTBackend],
    description: str = "",
) -> None:
    """Register a backend implementation.

    Args:
        name: Backend name (e.g., "replay").
        backend_class: Class implementing the STTBackend protocol.
        description: Short description shown by ``list-backends``.
    """
    _BACKENDS[name] = backend_class
    _DESCRIPTIONS[name] = description
    logger.debug(f"Registered STT backend: {name}")


def unregister_backend(name: str) -> None:
    """Unregister a backend (mainly for testing).

    Args:
        name: Backend name to unregister.
    """
    _BACKENDS.pop(name, None)
    _DESCRIPTIONS.pop(name, None)


def get_registered_backends() -> list[str]:
    """Get list of registered backend names.

    Returns:
        List of backend names.
    """
    return list(_BACKENDS.keys())


def get_backend_description(name: str) -> str:
    """Get the description a backend was registered with."""
    if name not in _DESCRIPTIONS:
        raise BackendNotFoundError(f"Backend '{name}' not found")
    return _DESCRIPTIONS[name]


def get_backend(
    name: str,
    require_available: bool = False,
    **kwargs: Any,
) -> STTBackend:
    """Instantiate a backend by name.

    Args:
        name: Registered backend name.
        require_available: Raise if the new backend reports unavailable.
        **kwargs: Passed to the backend constructor.

    Returns:
        Instantiated STTBackend.

    Raises:
        BackendNotFoundError: If the name is not registered.
        BackendNotAvailableError: If ``require_available`` is set and the
            backend is not available.
    """
    if name not in _BACKENDS:
        available = ", ".join(_BACKENDS.keys()) or "none"
        raise BackendNotFoundError(
            f"Backend '{name}' not found. Available: {available}"
        )

    backend = _BACKENDS[name](**kwargs)

    if require_available and not backend.available:
        raise BackendNotAvailableError(
            f"Backend '{name}' is not available. "
            "Check its configuration and dependencies."
        )

    return backend


def create_backend(config: BackendConfig, require_available: bool = False) -> STTBackend:
    """Instantiate the backend described by a configuration section.

    Args:
        config: Backend configuration.
        require_available: Raise if the backend reports unavailable.

    Returns:
        Instantiated STTBackend.
    """
    kwargs: dict[str, Any] = {}
    if config.name == "replay":
        kwargs["transcript_path"] = config.transcript
        kwargs["interval_s"] = config.interval_s
    elif config.name == "scripted":
        kwargs["available_locales"] = config.locales
    return get_backend(config.name, require_available=require_available, **kwargs)


def _register_builtin_backends() -> None:
    """Register built-in backends. Called on module import."""
    from unistt.backends.replay import ReplayBackend
    from unistt.backends.scripted import ScriptedBackend

    register_backend(
        "scripted",
        ScriptedBackend,
        "In-process scripted engine for tests and demos",
    )
    register_backend(
        "replay",
        ReplayBackend,
        "Replays a transcript file on a worker thread",
    )


# Register built-in backends on module import
_register_builtin_backends()
