"""Canonical locale identifiers.

Locales exchanged with backends are plain strings in ``language`` or
``language_REGION`` form (underscore separator, no hyphens) so that set
membership and unions compare cleanly.
"""

from __future__ import annotations

import locale as _locale
import os
import re
from collections.abc import Iterable

from unistt.exceptions import InvalidLocaleError

DEFAULT_LOCALE = "en_US"

_LOCALE_RE = re.compile(r"^(?P<language>[A-Za-z]{2,3})(?:[-_](?P<region>[A-Za-z]{2}|\d{3}))?$")


def canonical_locale(value: str) -> str:
    """Convert a locale identifier to canonical form.

    Accepts ``en``, ``EN``, ``en-US``, ``en_us`` and POSIX style values with
    an encoding or modifier suffix (``en_US.UTF-8``, ``de_DE@euro``).

    Args:
        value: Locale identifier.

    Returns:
        ``language`` or ``language_REGION`` (e.g. "en", "en_US").

    Raises:
        InvalidLocaleError: If the value is not a recognisable locale.
    """
    stripped = value.strip().split(".", 1)[0].split("@", 1)[0]
    match = _LOCALE_RE.match(stripped)
    if match is None:
        raise InvalidLocaleError(f"Invalid locale identifier: {value!r}")

    language = match.group("language").lower()
    region = match.group("region")
    if region:
        return f"{language}_{region.upper()}"
    return language


def canonical_locales(values: Iterable[str]) -> frozenset[str]:
    """Canonicalise a collection of locale identifiers into a set."""
    return frozenset(canonical_locale(v) for v in values)


def language_of(value: str) -> str:
    """Return the language part of a canonical locale ("en_US" -> "en")."""
    return canonical_locale(value).split("_", 1)[0]


def current_locale() -> str:
    """Best guess of the process locale in canonical form.

    Falls back to DEFAULT_LOCALE for the C/POSIX locale or unparsable values.
    """
    candidates = [
        os.environ.get("LC_ALL"),
        os.environ.get("LC_MESSAGES"),
        os.environ.get("LANG"),
        _locale.getlocale()[0],
    ]
    for candidate in candidates:
        if not candidate or candidate in ("C", "POSIX"):
            continue
        try:
            return canonical_locale(candidate)
        except InvalidLocaleError:
            continue
    return DEFAULT_LOCALE
