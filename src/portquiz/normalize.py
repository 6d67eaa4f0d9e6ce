"""Name canonicalization used for port record linkage."""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9 ]")

COUNTRY_ALIASES = {
    "United States": "USA",
    "U.S.A.": "USA",
}


def normalize(text: str) -> str:
    """Lower-case, drop characters outside ``[a-z0-9 ]``, collapse whitespace, and trim."""
    spaced = _DISALLOWED.sub("", _WHITESPACE.sub(" ", text.lower()))
    return _WHITESPACE.sub(" ", spaced).strip()


def canonical_country(country: str) -> str:
    """Return the display country with known aliases folded together."""
    stripped = country.strip()
    return COUNTRY_ALIASES.get(stripped, stripped)


def normalized_key(name: str, country: str) -> tuple[str, str]:
    """Return the (name, country) pair two records must share to be the same port."""
    return (normalize(name), normalize(canonical_country(country)))
