"""URL-safe slug helpers."""

from __future__ import annotations

import re
import secrets
import string

_ALPHABET = string.ascii_lowercase + string.digits
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_REPEATED_DASH = re.compile(r"-{2,}")

SUFFIX_LENGTH = 6


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    """Return a random base36 suffix."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def slugify(name: str) -> str:
    slug = _NON_ALNUM.sub("-", name.lower())
    slug = _REPEATED_DASH.sub("-", slug)
    return slug.strip("-")


def unique_slug(name: str, fallback: str) -> str:
    """Slugify ``name`` (or use ``fallback`` when nothing survives) plus a random suffix."""
    return f"{slugify(name) or fallback}-{random_suffix()}"
