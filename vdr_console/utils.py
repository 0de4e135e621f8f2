# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Small helpers shared by the console apps."""
import re
import time
import unicodedata
from datetime import datetime, timezone
from typing import Any, Optional


def now_iso() -> str:
    """Current UTC time as an ISO 8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_ms() -> int:
    return int(time.time() * 1000)


def strip_accents(value: str) -> str:
    """NFD-normalize and drop combining marks (U+0300-U+036F)."""
    decomposed = unicodedata.normalize("NFD", value)
    return re.sub(r"[\u0300-\u036f]", "", decomposed)


def slugify(value: str, *, accents: bool = False, spaces: bool = True) -> str:
    """Lowercase slug of ``[a-z0-9-]`` with collapsed, trimmed dashes.

    Args:
        value: Text to slugify.
        accents: Strip accents first so ``é`` becomes ``e``.
        spaces: Turn whitespace runs into dashes (otherwise they are dropped).
    """
    slug = value.lower()
    if accents:
        slug = strip_accents(slug)
    if spaces:
        slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def coalesce(value: Any, fallback: Any) -> Any:
    """Return ``value`` unless it is None."""
    return fallback if value is None else value


def drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}
