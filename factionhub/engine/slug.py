"""
factionhub.engine.slug — Human-readable war identifiers
========================================================

Wars are shared in Discord as ``/wars/ballas-202501`` rather than by
UUID.  The slug is the enemy faction plus the UTC year-month the war
started; a numeric suffix disambiguates repeat wars in the same month.
"""

from __future__ import annotations

import re
from datetime import datetime

from factionhub.engine.timestamps import parse_timestamp

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_APOSTROPHES_RE = re.compile(r"['\u2019]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def is_uuid(value: str) -> bool:
    return bool(_UUID_RE.match(value or ""))


def slugify_segment(text: str) -> str:
    """Lower-case *text* and collapse everything non-alphanumeric to ``-``."""
    slug = _APOSTROPHES_RE.sub("", text.lower().strip())
    slug = _NON_ALNUM_RE.sub("-", slug)
    return slug.strip("-")


def format_year_month(value: datetime | str) -> str:
    """Return ``YYYYMM`` for *value* in UTC."""
    dt = parse_timestamp(value)
    if dt is None:
        raise ValueError(f"Invalid date: {value!r}")
    return f"{dt.year}{dt.month:02d}"


def create_war_slug(
    enemy_faction: str, started_at: datetime | str, counter: int = 0
) -> str:
    """Build the slug for a war; ``counter > 0`` appends a suffix."""
    base = f"{slugify_segment(enemy_faction)}-{format_year_month(started_at)}"
    if counter > 0:
        return f"{base}-{counter}"
    return base
