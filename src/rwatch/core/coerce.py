"""
Coercion boundary between untyped upstream records and typed core models.

All type checking of upstream payloads lives here so the fetcher and the
aggregator share one definition of "well-formed number", "valid id" and "valid date".

Rules
- Numbers: int/float (bool excluded) that are finite, or strings that parse as a finite
  float. Anything else coerces to 0.
- Ids: non-empty strings after stripping whitespace; anything else is None.
- Dates: ISO ``YYYY-MM-DD`` or ISO datetimes (a trailing ``Z`` is accepted). Naive
  values are interpreted as UTC. "Unknown" and any other text parse to None.
- Concentration entries: camelCase upstream keys, numbers coerced as above; an HHI
  outside [0, 1] makes the whole entry unusable (None).

Notes:
    - Zero-IO (stdlib + pydantic models from rwatch.core.schema).
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from .constants import RECORD_ID_FIELDS, UNKNOWN
from .errors import RecordValidationFailure
from .schema import ConcentrationMetrics, Relationship

__all__ = [
    "to_number",
    "to_id",
    "parse_status_date",
    "relationship_from_record",
    "concentration_from_record",
]


def to_number(value: Any) -> float:
    """Return ``value`` as a finite float, or 0.0 when it is not a well-formed number.

    Examples:
        >>> to_number(3), to_number("2.5"), to_number(None), to_number("abc"), to_number(True)
        (3.0, 2.5, 0.0, 0.0, 0.0)
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            out = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        try:
            out = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return out if math.isfinite(out) else 0.0


def to_id(value: Any) -> str | None:
    """Return a stripped non-empty string id, or None."""
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def parse_status_date(value: Any) -> datetime | None:
    """Parse a status date into an aware UTC datetime, or None when invalid.

    Args:
        value: Raw status date (typically "YYYY-MM-DD" or an ISO datetime string).

    Returns:
        datetime | None: Parsed timestamp (UTC), or None for non-strings, "Unknown" and
        anything that is not ISO formatted.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text == UNKNOWN:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def relationship_from_record(raw: Any) -> Relationship:
    """Map one raw upstream record to a validated Relationship.

    Args:
        raw: Untyped record with keys ``avs``, ``operator``, ``strategy``, ``shares``,
            ``eth``, ``usd`` and ``status_date`` (all optional on the wire).

    Returns:
        Relationship: Record with ids stripped, numbers coerced and a defaulted date.

    Raises:
        RecordValidationFailure: If ``raw`` is not a mapping or any id is missing/empty.
    """
    if not isinstance(raw, Mapping):
        raise RecordValidationFailure("not_a_mapping")

    ids = {name: to_id(raw.get(name)) for name in RECORD_ID_FIELDS}
    missing = tuple(name for name, val in ids.items() if val is None)
    if missing:
        raise RecordValidationFailure("missing_ids", missing)

    status = raw.get("status_date")
    status_date = status.strip() if isinstance(status, str) and status.strip() else UNKNOWN

    return Relationship(
        avs_address=ids["avs"],
        operator_address=ids["operator"],
        strategy_address=ids["strategy"],
        shares=to_number(raw.get("shares")),
        eth_value=to_number(raw.get("eth")),
        usd_value=to_number(raw.get("usd")),
        status_date=status_date,
    )


def concentration_from_record(raw: Any) -> ConcentrationMetrics | None:
    """Map one raw ``strategyConcentrationMetrics`` entry to ConcentrationMetrics.

    Numbers are coerced like relationship values. Returns None when ``raw`` is not a
    mapping or the Herfindahl index falls outside [0, 1].

    Examples:
        >>> concentration_from_record({"top5HoldersPercentage": "80", "herfindahlIndex": 0.1}).top5_holders_percentage
        80.0
        >>> concentration_from_record({"herfindahlIndex": 4}) is None
        True
    """
    if not isinstance(raw, Mapping):
        return None
    hhi = to_number(raw.get("herfindahlIndex"))
    if not 0.0 <= hhi <= 1.0:
        return None
    return ConcentrationMetrics(
        total_assets=to_number(raw.get("totalAssets")),
        total_entities=int(to_number(raw.get("totalEntities"))),
        top5_holders_percentage=to_number(raw.get("top5HoldersPercentage")),
        herfindahl_index=hhi,
    )
