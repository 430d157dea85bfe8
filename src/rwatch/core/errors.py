"""
Core exception types raised by the record coercion boundary.

Provides typed exceptions for core-domain failures:
- RecordValidationFailure for upstream records that cannot become a Relationship.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Network-facing failures (UpstreamUnavailable, MalformedResponse, PerIdFetchFailure)
      live in rwatch.io.errors.

Examples:
    Catch a record with a missing operator.

    >>> from rwatch.core.coerce import relationship_from_record
    >>> from rwatch.core.errors import RecordValidationFailure
    >>> try:
    ...     relationship_from_record({"avs": "C", "operator": None, "strategy": "R"})
    ... except RecordValidationFailure as e:
    ...     missing = e.missing
    >>> missing
    ('operator',)
"""

from __future__ import annotations

__all__ = [
    "RecordValidationFailure",
]


class RecordValidationFailure(ValueError):
    """Upstream record rejected at the coercion boundary (not a mapping, or ids missing).

    Attributes:
        reason (str): Short machine-friendly reason ("not_a_mapping" or "missing_ids").
        missing (tuple[str, ...]): Raw id keys that were absent or empty.
    """

    def __init__(self, reason: str, missing: tuple[str, ...] = ()) -> None:
        self.reason = reason
        self.missing = missing
        detail = f"{reason}: {', '.join(missing)}" if missing else reason
        super().__init__(detail)
