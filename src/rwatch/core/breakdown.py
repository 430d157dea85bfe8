"""
Top-N summarizers over an aggregate's constituent relationships.

Two views share one implementation:
- operator view: group by ``operator_address``
- strategy view: group by ``strategy_address``

Entries carry summed ETH, summed USD and an occurrence count and are sorted descending
by summed ETH (Python's stable sort; equal sums keep first-seen order). Relationships
whose id on the target dimension is missing or empty are excluded from the view.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Literal

from .coerce import to_id, to_number
from .schema import Aggregate, BreakdownEntry, Relationship

__all__ = [
    "Dimension",
    "summarize_by",
    "operator_breakdown",
    "strategy_breakdown",
]

Dimension = Literal["operator", "strategy"]

_DIMENSION_FIELDS: dict[str, tuple[str, str]] = {
    "operator": ("operator_address", "operatorAddress"),
    "strategy": ("strategy_address", "strategyAddress"),
}


def _get(item: Relationship | Mapping[str, Any], name: str, alias: str) -> Any:
    if isinstance(item, Relationship):
        return getattr(item, name)
    if isinstance(item, Mapping):
        return item.get(alias, item.get(name))
    return None


def summarize_by(
    relationships: Iterable[Relationship | Mapping[str, Any]],
    dimension: Dimension,
    limit: int | None = None,
) -> list[BreakdownEntry]:
    """Group relationships by operator or strategy and rank by summed ETH value.

    Args:
        relationships: Constituents of one aggregate (models or camelCase mappings).
        dimension: "operator" or "strategy".
        limit: Optional cap on the number of entries returned (None returns all).

    Returns:
        list[BreakdownEntry]: Entries sorted descending by ``eth_value``.

    Raises:
        ValueError: If ``dimension`` is not "operator" or "strategy".
    """
    if dimension not in _DIMENSION_FIELDS:
        raise ValueError(f"unknown breakdown dimension: {dimension!r}")
    name, alias = _DIMENSION_FIELDS[dimension]

    sums: dict[str, list[float]] = {}
    for rel in relationships:
        key = to_id(_get(rel, name, alias))
        if key is None:
            continue
        acc = sums.setdefault(key, [0.0, 0.0, 0.0])
        acc[0] += to_number(_get(rel, "eth_value", "ethValue"))
        acc[1] += to_number(_get(rel, "usd_value", "usdValue"))
        acc[2] += 1

    entries = [
        BreakdownEntry(address=key, eth_value=eth, usd_value=usd, count=int(count))
        for key, (eth, usd, count) in sums.items()
    ]
    entries.sort(key=lambda e: e.eth_value, reverse=True)
    if limit is not None and limit >= 0:
        return entries[:limit]
    return entries


def operator_breakdown(aggregate: Aggregate, limit: int | None = None) -> list[BreakdownEntry]:
    """Operator view of one aggregate."""
    return summarize_by(aggregate.relationships, "operator", limit)


def strategy_breakdown(aggregate: Aggregate, limit: int | None = None) -> list[BreakdownEntry]:
    """Strategy view of one aggregate."""
    return summarize_by(aggregate.relationships, "strategy", limit)
