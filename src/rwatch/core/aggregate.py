"""
AVS aggregator: a single left-to-right fold from relationships to per-AVS aggregates.

Overview
- AvsAggregator.add() applies one relationship to the running state.
- aggregate_relationships() folds a whole sequence and returns ``dict[avs, Aggregate]``.

Fold rules (per item, in sequence order)
- Items whose AVS id is not a non-empty string are skipped and counted as failed.
- Values coerce to 0 when non-numeric; related ids coerce to None when not non-empty strings.
- An aggregate is created only from a complete item (operator and strategy both present);
  an incomplete first item for an AVS is skipped and counted as failed.
- Once an aggregate exists, every item for that AVS is appended (None ids become "Unknown"),
  totals are incremented, non-null related ids join the unique lists, and the latest status
  date moves forward only on a strictly later valid date.

Notes
- Inputs may be Relationship models or raw mappings keyed by the camelCase output names
  (``avsAddress``, ``operatorAddress``, ...) or the snake_case field names.
- Output mapping order follows first creation; callers sort explicitly for display.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .coerce import parse_status_date, to_id, to_number
from .constants import UNKNOWN
from .schema import Aggregate, Relationship

__all__ = [
    "AvsAggregator",
    "aggregate_relationships",
]

logger = logging.getLogger(__name__)

_FIELDS: tuple[tuple[str, str], ...] = (
    ("avsAddress", "avs_address"),
    ("operatorAddress", "operator_address"),
    ("strategyAddress", "strategy_address"),
    ("shares", "shares"),
    ("ethValue", "eth_value"),
    ("usdValue", "usd_value"),
    ("statusDate", "status_date"),
)


def _view(item: Relationship | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(item, Relationship):
        return {alias: getattr(item, name) for alias, name in _FIELDS}
    if isinstance(item, Mapping):
        return {alias: item.get(alias, item.get(name)) for alias, name in _FIELDS}
    return {}


class AvsAggregator:
    """Stateful fold over relationships keyed by AVS id.

    Attributes:
        aggregates (dict[str, Aggregate]): Aggregates created so far.
        failed (int): Items skipped (invalid AVS id, or incomplete first item).

    Examples:
        >>> from rwatch.core.aggregate import AvsAggregator
        >>> agg = AvsAggregator()
        >>> agg.add({"avsAddress": "A", "operatorAddress": "X", "strategyAddress": "P", "ethValue": 2})
        True
        >>> agg.result()["A"].total_eth
        2.0
    """

    def __init__(self) -> None:
        self.aggregates: dict[str, Aggregate] = {}
        self.failed = 0

    def add(self, item: Relationship | Mapping[str, Any]) -> bool:
        """Apply one relationship; return False when it was skipped."""
        row = _view(item)
        avs = to_id(row["avsAddress"])
        if avs is None:
            self.failed += 1
            return False

        operator = to_id(row["operatorAddress"])
        strategy = to_id(row["strategyAddress"])
        eth = to_number(row["ethValue"])
        usd = to_number(row["usdValue"])

        aggregate = self.aggregates.get(avs)
        if aggregate is None:
            if operator is None or strategy is None:
                self.failed += 1
                return False
            aggregate = Aggregate(avs_address=avs)
            self.aggregates[avs] = aggregate

        status = row["statusDate"]
        status_date = status if isinstance(status, str) and status else UNKNOWN
        aggregate.relationships.append(
            Relationship(
                avs_address=avs,
                operator_address=operator or UNKNOWN,
                strategy_address=strategy or UNKNOWN,
                shares=to_number(row["shares"]),
                eth_value=eth,
                usd_value=usd,
                status_date=status_date,
            )
        )
        aggregate.total_eth += eth
        aggregate.total_usd += usd
        if operator is not None:
            aggregate.add_operator(operator)
        if strategy is not None:
            aggregate.add_strategy(strategy)
        self._update_latest(aggregate, status_date)
        return True

    def extend(self, items: Iterable[Relationship | Mapping[str, Any]]) -> None:
        for item in items:
            self.add(item)

    def result(self) -> dict[str, Aggregate]:
        return self.aggregates

    @staticmethod
    def _update_latest(aggregate: Aggregate, status_date: str) -> None:
        incoming = parse_status_date(status_date)
        if incoming is None:
            return
        stored = parse_status_date(aggregate.latest_status_date)
        # Ties keep the earliest-seen value.
        if stored is None or incoming > stored:
            aggregate.latest_status_date = status_date


def aggregate_relationships(
    items: Iterable[Relationship | Mapping[str, Any]],
) -> dict[str, Aggregate]:
    """Fold relationships into a mapping of AVS id to Aggregate.

    Args:
        items: Deduplicated relationships in fetch order (models or raw mappings).

    Returns:
        dict[str, Aggregate]: One aggregate per AVS id that had at least one complete
        relationship. Replaying the same input reproduces identical totals.
    """
    aggregator = AvsAggregator()
    aggregator.extend(items)
    if aggregator.failed:
        logger.warning("Skipped %d relationships during aggregation", aggregator.failed)
    logger.debug("Built %d aggregates", len(aggregator.aggregates))
    return aggregator.result()
