"""
Polars table transforms for the dashboard.

Converts core models into display frames and provides the small search/sort/page helpers
used by the AVS table. Read-only by contract: inputs are never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import polars as pl

from rwatch.core.metrics import risk_label
from rwatch.core.schema import Aggregate, BreakdownEntry, Relationship, RiskLevel, StrategyRisk

__all__ = [
    "AGGREGATE_SCHEMA",
    "RELATIONSHIP_SCHEMA",
    "BREAKDOWN_SCHEMA",
    "STRATEGY_RISK_SCHEMA",
    "aggregates_frame",
    "relationships_frame",
    "breakdown_frame",
    "strategy_risk_frame",
    "filter_risk",
    "search_aggregates",
    "sort_frame",
    "paginate",
    "page_count",
    "to_values",
]

AGGREGATE_SCHEMA: dict[str, type[pl.DataType]] = {
    "avs_address": pl.Utf8,
    "total_eth": pl.Float64,
    "total_usd": pl.Float64,
    "unique_operators": pl.Int64,
    "unique_strategies": pl.Int64,
    "relationships": pl.Int64,
    "latest_status_date": pl.Utf8,
}

RELATIONSHIP_SCHEMA: dict[str, type[pl.DataType]] = {
    "avs_address": pl.Utf8,
    "operator_address": pl.Utf8,
    "strategy_address": pl.Utf8,
    "shares": pl.Float64,
    "eth_value": pl.Float64,
    "usd_value": pl.Float64,
    "status_date": pl.Utf8,
}

BREAKDOWN_SCHEMA: dict[str, type[pl.DataType]] = {
    "address": pl.Utf8,
    "eth_value": pl.Float64,
    "usd_value": pl.Float64,
    "count": pl.Int64,
}

STRATEGY_RISK_SCHEMA: dict[str, type[pl.DataType]] = {
    "strategy": pl.Utf8,
    "name": pl.Utf8,
    "assets": pl.Float64,
    "top5_holders_percentage": pl.Float64,
    "herfindahl_index": pl.Float64,
    "total_entities": pl.Int64,
    "risk_level": pl.Utf8,
    "risk": pl.Utf8,
}


def aggregates_frame(aggregates: Mapping[str, Aggregate] | Iterable[Aggregate]) -> pl.DataFrame:
    """One row per aggregate with counts in place of the id lists."""
    items = aggregates.values() if isinstance(aggregates, Mapping) else aggregates
    rows = [
        {
            "avs_address": agg.avs_address,
            "total_eth": agg.total_eth,
            "total_usd": agg.total_usd,
            "unique_operators": len(agg.unique_operators),
            "unique_strategies": len(agg.unique_strategies),
            "relationships": len(agg.relationships),
            "latest_status_date": agg.latest_status_date,
        }
        for agg in items
    ]
    return pl.DataFrame(rows, schema=AGGREGATE_SCHEMA)


def relationships_frame(relationships: Iterable[Relationship]) -> pl.DataFrame:
    rows = [rel.model_dump() for rel in relationships]
    return pl.DataFrame(rows, schema=RELATIONSHIP_SCHEMA)


def breakdown_frame(entries: Iterable[BreakdownEntry]) -> pl.DataFrame:
    rows = [entry.model_dump() for entry in entries]
    return pl.DataFrame(rows, schema=BREAKDOWN_SCHEMA)


def strategy_risk_frame(rows: Iterable[StrategyRisk]) -> pl.DataFrame:
    """One row per strategy; concentration columns are null when upstream had no figures."""
    data = [
        {
            "strategy": row.strategy,
            "name": row.name,
            "assets": row.assets,
            "top5_holders_percentage": row.metrics.top5_holders_percentage if row.metrics else None,
            "herfindahl_index": row.metrics.herfindahl_index if row.metrics else None,
            "total_entities": row.metrics.total_entities if row.metrics else None,
            "risk_level": row.level.value,
            "risk": risk_label(row.level),
        }
        for row in rows
    ]
    return pl.DataFrame(data, schema=STRATEGY_RISK_SCHEMA)


def filter_risk(df: pl.DataFrame, level: RiskLevel | None) -> pl.DataFrame:
    """Keep rows of one risk level; None keeps everything."""
    if level is None or "risk_level" not in df.columns:
        return df
    return df.filter(pl.col("risk_level") == level.value)


def search_aggregates(df: pl.DataFrame, term: str | None, column: str = "avs_address") -> pl.DataFrame:
    """Case-insensitive substring filter on ``column``; blank terms return ``df`` unchanged."""
    if not term or not term.strip() or column not in df.columns:
        return df
    needle = term.strip().lower()
    return df.filter(pl.col(column).str.to_lowercase().str.contains(needle, literal=True))


def sort_frame(df: pl.DataFrame, column: str, *, descending: bool = True) -> pl.DataFrame:
    """Sort by ``column`` (stable); unknown columns leave ``df`` unchanged."""
    if column not in df.columns:
        return df
    return df.sort(column, descending=descending, maintain_order=True)


def page_count(n_rows: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return max((n_rows + page_size - 1) // page_size, 1)


def to_values(df: pl.DataFrame) -> list[dict[str, object]]:
    """Row dicts for inline Vega-Lite data (alt.Data(values=...))."""
    return df.to_dicts()


def paginate(df: pl.DataFrame, page: int, page_size: int) -> pl.DataFrame:
    """Return the 1-based ``page`` of ``df``; pages beyond the end clamp to the last page."""
    pages = page_count(df.height, page_size)
    page = min(max(page, 1), pages)
    return df.slice((page - 1) * page_size, page_size)
