"""
Network-wide metrics over aggregates and concentration risk classification.

- compute_network_metrics(): summary-card figures (distinct operators/strategies, totals,
  top AVS by ETH value).
- concentration_risk(): buckets upstream concentration figures into a RiskLevel. The
  Herfindahl index is consumed here, never computed.
- strategy_risk_rows() / high_risk_summary(): the strategy concentration view and its
  high-risk share (top-5 holders above the critical threshold).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .constants import (
    RISK_HHI_CRITICAL,
    RISK_HHI_WARNING,
    RISK_TOP5_CRITICAL,
    RISK_TOP5_WARNING,
)
from .coerce import concentration_from_record, to_number
from .schema import (
    Aggregate,
    AvsRanking,
    ConcentrationMetrics,
    HighRiskSummary,
    NetworkMetrics,
    RiskLevel,
    StrategyRisk,
)

__all__ = [
    "compute_network_metrics",
    "concentration_risk",
    "risk_label",
    "strategy_risk_rows",
    "high_risk_summary",
]

_RISK_LABELS: dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: "High Risk",
    RiskLevel.WARNING: "Medium Risk",
    RiskLevel.POSITIVE: "Low Risk",
    RiskLevel.NEUTRAL: "Unknown",
}


def compute_network_metrics(aggregates: Mapping[str, Aggregate], top: int = 5) -> NetworkMetrics:
    """Summarize all aggregates into NetworkMetrics.

    Args:
        aggregates: Mapping of AVS id to Aggregate (as returned by aggregate_relationships).
        top: Number of AVS to keep in ``top_avs_by_value``.

    Returns:
        NetworkMetrics: Totals and the top AVS by ETH value (descending).
    """
    operators: set[str] = set()
    strategies: set[str] = set()
    total_eth = 0.0
    total_usd = 0.0
    for agg in aggregates.values():
        operators.update(agg.unique_operators)
        strategies.update(agg.unique_strategies)
        total_eth += agg.total_eth
        total_usd += agg.total_usd

    ranked = sorted(aggregates.values(), key=lambda a: a.total_eth, reverse=True)
    top_rows = [
        AvsRanking(
            address=agg.avs_address,
            eth_value=agg.total_eth,
            usd_value=agg.total_usd,
            operator_count=len(agg.unique_operators),
        )
        for agg in ranked[: max(top, 0)]
    ]
    return NetworkMetrics(
        total_avs=len(aggregates),
        total_operators=len(operators),
        total_strategies=len(strategies),
        total_eth_value=total_eth,
        total_usd_value=total_usd,
        top_avs_by_value=top_rows,
    )


def concentration_risk(metrics: ConcentrationMetrics | None) -> RiskLevel:
    """Classify concentration metrics into a RiskLevel.

    critical: top-5 share > 75% or HHI > 0.25
    warning: top-5 share > 50% or HHI > 0.15
    positive: otherwise; neutral when metrics are missing.
    """
    if metrics is None:
        return RiskLevel.NEUTRAL
    top5 = metrics.top5_holders_percentage
    hhi = metrics.herfindahl_index
    if top5 > RISK_TOP5_CRITICAL or hhi > RISK_HHI_CRITICAL:
        return RiskLevel.CRITICAL
    if top5 > RISK_TOP5_WARNING or hhi > RISK_HHI_WARNING:
        return RiskLevel.WARNING
    return RiskLevel.POSITIVE


def risk_label(level: RiskLevel) -> str:
    return _RISK_LABELS.get(level, "Unknown")


def strategy_risk_rows(
    assets_per_strategy: Mapping[str, Any],
    concentration: Mapping[str, Any] | None = None,
) -> list[StrategyRisk]:
    """Join per-strategy assets with their concentration figures.

    Args:
        assets_per_strategy: Raw ``totalRestakedAssetsPerStrategy`` mapping.
        concentration: Raw ``strategyConcentrationMetrics`` mapping (entries may be
            missing or malformed; those rows classify as neutral).

    Returns:
        list[StrategyRisk]: Strategies with positive assets, largest first (ties keep
        upstream order).

    Examples:
        >>> rows = strategy_risk_rows({"cb_eth": 5, "st_eth": 9, "empty": 0},
        ...                           {"st_eth": {"top5HoldersPercentage": 80}})
        >>> [(r.name, r.level.value) for r in rows]
        [('st eth', 'critical'), ('cb eth', 'neutral')]
    """
    concentration = concentration or {}
    rows: list[StrategyRisk] = []
    for strategy, raw_assets in assets_per_strategy.items():
        assets = to_number(raw_assets)
        if assets <= 0:
            continue
        metrics = concentration_from_record(concentration.get(strategy))
        rows.append(
            StrategyRisk(
                strategy=str(strategy),
                name=str(strategy).replace("_", " "),
                assets=assets,
                metrics=metrics,
                level=concentration_risk(metrics),
            )
        )
    rows.sort(key=lambda r: r.assets, reverse=True)
    return rows


def high_risk_summary(rows: Iterable[StrategyRisk]) -> HighRiskSummary:
    """Sum assets of strategies whose top-5 holder share exceeds the critical threshold.

    The share is relative to the assets of all given rows, in percent.
    """
    total = 0.0
    high = 0.0
    count = 0
    for row in rows:
        total += row.assets
        if row.metrics is not None and row.metrics.top5_holders_percentage > RISK_TOP5_CRITICAL:
            high += row.assets
            count += 1
    share = high / total * 100.0 if total > 0 else 0.0
    return HighRiskSummary(strategies=count, eth_value=high, share_percent=share)
