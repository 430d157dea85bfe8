"""
Core package for Restake Watch contracts (models, coercion, aggregation, summaries).

## Contracts (single source of truth)
- Schema — Relationship, Aggregate and derived summary models.
- Coercion — the one boundary between untyped upstream records and typed models.
- Aggregation — the per-AVS fold and its Top-N summarizers.
- Metrics — network totals, concentration risk buckets and the strategy risk view.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Serialization aliases are the camelCase names used by the dashboard and CSV export.

## Downstream usage
- rwatch.io — validates upstream records with ``coerce.relationship_from_record`` and
  folds fetched relationships with ``aggregate.aggregate_relationships``.
- rwatch.viz / app — read Aggregate and BreakdownEntry models to build tables and charts.

## Examples
```python
from rwatch.core import aggregate_relationships, strategy_breakdown
aggs = aggregate_relationships([
    {"avsAddress": "A", "operatorAddress": "X", "strategyAddress": "P", "ethValue": 10},
    {"avsAddress": "A", "operatorAddress": "Z", "strategyAddress": "P", "ethValue": 3},
])
aggs["A"].total_eth  # 13.0
strategy_breakdown(aggs["A"])[0].address  # 'P'
```
"""

from __future__ import annotations

from .aggregate import AvsAggregator, aggregate_relationships
from .breakdown import operator_breakdown, strategy_breakdown, summarize_by
from .coerce import concentration_from_record, relationship_from_record
from .errors import RecordValidationFailure
from .metrics import (
    compute_network_metrics,
    concentration_risk,
    high_risk_summary,
    risk_label,
    strategy_risk_rows,
)
from .schema import (
    Aggregate,
    AvsRanking,
    BreakdownEntry,
    ConcentrationMetrics,
    HighRiskSummary,
    NetworkMetrics,
    Relationship,
    RiskLevel,
    StrategyRisk,
)

__all__ = [
    "Aggregate",
    "AvsAggregator",
    "AvsRanking",
    "BreakdownEntry",
    "ConcentrationMetrics",
    "HighRiskSummary",
    "NetworkMetrics",
    "RecordValidationFailure",
    "Relationship",
    "RiskLevel",
    "StrategyRisk",
    "aggregate_relationships",
    "compute_network_metrics",
    "concentration_from_record",
    "concentration_risk",
    "high_risk_summary",
    "operator_breakdown",
    "relationship_from_record",
    "risk_label",
    "strategy_breakdown",
    "strategy_risk_rows",
    "summarize_by",
]
