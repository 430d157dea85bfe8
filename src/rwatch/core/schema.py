"""
Pydantic v2 models for relationships, per-AVS aggregates and derived summaries.

Responsibilities
- Define the canonical Relationship record (the atomic AVS/operator/strategy fact).
- Define the mutable per-AVS Aggregate built by rwatch.core.aggregate.
- Define derived, read-only summaries (BreakdownEntry, AvsRanking, NetworkMetrics,
  ConcentrationMetrics, StrategyRisk, HighRiskSummary).

Style
- Zero-IO (stdlib + pydantic only).
- Python field names are lower_snake; serialization aliases are the camelCase names
  consumed by the dashboard (``model_dump(by_alias=True)``). Both are accepted on input.

References
- coercion boundary: rwatch/core/coerce.py
- aggregator: rwatch/core/aggregate.py
- tests: tests/core/*
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .constants import UNKNOWN

__all__ = [
    "Relationship",
    "RelationshipKey",
    "Aggregate",
    "BreakdownEntry",
    "AvsRanking",
    "NetworkMetrics",
    "ConcentrationMetrics",
    "RiskLevel",
    "StrategyRisk",
    "HighRiskSummary",
]

RelationshipKey = tuple[str, str, str]


class Relationship(BaseModel):
    """
    One (AVS, operator, strategy) fact with its share/value fields and status date.

    Attributes:
        avs_address (str): First-level id (alias ``avsAddress``).
        operator_address (str): Second-level id (alias ``operatorAddress``).
        strategy_address (str): Third-level id (alias ``strategyAddress``).
        shares (float): Share amount; 0 when the source was not numeric.
        eth_value (float): Value in ETH (alias ``ethValue``).
        usd_value (float): Value in USD (alias ``usdValue``).
        status_date (str): Upstream status date or "Unknown" (alias ``statusDate``).

    Notes:
        The dedup identity is ``key`` (the ordered id triple); numeric fields do not
        participate.

    Examples:
        >>> from rwatch.core.schema import Relationship
        >>> r = Relationship(avsAddress="A", operatorAddress="X", strategyAddress="P", ethValue=10)
        >>> r.key
        ('A', 'X', 'P')
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    avs_address: str = Field(alias="avsAddress")
    operator_address: str = Field(alias="operatorAddress")
    strategy_address: str = Field(alias="strategyAddress")
    shares: float = 0.0
    eth_value: float = Field(default=0.0, alias="ethValue")
    usd_value: float = Field(default=0.0, alias="usdValue")
    status_date: str = Field(default=UNKNOWN, alias="statusDate")

    @property
    def key(self) -> RelationshipKey:
        return (self.avs_address, self.operator_address, self.strategy_address)


class Aggregate(BaseModel):
    """
    Per-AVS rollup of all constituent relationships.

    Attributes:
        avs_address (str): AVS id this aggregate belongs to.
        total_eth (float): Running ETH sum (alias ``totalETH``).
        total_usd (float): Running USD sum (alias ``totalUSD``).
        unique_operators (list[str]): Distinct operator ids in first-seen order.
        unique_strategies (list[str]): Distinct strategy ids in first-seen order.
        relationships (list[Relationship]): Constituents in fold order.
        latest_status_date (str): Latest valid status date, or "Unknown".

    Notes:
        - Membership checks for the unique lists go through private sets; use
          ``add_operator``/``add_strategy`` rather than appending to the lists.
        - Instances are mutated only by rwatch.core.aggregate during one fold.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    avs_address: str = Field(alias="avsAddress")
    total_eth: float = Field(default=0.0, alias="totalETH")
    total_usd: float = Field(default=0.0, alias="totalUSD")
    unique_operators: list[str] = Field(default_factory=list, alias="uniqueOperators")
    unique_strategies: list[str] = Field(default_factory=list, alias="uniqueStrategies")
    relationships: list[Relationship] = Field(default_factory=list)
    latest_status_date: str = Field(default=UNKNOWN, alias="latestStatusDate")

    _operator_set: set[str] = PrivateAttr(default_factory=set)
    _strategy_set: set[str] = PrivateAttr(default_factory=set)

    def model_post_init(self, __context: object) -> None:
        self._operator_set = set(self.unique_operators)
        self._strategy_set = set(self.unique_strategies)

    def add_operator(self, operator: str) -> bool:
        """Add an operator id if unseen; return True when it was added."""
        if operator in self._operator_set:
            return False
        self._operator_set.add(operator)
        self.unique_operators.append(operator)
        return True

    def add_strategy(self, strategy: str) -> bool:
        """Add a strategy id if unseen; return True when it was added."""
        if strategy in self._strategy_set:
            return False
        self._strategy_set.add(strategy)
        self.unique_strategies.append(strategy)
        return True

    @property
    def relationship_count(self) -> int:
        return len(self.relationships)


class BreakdownEntry(BaseModel):
    """
    One row of a Top-N breakdown (operator view or strategy view).

    Attributes:
        address (str): Operator or strategy id.
        eth_value (float): Summed ETH value over matching constituents.
        usd_value (float): Summed USD value over matching constituents.
        count (int): Number of matching constituents.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    address: str
    eth_value: float = Field(default=0.0, alias="ethValue")
    usd_value: float = Field(default=0.0, alias="usdValue")
    count: int = 0


class AvsRanking(BaseModel):
    """Ranking row for the top AVS list of NetworkMetrics."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    address: str
    eth_value: float = Field(alias="ethValue")
    usd_value: float = Field(alias="usdValue")
    operator_count: int = Field(alias="operatorCount")


class NetworkMetrics(BaseModel):
    """
    Network-wide summary over all aggregates (summary cards of the dashboard).

    Attributes:
        total_avs (int): Number of aggregates.
        total_operators (int): Distinct operators across all aggregates.
        total_strategies (int): Distinct strategies across all aggregates.
        total_eth_value (float): Sum of aggregate ETH totals.
        total_usd_value (float): Sum of aggregate USD totals.
        top_avs_by_value (list[AvsRanking]): Largest AVS by ETH value, descending.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_avs: int = Field(default=0, alias="totalAVS")
    total_operators: int = Field(default=0, alias="totalOperators")
    total_strategies: int = Field(default=0, alias="totalStrategies")
    total_eth_value: float = Field(default=0.0, alias="totalEthValue")
    total_usd_value: float = Field(default=0.0, alias="totalUsdValue")
    top_avs_by_value: list[AvsRanking] = Field(default_factory=list, alias="topAVSByValue")


class ConcentrationMetrics(BaseModel):
    """
    Upstream-provided concentration figures for one strategy (consumed, not computed).

    Attributes:
        total_assets (float): Restaked assets under the strategy.
        total_entities (int): Number of holders.
        top5_holders_percentage (float): Share held by the five largest holders, in percent.
        herfindahl_index (float): Herfindahl-Hirschman index in [0, 1].
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_assets: float = Field(default=0.0, alias="totalAssets")
    total_entities: int = Field(default=0, alias="totalEntities")
    top5_holders_percentage: float = Field(default=0.0, alias="top5HoldersPercentage")
    herfindahl_index: float = Field(default=0.0, ge=0.0, le=1.0, alias="herfindahlIndex")


class RiskLevel(str, Enum):
    """Concentration risk bucket derived from ConcentrationMetrics."""

    CRITICAL = "critical"
    WARNING = "warning"
    POSITIVE = "positive"
    NEUTRAL = "neutral"


class StrategyRisk(BaseModel):
    """
    One row of the strategy concentration view.

    Attributes:
        strategy (str): Raw strategy key as reported upstream.
        name (str): Display name (underscores replaced by spaces).
        assets (float): Total restaked assets (ETH) under the strategy.
        metrics (ConcentrationMetrics | None): Upstream concentration figures, if any.
        level (RiskLevel): Bucket derived from ``metrics``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    strategy: str
    name: str
    assets: float = 0.0
    metrics: ConcentrationMetrics | None = None
    level: RiskLevel = RiskLevel.NEUTRAL


class HighRiskSummary(BaseModel):
    """Assets held by strategies whose top-5 holder share exceeds the critical threshold."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    strategies: int = 0
    eth_value: float = Field(default=0.0, alias="highRiskEthValue")
    share_percent: float = Field(default=0.0, alias="highRiskPercentage")
