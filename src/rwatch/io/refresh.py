"""
Refresh cycle: fetch -> aggregate -> atomic snapshot swap, guarded by a generation counter.

Overlapping refreshes are allowed (no cancellation), but only the most recently started
cycle may publish its result. A cycle whose generation is no longer the latest when it
completes is discarded, so a slow early request can never overwrite newer data.

The consumer keeps reading the previous snapshot until a newer one is published.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from rwatch.core.aggregate import aggregate_relationships
from rwatch.core.metrics import compute_network_metrics
from rwatch.core.schema import Aggregate, NetworkMetrics, Relationship

from .fetch import FetchReport, RelationshipFetcher

__all__ = [
    "LoadStatus",
    "Snapshot",
    "DashboardState",
    "build_snapshot",
]

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    """User-visible data states of the dashboard."""

    LOADING = "loading"
    NO_DATA = "no_data"
    EMPTY_AGGREGATES = "empty_aggregates"
    READY = "ready"


@dataclass(frozen=True)
class Snapshot:
    """Immutable result of one completed refresh cycle."""

    generation: int
    relationships: list[Relationship]
    aggregates: dict[str, Aggregate]
    metrics: NetworkMetrics
    fetched_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    report: FetchReport | None = None

    @property
    def status(self) -> LoadStatus:
        if not self.relationships:
            return LoadStatus.NO_DATA
        if not self.aggregates:
            return LoadStatus.EMPTY_AGGREGATES
        return LoadStatus.READY


def build_snapshot(
    relationships: list[Relationship],
    *,
    generation: int = 0,
    report: FetchReport | None = None,
) -> Snapshot:
    """Aggregate fetched relationships and wrap everything in a Snapshot."""
    aggregates = aggregate_relationships(relationships)
    return Snapshot(
        generation=generation,
        relationships=relationships,
        aggregates=aggregates,
        metrics=compute_network_metrics(aggregates),
        report=report,
    )


class DashboardState:
    """Holds the published snapshot and runs generation-guarded refreshes.

    Args:
        fetcher (RelationshipFetcher | None): Default fetcher. A cycle may pass its own, which
            lets one state (and its generation counter) outlive the client of any single
            cycle, e.g. across Streamlit reruns.

    Examples:
        state = DashboardState(fetcher)     # doctest: +SKIP
        await state.refresh()               # doctest: +SKIP
        state.status                        # LoadStatus.READY  # doctest: +SKIP
    """

    def __init__(self, fetcher: RelationshipFetcher | None = None) -> None:
        self.fetcher = fetcher
        self.snapshot: Snapshot | None = None
        self._generation = 0
        self._in_flight = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_refreshing(self) -> bool:
        return self._in_flight > 0

    @property
    def status(self) -> LoadStatus:
        if self.snapshot is None:
            return LoadStatus.LOADING
        return self.snapshot.status

    async def refresh(
        self, target_avs: str | None = None, fetcher: RelationshipFetcher | None = None
    ) -> Snapshot | None:
        """Run one fetch cycle and publish it if it is still the latest.

        Args:
            target_avs: Optional AVS id forwarded to the fetcher.
            fetcher: Fetcher for this cycle; defaults to the one given at construction.

        Returns:
            Snapshot | None: The published snapshot, or None when a newer cycle started
            before this one completed (result discarded).

        Raises:
            ValueError: If no fetcher is available.
        """
        fetcher = fetcher or self.fetcher
        if fetcher is None:
            raise ValueError("DashboardState.refresh needs a fetcher")
        self._generation += 1
        generation = self._generation
        self._in_flight += 1
        try:
            report = FetchReport()
            relationships = await fetcher.fetch_relationships(target_avs, report=report)
        finally:
            self._in_flight -= 1

        if generation != self._generation:
            logger.info(
                "Discarding stale refresh (generation %d, latest %d)", generation, self._generation
            )
            return None

        snapshot = build_snapshot(relationships, generation=generation, report=report)
        self.snapshot = snapshot
        logger.info(
            "Published snapshot generation %d: %d relationships, %d aggregates (%s)",
            generation,
            len(snapshot.relationships),
            len(snapshot.aggregates),
            snapshot.status.value,
        )
        return snapshot
