"""
Relationship fetcher: one broad query, one follow-up per discovered AVS, deduplicated merge.

Overview
- discover_avs_ids(): distinct AVS ids of a raw batch, in first-appearance order.
- RelationshipSet: insertion-ordered set of Relationship keyed by the (avs, operator,
  strategy) triple; first-seen wins.
- RelationshipFetcher.fetch_relationships(): the N+1 request cycle.

Failure isolation
- Initial request failure (UpstreamUnavailable / MalformedResponse, or anything unexpected)
  collapses the cycle to an empty list. Callers must read ``[]`` as "no data or total failure".
- Follow-up failures are recorded as PerIdFetchFailure, logged, and the id is skipped.
- Records missing an id are dropped at the coercion boundary and only counted.

Ordering
- Follow-ups may run concurrently (ApiSettings.max_concurrency), but batches are always
  merged in discovery order: initial batch first, then each AVS batch in the order its id
  first appeared. "First seen" is therefore independent of completion order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from rwatch.core.coerce import relationship_from_record, to_id
from rwatch.core.errors import RecordValidationFailure
from rwatch.core.schema import Relationship, RelationshipKey

from .client import AvsFilters, RestakeApiClient
from .config import ApiSettings
from .errors import PerIdFetchFailure, UpstreamError, UpstreamUnavailable

__all__ = [
    "FetchReport",
    "RelationshipSet",
    "RelationshipFetcher",
    "discover_avs_ids",
]

logger = logging.getLogger(__name__)


def discover_avs_ids(records: Iterable[Any]) -> list[str]:
    """Return distinct non-empty AVS ids from raw records, in first-appearance order."""
    seen: dict[str, None] = {}
    for raw in records:
        if not isinstance(raw, dict):
            continue
        avs = to_id(raw.get("avs"))
        if avs is not None:
            seen.setdefault(avs, None)
    return list(seen)


class RelationshipSet:
    """Insertion-ordered relationship collection deduplicated by the id triple.

    Notes:
        A later duplicate is discarded even when its numeric fields differ (first seen
        wins). Whether upstream duplicates should instead be merged is unresolved;
        FetchReport.duplicates counts how often it happens.

    Examples:
        >>> from rwatch.core.schema import Relationship
        >>> rs = RelationshipSet()
        >>> rs.add(Relationship(avs_address="A", operator_address="X", strategy_address="P", eth_value=10))
        True
        >>> rs.add(Relationship(avs_address="A", operator_address="X", strategy_address="P", eth_value=99))
        False
        >>> len(rs), rs.to_list()[0].eth_value
        (1, 10.0)
    """

    def __init__(self, relationships: Iterable[Relationship] = ()) -> None:
        self._items: dict[RelationshipKey, Relationship] = {}
        self.extend(relationships)

    def add(self, relationship: Relationship) -> bool:
        """Add unless the triple is already present; return True when added."""
        key = relationship.key
        if key in self._items:
            return False
        self._items[key] = relationship
        return True

    def extend(self, relationships: Iterable[Relationship]) -> int:
        """Add many; return how many were new."""
        return sum(1 for rel in relationships if self.add(rel))

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Relationship]:
        return iter(self._items.values())

    def to_list(self) -> list[Relationship]:
        return list(self._items.values())


@dataclass
class FetchReport:
    """Diagnostics for one fetch cycle.

    Attributes:
        requests (int): HTTP requests issued (1 initial + follow-ups).
        avs_ids (list[str]): AVS ids discovered in the initial batch.
        per_id_failures (dict[str, str]): Follow-up failures by AVS id.
        dropped_records (int): Records rejected at the coercion boundary.
        duplicates (int): Valid records discarded because their triple was already present.
        relationships (int): Size of the returned sequence.
        initial_failed (bool): True when the initial request failed.
        status_code (int | None): HTTP status of a failed initial request, if any.
    """

    requests: int = 0
    avs_ids: list[str] = field(default_factory=list)
    per_id_failures: dict[str, str] = field(default_factory=dict)
    dropped_records: int = 0
    duplicates: int = 0
    relationships: int = 0
    initial_failed: bool = False
    status_code: int | None = None


class RelationshipFetcher:
    """Runs the N+1 fetch cycle against a RestakeApiClient.

    Args:
        client (RestakeApiClient): Upstream client.
        settings (ApiSettings | None): Query window and concurrency; defaults to the
            client's settings.

    Attributes:
        last_report (FetchReport | None): Diagnostics of the most recent cycle.
    """

    def __init__(self, client: RestakeApiClient, settings: ApiSettings | None = None) -> None:
        self.client = client
        self.settings = settings or client.settings
        self.last_report: FetchReport | None = None

    async def fetch_relationships(
        self, target_avs: str | None = None, report: FetchReport | None = None
    ) -> list[Relationship]:
        """Fetch, validate and deduplicate relationships.

        Args:
            target_avs: Optional AVS id. When given, only the scoped request is issued.
            report: Optional report to fill in place (overlapping callers pass their own so
                diagnostics never mix between cycles).

        Returns:
            list[Relationship]: Deduplicated relationships in first-seen order; empty on
            any top-level failure.
        """
        report = report if report is not None else FetchReport()
        self.last_report = report

        if target_avs:
            filters = AvsFilters(avs=target_avs)
        else:
            filters = AvsFilters(date_start=self.settings.date_start, date_end=self.settings.date_end)

        logger.info("Fetching relationships (%s)", filters.to_params())
        try:
            report.requests += 1
            records = await self.client.fetch_records(filters)
        except UpstreamError as e:
            report.initial_failed = True
            if isinstance(e, UpstreamUnavailable):
                report.status_code = e.status_code
            logger.error("Initial relationship fetch failed (status=%s): %s", report.status_code, e)
            return []
        except Exception:
            report.initial_failed = True
            logger.exception("Initial relationship fetch failed unexpectedly")
            return []

        merged = RelationshipSet()
        self._merge(merged, records, report)

        if not target_avs:
            report.avs_ids = discover_avs_ids(records)
            batches = await self._fetch_followups(report.avs_ids, report)
            for batch in batches:
                if batch is not None:
                    self._merge(merged, batch, report)

        report.relationships = len(merged)
        if report.dropped_records:
            logger.warning("Dropped %d records with missing ids", report.dropped_records)
        logger.info(
            "Fetched %d relationships from %d requests (%d follow-up failures)",
            report.relationships,
            report.requests,
            len(report.per_id_failures),
        )
        return merged.to_list()

    def _merge(self, merged: RelationshipSet, records: Iterable[Any], report: FetchReport) -> None:
        for raw in records:
            try:
                rel = relationship_from_record(raw)
            except RecordValidationFailure as e:
                report.dropped_records += 1
                logger.debug("Dropped record: %s", e)
                continue
            if not merged.add(rel):
                report.duplicates += 1

    async def _fetch_followups(
        self, avs_ids: list[str], report: FetchReport
    ) -> list[list[Any] | None]:
        semaphore = asyncio.Semaphore(max(self.settings.max_concurrency, 1))

        async def _one(avs: str) -> list[Any] | None:
            async with semaphore:
                report.requests += 1
                try:
                    return await self.client.fetch_records(AvsFilters(avs=avs))
                except Exception as e:
                    failure = PerIdFetchFailure(avs, e)
                    report.per_id_failures[avs] = str(e)
                    logger.warning("%s; skipping", failure)
                    return None

        # gather preserves argument order, which fixes the merge order.
        return list(await asyncio.gather(*(_one(avs) for avs in avs_ids)))
