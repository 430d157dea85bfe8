"""
Strategy concentration fetch: one GET, joined into StrategyRisk rows.

Failure policy matches the relationship fetch: any top-level failure is logged and
collapses to an empty list, so callers read ``[]`` as "no data or source unavailable".
"""

from __future__ import annotations

import logging

from rwatch.core.metrics import strategy_risk_rows
from rwatch.core.schema import StrategyRisk

from .client import RestakeApiClient
from .errors import UpstreamError

__all__ = ["fetch_strategy_risk"]

logger = logging.getLogger(__name__)


async def fetch_strategy_risk(client: RestakeApiClient) -> list[StrategyRisk]:
    """Fetch per-strategy assets and concentration metrics and classify each strategy."""
    if not client.settings.strategy_url:
        logger.debug("No strategy_url configured; skipping strategy concentration fetch")
        return []
    try:
        assets, concentration = await client.fetch_strategy_concentration()
    except UpstreamError as e:
        logger.error("Strategy concentration fetch failed: %s", e)
        return []
    rows = strategy_risk_rows(assets, concentration)
    logger.info("Fetched concentration data for %d strategies", len(rows))
    return rows
