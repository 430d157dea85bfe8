"""
rwatch.io — Network and file IO for Restake Watch.

## Responsibilities
- Talk to the upstream relationship API (async httpx) and map failures to typed errors.
- Run the N+1 fetch cycle with per-id failure isolation and first-seen-wins dedup.
- Publish aggregated snapshots behind a generation guard.
- Fetch per-strategy concentration figures for the strategy risk view.
- Export aggregates to CSV.

## Public API
- ApiSettings — Configuration (env > TOML > defaults).
- RestakeApiClient, AvsFilters — Upstream client and query filters.
- RelationshipFetcher, RelationshipSet, FetchReport — Fetch cycle.
- DashboardState, Snapshot, LoadStatus — Generation-guarded refresh.
- fetch_strategy_risk — Strategy concentration rows.
- aggregates_to_csv, write_aggregates_csv — CSV export.

## Import DAG discipline
- Depends only on stdlib, httpx, pydantic and rwatch.core.*.
- MUST NOT import rwatch.viz or the app package.

## Examples
```python
import asyncio
from rwatch.io import ApiSettings, RestakeApiClient, RelationshipFetcher, DashboardState

async def main() -> None:
    settings = ApiSettings.load()
    async with RestakeApiClient(settings) as client:
        state = DashboardState(RelationshipFetcher(client))
        snap = await state.refresh()  # doctest: +SKIP

asyncio.run(main())  # doctest: +SKIP
```
"""

from __future__ import annotations

from .client import AvsFilters, RestakeApiClient
from .config import ApiSettings
from .export import aggregates_to_csv, write_aggregates_csv
from .fetch import FetchReport, RelationshipFetcher, RelationshipSet
from .refresh import DashboardState, LoadStatus, Snapshot, build_snapshot
from .strategies import fetch_strategy_risk

__all__ = [
    "ApiSettings",
    "AvsFilters",
    "DashboardState",
    "FetchReport",
    "LoadStatus",
    "RelationshipFetcher",
    "RelationshipSet",
    "RestakeApiClient",
    "Snapshot",
    "aggregates_to_csv",
    "build_snapshot",
    "fetch_strategy_risk",
    "write_aggregates_csv",
]
