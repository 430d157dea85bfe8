"""
rwatch — Restaking relationship aggregation library behind the Restake Watch dashboard.

## Packages
- rwatch.core — Zero-IO contracts: constants, errors, pydantic models, record coercion,
  the AVS aggregator, Top-N summarizers and network/concentration metrics.
- rwatch.io — Upstream API client, relationship fetcher, refresh cycle, settings and CSV export.
- rwatch.viz — Read-only Polars transforms used by the dashboard tables.

## Import DAG discipline
- core imports only stdlib + pydantic.
- io imports core, httpx, pydantic and stdlib.
- viz imports core and polars.
- Nothing here imports the Streamlit app package.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
