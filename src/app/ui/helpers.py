"""
Shared UI helper utilities for the Restake Watch Streamlit application.

This module centralizes small cross-cutting helpers (accelerators, time and value
formatting, summary-card figures) used by multiple UI components. Keeping these here
avoids circular imports and makes per-tab modules leaner.

Notes:
    - This module is UI-adjacent (uses Altair) but contains no Streamlit state
      manipulation itself.
"""

from __future__ import annotations

from datetime import UTC, datetime

import altair as alt

from rwatch.core.schema import NetworkMetrics


def enable_vegafusion_optional() -> str | None:
    """Attempt to enable the VegaFusion accelerator for Altair if available.

    Returns:
        str | None: Short status message if enabling succeeded, otherwise None.
    """
    try:
        alt.data_transformers.enable("vegafusion")
        return "VegaFusion enabled (optional accelerator)."
    except Exception:
        return None


def humanize_ago(ts: datetime) -> str:
    """Convert an aware datetime into a short humanized age string.

    Args:
        ts (datetime): Timestamp (naive values are read as UTC).

    Returns:
        str: Humanized string like "32s ago", "5m ago", "2h ago", "3d ago".
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    delta = max((datetime.now(tz=UTC) - ts).total_seconds(), 0.0)
    if delta < 60:
        return f"{int(delta)}s ago"
    if delta < 3600:
        return f"{int(delta // 60)}m ago"
    if delta < 86400:
        return f"{int(delta // 3600)}h ago"
    return f"{int(delta // 86400)}d ago"


def format_eth(value: float) -> str:
    """Format an ETH amount with a K/M suffix ("1.2M ETH", "3.4K ETH", "12.00 ETH")."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M ETH"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K ETH"
    return f"{value:.2f} ETH"


def format_usd(value: float) -> str:
    """Format a USD amount with a B/M suffix ("$1.2B", "$3.4M", "$12,345")."""
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.1f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    return f"${round(value):,}"


def short_address(address: str, head: int = 6, tail: int = 4) -> str:
    """Shorten a hex address for display ("0x1234…abcd"); short strings pass through."""
    if len(address) <= head + tail + 1:
        return address
    return f"{address[:head]}…{address[-tail:]}"


def summary_cards(metrics: NetworkMetrics) -> dict[str, str]:
    """Format NetworkMetrics into label -> display value pairs for st.metric cards."""
    return {
        "Total AVS": f"{metrics.total_avs:,}",
        "Operators": f"{metrics.total_operators:,}",
        "Strategies": f"{metrics.total_strategies:,}",
        "Total ETH": format_eth(metrics.total_eth_value),
        "Total USD": format_usd(metrics.total_usd_value),
    }
