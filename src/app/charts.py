from __future__ import annotations

import altair as alt
import polars as pl

from rwatch.core.schema import NetworkMetrics
from rwatch.viz.frames import to_values

_VALUE_FIELDS = {"eth": "eth_value", "usd": "usd_value"}
_VALUE_TITLES = {"eth": "ETH value", "usd": "USD value"}


# Uniform chart defaults for a professional look
def _apply_chart_defaults(ch: alt.TopLevelMixin) -> alt.TopLevelMixin:
    try:
        return (
            ch.configure_axis(labelFontSize=12, titleFontSize=12, grid=True)
            .configure_legend(labelFontSize=12, titleFontSize=12)
            .configure_title(fontSize=14)
            .configure_view(strokeOpacity=0)
        )
    except Exception:
        # If configuration fails (e.g., non-top-level), return chart as-is
        return ch


def _placeholder(text: str) -> alt.TopLevelMixin:
    return _apply_chart_defaults(
        alt.Chart(alt.Data(values=[{"text": text}])).mark_text().encode(text="text:N")
    )


# ----------------------------
# Overview
# ----------------------------


def top_avs_chart(metrics: NetworkMetrics, *, token: str = "eth") -> alt.TopLevelMixin:
    """Horizontal bars of the top AVS by value (order follows metrics.top_avs_by_value)."""
    if not metrics.top_avs_by_value:
        return _placeholder("No AVS to rank")
    field = _VALUE_FIELDS.get(token, "eth_value")
    rows = [r.model_dump() for r in metrics.top_avs_by_value]
    order = [r["address"] for r in rows]
    ch = (
        alt.Chart(alt.Data(values=rows))
        .mark_bar()
        .encode(
            x=alt.X(f"{field}:Q", title=_VALUE_TITLES.get(token, "ETH value")),
            y=alt.Y("address:N", sort=order, title="AVS"),
            tooltip=["address:N", "eth_value:Q", "usd_value:Q", "operator_count:Q"],
        )
        .properties(title="Top AVS by value")
    )
    return _apply_chart_defaults(ch)


# ----------------------------
# Detail view breakdowns
# ----------------------------


def breakdown_chart(
    df: pl.DataFrame,
    *,
    title: str,
    token: str = "eth",
) -> alt.TopLevelMixin:
    """Bar chart over a breakdown frame (address, eth_value, usd_value, count).

    Rows are drawn in frame order, so pass an already ranked (Top-N) frame.
    """
    field = _VALUE_FIELDS.get(token, "eth_value")
    need = {"address", field, "count"}
    if not need.issubset(set(df.columns)):
        raise ValueError(f"breakdown frame missing columns: {sorted(need - set(df.columns))}")
    if df.height == 0:
        return _placeholder("No entries")
    order = df.get_column("address").to_list()
    ch = (
        alt.Chart(alt.Data(values=to_values(df)))
        .mark_bar()
        .encode(
            x=alt.X(f"{field}:Q", title=_VALUE_TITLES.get(token, "ETH value")),
            y=alt.Y("address:N", sort=order, title=None),
            tooltip=["address:N", f"{field}:Q", "count:Q"],
        )
        .properties(title=title)
    )
    return _apply_chart_defaults(ch)
