"""
Streamlit application orchestrator for Restake Watch.

This module composes the global header and all page tabs while delegating
supporting concerns to focused modules under app.ui.* (header, helpers).

Responsibilities:
    - Configure Streamlit page.
    - Render global header (data source, refresh, cache prefs).
    - Load the latest snapshot via app.data with configurable caching.
    - Map the snapshot status to the loading / no data / empty / ready views.
    - Mount tab content (Overview, AVS, Detail, Strategies, Data).

Notes:
    - Charts are produced by app.charts; tables by rwatch.viz.frames.
    - The AVS table is searchable, sortable and paginated; the Detail tab shows
      Top-N operator and strategy breakdowns for one AVS.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, cast

import streamlit as st

from app import charts as app_charts
from app.data import CacheConfig, load_snapshot, load_strategies, session_state
from rwatch.core import RiskLevel, high_risk_summary, operator_breakdown, risk_label, strategy_breakdown
from rwatch.io import ApiSettings, LoadStatus, Snapshot, aggregates_to_csv
from rwatch.io.errors import ApiConfigError
from rwatch.viz.frames import (
    aggregates_frame,
    breakdown_frame,
    filter_risk,
    page_count,
    paginate,
    relationships_frame,
    search_aggregates,
    sort_frame,
    strategy_risk_frame,
)

from .header import render_header, request_refresh
from .helpers import format_eth, format_usd, humanize_ago, short_address, summary_cards

_SORT_COLUMNS = {
    "Total ETH": "total_eth",
    "Total USD": "total_usd",
    "Operators": "unique_operators",
    "Strategies": "unique_strategies",
    "Relationships": "relationships",
    "Latest update": "latest_status_date",
    "Address": "avs_address",
}


def _retry_button(label: str, key: str) -> None:
    if st.button(label, key=key):
        request_refresh()
        st.rerun()


def _render_status(snapshot: Snapshot | None) -> bool:
    """Render the non-ready states. Returns True when the tabs should be mounted."""
    status = LoadStatus.LOADING if snapshot is None else snapshot.status
    if status is LoadStatus.LOADING:
        st.info("Loading relationships ...")
        _retry_button("Reload", key="retry_loading")
        return False
    if status is LoadStatus.NO_DATA:
        st.warning("No relationship data available. The upstream API may be unreachable.")
        _retry_button("Retry", key="retry_no_data")
        return False
    if status is LoadStatus.EMPTY_AGGREGATES:
        st.warning("Relationships were fetched but none could be aggregated.")
        _retry_button("Retry", key="retry_empty")
        return False
    return True


_RISK_FILTERS: dict[str, RiskLevel | None] = {
    "All": None,
    **{risk_label(level): level for level in RiskLevel},
}


def _render_strategies(settings: ApiSettings, cache_cfg: CacheConfig) -> None:
    if not settings.strategy_url:
        st.caption("No strategy concentration source configured (set RWATCH_API_STRATEGY_URL).")
        return
    with st.spinner("Fetching strategy concentration ..."):
        rows = load_strategies(
            settings,
            refresh_bump=int(st.session_state.get("refresh_bump", 0)),
            cfg=cache_cfg,
        )
    if not rows:
        st.warning("No strategy concentration data available.")
        _retry_button("Retry", key="retry_strategies")
        return

    summary = high_risk_summary(rows)
    c1, c2, c3 = st.columns(3)
    with c1:
        st.metric("Strategies", f"{len(rows):,}")
    with c2:
        st.metric("High-risk ETH", format_eth(summary.eth_value))
    with c3:
        st.metric("High-risk share", f"{summary.share_percent:.1f}%")

    c1, c2 = st.columns([0.6, 0.4])
    with c1:
        term = st.text_input("Search strategy", value="", key="strategy_search")
    with c2:
        risk_sel = st.selectbox("Risk level", options=list(_RISK_FILTERS), index=0, key="strategy_risk")

    df = strategy_risk_frame(rows)
    view = filter_risk(search_aggregates(df, term, column="name"), _RISK_FILTERS[str(risk_sel)])
    pages = page_count(view.height, settings.page_size)
    page = st.number_input("Page", min_value=1, max_value=pages, value=1, step=1, key="strategy_page")
    st.dataframe(paginate(view, int(page), settings.page_size), width="stretch")
    st.text(f"Rows: {view.height} of {df.height}, page {int(page)} of {pages}")


def streamlit_app(
    default_settings: ApiSettings | None = None,
    default_cache_ttl: int | None = None,
) -> None:
    """Render the Restake Watch Streamlit application.

    Args:
        default_settings (ApiSettings | None): Startup settings. When None they are
            loaded with ApiSettings.load() (env > TOML > defaults).
        default_cache_ttl (int | None): Optional override of the snapshot cache TTL.

    Returns:
        None
    """
    st.set_page_config(page_title="Restake Watch", layout="wide")

    settings = default_settings or ApiSettings.load()
    if default_cache_ttl is not None:
        settings = replace(settings, cache_ttl=int(default_cache_ttl))
    try:
        settings = settings.validate()
    except ApiConfigError as e:
        st.error(f"Invalid configuration: {e}")
        return

    settings, cache_cfg = render_header(default_settings=settings)
    target_avs = st.session_state.get("target_avs") or None

    with st.spinner("Fetching relationships ..."):
        snapshot = load_snapshot(
            settings,
            target_avs=target_avs,
            refresh_bump=int(st.session_state.get("refresh_bump", 0)),
            cfg=cache_cfg,
            state=session_state(),
        )

    if not _render_status(snapshot):
        return
    snap = cast(Snapshot, snapshot)

    st.caption(
        f"Snapshot #{snap.generation} fetched {humanize_ago(snap.fetched_at)}; "
        f"{len(snap.relationships)} relationships across {len(snap.aggregates)} AVS."
    )
    if snap.report is not None and snap.report.per_id_failures:
        st.caption(f"{len(snap.report.per_id_failures)} AVS follow-up request(s) failed and were skipped.")

    token = st.sidebar.radio("Value token", options=["eth", "usd"], index=0, key="value_token")

    tab_overview, tab_avs, tab_detail, tab_strategies, tab_data = st.tabs(
        ["Overview", "AVS", "Detail", "Strategies", "Data"]
    )

    # ----------------------------
    # Overview
    # ----------------------------
    with tab_overview:
        st.subheader("Network summary")
        cards = summary_cards(snap.metrics)
        cols = st.columns(len(cards))
        for col, (label, value) in zip(cols, cards.items(), strict=True):
            with col:
                st.metric(label, value)

        st.subheader("Top AVS")
        try:
            ch = app_charts.top_avs_chart(snap.metrics, token=str(token))
            st.altair_chart(cast(Any, ch), theme=None, use_container_width=True)
        except Exception as e:
            st.error(f"Failed to render top AVS chart: {e}")

    # ----------------------------
    # AVS table (search, sort, pagination)
    # ----------------------------
    agg_df = aggregates_frame(snap.aggregates)
    with tab_avs:
        c1, c2, c3 = st.columns([0.5, 0.3, 0.2])
        with c1:
            term = st.text_input("Search AVS address", value="", key="avs_search")
        with c2:
            sort_label = st.selectbox("Sort by", options=list(_SORT_COLUMNS), index=0, key="avs_sort")
        with c3:
            descending = st.checkbox("Descending", value=True, key="avs_desc")

        view = sort_frame(
            search_aggregates(agg_df, term), _SORT_COLUMNS[str(sort_label)], descending=descending
        )
        pages = page_count(view.height, settings.page_size)
        page = st.number_input("Page", min_value=1, max_value=pages, value=1, step=1, key="avs_page")
        st.dataframe(paginate(view, int(page), settings.page_size), width="stretch")
        st.text(f"Rows: {view.height} of {agg_df.height}, page {int(page)} of {pages}")

        st.download_button(
            "Download CSV",
            data=aggregates_to_csv(snap.aggregates),
            file_name="avs_aggregates.csv",
            mime="text/csv",
            key="avs_csv",
        )

    # ----------------------------
    # Detail view (Top-N breakdowns)
    # ----------------------------
    with tab_detail:
        ranked = sort_frame(agg_df, "total_eth").get_column("avs_address").to_list()
        avs_sel = st.selectbox(
            "AVS",
            options=ranked,
            format_func=short_address,
            key="detail_avs",
        )
        top_n = st.number_input(
            "Top N", min_value=1, value=int(settings.top_n), step=1, key="detail_top_n"
        )
        agg = snap.aggregates.get(str(avs_sel)) if avs_sel else None
        if agg is None:
            st.caption("Select an AVS.")
        else:
            c1, c2, c3, c4 = st.columns(4)
            with c1:
                st.metric("Total ETH", format_eth(agg.total_eth))
            with c2:
                st.metric("Total USD", format_usd(agg.total_usd))
            with c3:
                st.metric("Operators", f"{len(agg.unique_operators):,}")
            with c4:
                st.metric("Latest update", agg.latest_status_date)

            left, right = st.columns(2)
            with left:
                st.subheader("Top operators")
                ops = breakdown_frame(operator_breakdown(agg, int(top_n)))
                try:
                    ch = app_charts.breakdown_chart(ops, title="Operators", token=str(token))
                    st.altair_chart(cast(Any, ch), theme=None, use_container_width=True)
                except Exception as e:
                    st.error(f"Failed to render operator breakdown: {e}")
                st.dataframe(ops, width="stretch")
            with right:
                st.subheader("Top strategies")
                strats = breakdown_frame(strategy_breakdown(agg, int(top_n)))
                try:
                    ch = app_charts.breakdown_chart(strats, title="Strategies", token=str(token))
                    st.altair_chart(cast(Any, ch), theme=None, use_container_width=True)
                except Exception as e:
                    st.error(f"Failed to render strategy breakdown: {e}")
                st.dataframe(strats, width="stretch")

    # ----------------------------
    # Strategy concentration (risk filter + high-risk share)
    # ----------------------------
    with tab_strategies:
        _render_strategies(settings, cache_cfg)

    # ----------------------------
    # Data viewer
    # ----------------------------
    with tab_data:
        with st.sidebar.expander("Data Viewer Controls", expanded=True):
            head_n = st.number_input(
                "Show first N rows", min_value=5, value=100, step=25, key="data_head_n"
            )
        st.subheader("Relationships (deduplicated)")
        rel_df = relationships_frame(snap.relationships)
        st.dataframe(rel_df.head(int(head_n)), width="stretch")
        st.text(f"Rows: {rel_df.height}, Columns: {list(rel_df.columns)}")

        if snap.report is not None:
            st.subheader("Fetch report")
            st.table(
                {
                    "requests": [snap.report.requests],
                    "avs_ids": [len(snap.report.avs_ids)],
                    "per_id_failures": [len(snap.report.per_id_failures)],
                    "dropped_records": [snap.report.dropped_records],
                    "duplicates": [snap.report.duplicates],
                }
            )
