"""
Header (global controls) for the Restake Watch Streamlit application.

This module renders the top-of-page controls, including:
- Data source preferences (API base URL, query window, concurrency, optional AVS scope).
- Manual refresh button (forces a refetch by bumping the cache key).
- Cache preferences panel and construction of the CacheConfig used by data loaders.

Notes:
    - Performs no network IO itself; app.data runs the fetch cycle.
    - Values typed here are validated by ApiSettings.validate() before use.
"""

from __future__ import annotations

from dataclasses import replace

import streamlit as st

from app.data import CacheConfig
from rwatch.io import ApiSettings
from rwatch.io.errors import ApiConfigError

from .helpers import enable_vegafusion_optional


def _init_session(defaults: ApiSettings) -> None:
    if "api_settings" not in st.session_state:
        st.session_state["api_settings"] = defaults
    if "refresh_bump" not in st.session_state:
        st.session_state["refresh_bump"] = 0
    if "target_avs" not in st.session_state:
        st.session_state["target_avs"] = ""
    if "cache_ttl" not in st.session_state:
        st.session_state["cache_ttl"] = int(defaults.cache_ttl)
    if "cache_persist" not in st.session_state:
        st.session_state["cache_persist"] = False


def request_refresh() -> None:
    """Force the next render to refetch instead of serving the cached snapshot."""
    st.session_state["refresh_bump"] = int(st.session_state.get("refresh_bump", 0)) + 1


def render_header(*, default_settings: ApiSettings) -> tuple[ApiSettings, CacheConfig]:
    """Render the global header and return the active settings and cache config.

    The header provides:
      - Refresh button (new fetch cycle on the next rerun).
      - Preferences for the API endpoint, query window and follow-up concurrency.
      - Optional AVS scope (single scoped request, no follow-ups).
      - Cache controls: TTL and persist-to-disk toggle.

    Args:
        default_settings (ApiSettings): Settings loaded at startup (env > TOML > defaults).

    Returns:
        tuple[ApiSettings, CacheConfig]: (active_settings, cache_config)

    Notes:
        - Invalid edits are reported and the previous settings are kept.
        - The cache configuration returned is used by app.data loaders to build
          decorated callables with matching Streamlit caching semantics.
    """
    st.markdown("### Restake Watch")
    accel_msg = enable_vegafusion_optional()
    if accel_msg:
        st.caption(accel_msg)

    _init_session(default_settings)
    current: ApiSettings = st.session_state["api_settings"]

    c1, c2, c3 = st.columns([0.42, 0.38, 0.20])

    # Left: data source summary
    with c1:
        scope = st.session_state["target_avs"] or "all AVS"
        st.caption(f"Source: {current.base_url} ({scope})")
        st.caption(f"Window: {current.date_start} to {current.date_end}")

    # Middle: Refresh + Preferences
    with c2:
        cols_mid = st.columns([0.33, 0.67])
        with cols_mid[0]:
            if st.button("Refresh"):
                request_refresh()
                st.rerun()
        with cols_mid[1]:
            with st.expander("Preferences", expanded=False):
                base_url = st.text_input("API base URL", value=current.base_url, key="pref_base_url")
                date_start = st.text_input(
                    "Date start (YYYY-MM-DD)", value=current.date_start, key="pref_date_start"
                )
                date_end = st.text_input(
                    "Date end (YYYY-MM-DD)", value=current.date_end, key="pref_date_end"
                )
                max_concurrency = st.number_input(
                    "Follow-up requests in flight",
                    min_value=1,
                    value=int(current.max_concurrency),
                    step=1,
                    help="1 issues follow-up requests one at a time.",
                    key="pref_max_concurrency",
                )
                target_avs = st.text_input(
                    "Scope to AVS (optional)",
                    value=st.session_state["target_avs"],
                    placeholder="0x...",
                    key="pref_target_avs",
                )
                st.session_state["target_avs"] = target_avs.strip()
                strategy_url = st.text_input(
                    "Strategy concentration URL (optional)",
                    value=current.strategy_url or "",
                    key="pref_strategy_url",
                )

                candidate = replace(
                    current,
                    base_url=base_url.strip(),
                    date_start=date_start.strip(),
                    date_end=date_end.strip(),
                    max_concurrency=int(max_concurrency),
                    strategy_url=strategy_url.strip() or None,
                )
                try:
                    st.session_state["api_settings"] = candidate.validate()
                except ApiConfigError as e:
                    st.error(f"Invalid preferences: {e}")

    # Right: Cache Preferences (global)
    with c3:
        with st.expander("Cache", expanded=False):
            ttl = st.number_input(
                "Cache TTL (seconds)",
                min_value=0,
                value=int(st.session_state["cache_ttl"]),
                step=60,
                help="0 disables TTL",
                key="cache_ttl_header",
            )
            persist = st.checkbox(
                "Persist to disk",
                value=bool(st.session_state["cache_persist"]),
                key="cache_persist_header",
            )
            st.session_state["cache_ttl"] = int(ttl)
            st.session_state["cache_persist"] = bool(persist)

    # Build cache config for loaders
    cache_cfg = CacheConfig(
        ttl=int(st.session_state["cache_ttl"]) if int(st.session_state["cache_ttl"]) > 0 else None,
        persist=bool(st.session_state["cache_persist"]),
    )

    return (st.session_state["api_settings"], cache_cfg)
