from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

import streamlit as st

from rwatch.core.schema import StrategyRisk
from rwatch.io import (
    ApiSettings,
    DashboardState,
    RelationshipFetcher,
    RestakeApiClient,
    Snapshot,
    fetch_strategy_risk,
)

__all__ = [
    "CacheConfig",
    "fetch_snapshot",
    "fetch_strategies",
    "load_snapshot",
    "load_strategies",
    "session_state",
]

# ---------- Cache configuration (factory of cached callables) ----------


@dataclass(frozen=True)
class CacheConfig:
    """Hashable cache configuration for Streamlit @st.cache_data.

    Note: Streamlit's decorator parameters (ttl, persist) are fixed at decoration
    time. We build and memoize decorated callables per (name, ttl, persist) so the
    app can switch these at runtime while still benefiting from caching.
    """

    ttl: int | None = None
    persist: bool = False


# Registry of decorated functions by (loader_name, CacheConfig)
_CACHE_REGISTRY: dict[tuple[str, CacheConfig], Callable[..., Any]] = {}


def _get_cached(loader_name: str, cfg: CacheConfig, fn: Callable[..., Any]) -> Callable[..., Any]:
    key = (loader_name, cfg)
    if key in _CACHE_REGISTRY:
        return _CACHE_REGISTRY[key]
    if cfg.persist:
        wrapped = st.cache_data(persist="disk", ttl=cfg.ttl)(fn)
    else:
        wrapped = st.cache_data(ttl=cfg.ttl)(fn)
    _CACHE_REGISTRY[key] = wrapped
    return wrapped


# ---------- Fetch cycles (uncached) ----------

_STATE_KEY = "dashboard_state"


def session_state() -> DashboardState:
    """Return this browser session's DashboardState, created on first use.

    Keeping one state per session carries the generation counter across reruns, so a
    superseded cycle cannot replace the snapshot of a newer one.
    """
    state = st.session_state.get(_STATE_KEY)
    if not isinstance(state, DashboardState):
        state = DashboardState()
        st.session_state[_STATE_KEY] = state
    return state


async def _refresh(settings: ApiSettings, target_avs: str | None, state: DashboardState) -> Snapshot | None:
    async with RestakeApiClient(settings) as client:
        return await state.refresh(target_avs, fetcher=RelationshipFetcher(client, settings))


def fetch_snapshot(
    settings: ApiSettings,
    target_avs: str | None = None,
    state: DashboardState | None = None,
) -> Snapshot | None:
    """Run one full fetch -> aggregate cycle synchronously (Streamlit scripts are sync).

    Returns the snapshot published by this cycle, or the state's current snapshot when a
    newer cycle superseded it.
    """
    if state is None:
        state = DashboardState()
    published = asyncio.run(_refresh(settings.validate(), target_avs, state))
    return published or state.snapshot


async def _strategies(settings: ApiSettings) -> list[StrategyRisk]:
    async with RestakeApiClient(settings) as client:
        return await fetch_strategy_risk(client)


def fetch_strategies(settings: ApiSettings) -> list[StrategyRisk]:
    """Fetch and classify strategy concentration rows synchronously."""
    return asyncio.run(_strategies(settings.validate()))


# ---------- Loaders (internal implementations) ----------


def _load_snapshot_impl(
    base_url: str,
    date_start: str,
    date_end: str,
    timeout: float | None,
    max_concurrency: int,
    target_avs: str | None,
    refresh_bump: int,
    _state: DashboardState | None = None,
) -> Snapshot | None:
    # refresh_bump only re-keys the cache when the user forces a refetch.
    del refresh_bump
    settings = replace(
        ApiSettings(),
        base_url=base_url,
        date_start=date_start,
        date_end=date_end,
        timeout=timeout,
        max_concurrency=max_concurrency,
    )
    return fetch_snapshot(settings, target_avs, _state)


def _load_strategies_impl(strategy_url: str, timeout: float | None, refresh_bump: int) -> list[StrategyRisk]:
    del refresh_bump
    settings = replace(ApiSettings(), strategy_url=strategy_url, timeout=timeout)
    return fetch_strategies(settings)


# ---------- Public loader APIs (dispatch to cached implementations) ----------


def load_snapshot(
    settings: ApiSettings,
    *,
    target_avs: str | None = None,
    refresh_bump: int = 0,
    cfg: CacheConfig = CacheConfig(),
    state: DashboardState | None = None,
) -> Snapshot | None:
    """Return the latest snapshot for ``settings`` (cached per CacheConfig).

    ``state`` is not part of the cache key.
    """
    fn = _get_cached("load_snapshot", cfg, _load_snapshot_impl)
    return fn(  # type: ignore[no-any-return]
        settings.base_url,
        settings.date_start,
        settings.date_end,
        settings.timeout,
        settings.max_concurrency,
        target_avs,
        refresh_bump,
        state,
    )


def load_strategies(
    settings: ApiSettings,
    *,
    refresh_bump: int = 0,
    cfg: CacheConfig = CacheConfig(),
) -> list[StrategyRisk]:
    """Return strategy risk rows, or [] when no strategy_url is configured."""
    if not settings.strategy_url:
        return []
    fn = _get_cached("load_strategies", cfg, _load_strategies_impl)
    return fn(settings.strategy_url, settings.timeout, refresh_bump)  # type: ignore[no-any-return]
