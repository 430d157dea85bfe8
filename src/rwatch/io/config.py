"""
Configuration for the rwatch.io module.

Defines ApiSettings, a frozen dataclass carrying runtime configuration for the upstream
API client, the relationship fetcher and the dashboard loaders. Defaults are sourced from
rwatch.core.constants (the single source of truth).

Source of truth
- rwatch.core.constants.DEFAULT_DATE_START, DEFAULT_DATE_END, DEFAULT_TOP_N,
  DEFAULT_PAGE_SIZE, DEFAULT_CACHE_TTL

Import DAG discipline
- Depends only on stdlib and rwatch.core.constants.
- Does not import higher layers (viz, app).

Notes
- Precedence: env > TOML > defaults.
- Invalid individual values are ignored (the previous value is kept); validate() checks
  the final configuration as a whole.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Any

from rwatch.core.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_DATE_END,
    DEFAULT_DATE_START,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TOP_N,
)

from .errors import ApiConfigError

DEFAULT_BASE_URL = "http://localhost:8000/api/avs"


def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return len(value) == 10


@dataclass(frozen=True)
class ApiSettings:
    """
    Runtime settings for the upstream API and the dashboard data layer.

    Attributes:
        base_url (str): Endpoint queried with ``?date_start=...&date_end=...`` or ``?avs=...``.
        date_start (str): Start of the wide initial query window (YYYY-MM-DD).
        date_end (str): End of the wide initial query window (YYYY-MM-DD).
        timeout (float | None): Per-request timeout in seconds; None keeps httpx's default.
        max_concurrency (int): Follow-up requests in flight at once (1 = sequential).
        top_n (int): Default size of Top-N breakdowns in the UI.
        page_size (int): Rows per page in dashboard tables.
        cache_ttl (int): Seconds a fetched snapshot stays cached in the dashboard.
        strategy_url (str | None): Endpoint returning per-strategy assets and concentration
            metrics; None hides the strategy risk view.

    Examples:
        >>> from rwatch.io import ApiSettings
        >>> ApiSettings(base_url="https://example.invalid/avs", max_concurrency=4)  # doctest: +ELLIPSIS
        ApiSettings(...)
    """

    base_url: str = DEFAULT_BASE_URL
    date_start: str = DEFAULT_DATE_START
    date_end: str = DEFAULT_DATE_END
    timeout: float | None = None
    max_concurrency: int = 1
    top_n: int = DEFAULT_TOP_N
    page_size: int = DEFAULT_PAGE_SIZE
    cache_ttl: int = DEFAULT_CACHE_TTL
    strategy_url: str | None = None

    def validate(self) -> ApiSettings:
        """Return self if usable, else raise ApiConfigError."""
        if not self.base_url.strip():
            raise ApiConfigError("base_url must be non-empty")
        if self.max_concurrency < 1:
            raise ApiConfigError("max_concurrency must be >= 1")
        if self.date_start > self.date_end:
            raise ApiConfigError("date_start must not be after date_end")
        if self.page_size < 1:
            raise ApiConfigError("page_size must be >= 1")
        return self

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: ApiSettings, cfg: dict[str, Any] | None) -> ApiSettings:
        """Apply a loose config mapping onto ApiSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        if "base_url" in cfg and isinstance(cfg["base_url"], str) and cfg["base_url"].strip():
            s = replace(s, base_url=cfg["base_url"].strip())

        for key in ("date_start", "date_end"):
            val = cfg.get(key)
            if isinstance(val, date):
                val = val.isoformat()
            if isinstance(val, str) and _is_iso_date(val.strip()):
                s = replace(s, **{key: val.strip()})

        if "timeout" in cfg:
            raw = cfg["timeout"]
            if raw is None or (isinstance(raw, str) and raw.strip().lower() in {"", "none"}):
                s = replace(s, timeout=None)
            else:
                try:
                    s = replace(s, timeout=float(raw))
                except (TypeError, ValueError):
                    pass

        if "strategy_url" in cfg and isinstance(cfg["strategy_url"], str):
            s = replace(s, strategy_url=cfg["strategy_url"].strip() or None)

        for key in ("max_concurrency", "top_n", "page_size", "cache_ttl"):
            if key in cfg:
                try:
                    s = replace(s, **{key: int(cfg[key])})
                except (TypeError, ValueError):
                    pass

        return s

    @classmethod
    def from_env(cls, base: ApiSettings | None = None, prefix: str = "RWATCH_API_") -> ApiSettings:
        """
        Build ApiSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - RWATCH_API_BASE_URL
            - RWATCH_API_DATE_START / RWATCH_API_DATE_END (YYYY-MM-DD)
            - RWATCH_API_TIMEOUT (seconds; "none" restores the transport default)
            - RWATCH_API_MAX_CONCURRENCY
            - RWATCH_API_TOP_N
            - RWATCH_API_PAGE_SIZE
            - RWATCH_API_CACHE_TTL
            - RWATCH_API_STRATEGY_URL
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for key in (
            "base_url",
            "date_start",
            "date_end",
            "timeout",
            "max_concurrency",
            "top_n",
            "page_size",
            "cache_ttl",
            "strategy_url",
        ):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> ApiSettings:
        """
        Build ApiSettings from a TOML file.

        Search order when `path` is None:
            1) ./rwatch.toml (with either top-level [api] or direct keys)
            2) ./pyproject.toml under [tool.rwatch.api]

        Returns defaults if no file is present or parsable.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "rwatch.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool")
                rw = tool.get("rwatch") if isinstance(tool, dict) else None
                cfg = rw.get("api") if isinstance(rw, dict) else None
            elif "api" in data and isinstance(data["api"], dict):
                cfg = data["api"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> ApiSettings:
        """
        Load ApiSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (rwatch.toml, pyproject.toml).

        Returns:
            ApiSettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
