"""
Restake Watch entrypoint.

This module provides the CLI entrypoint to launch the Streamlit UI. It defers
all UI composition to the app.ui package and exists solely to start Streamlit
programmatically or render directly when already running under Streamlit.

Usage:
    - Python execution (hands process to Streamlit):
        uv run python -m app.main --base-url http://localhost:8000/api/avs --cache-ttl 300

    - Streamlit direct:
        streamlit run src/app/main.py -- --base-url http://localhost:8000/api/avs
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from app.ui import streamlit_app
from rwatch.io import ApiSettings

LOG_LEVEL_ENV = "RWATCH_LOG_LEVEL"


def configure_logging(level: str | None = None) -> int:
    """Configure root logging from ``level`` or $RWATCH_LOG_LEVEL (default INFO).

    Unknown level names fall back to INFO. Returns the numeric level applied.
    """
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").strip().upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return numeric


def _build_parser(*, add_help: bool = True) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Restake Watch Streamlit App", add_help=add_help)
    parser.add_argument("--base-url", default=None, help="Upstream relationship API endpoint.")
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Follow-up requests in flight at once (1 = sequential).",
    )
    parser.add_argument(
        "--cache-ttl",
        type=int,
        default=None,
        help="Seconds a fetched snapshot stays cached (0 disables TTL).",
    )
    parser.add_argument("--config", default=None, help="Optional TOML config path.")
    return parser


def settings_from_args(ns: argparse.Namespace) -> ApiSettings:
    """Load ApiSettings (env > TOML > defaults) and apply CLI overrides on top."""
    settings = ApiSettings.load(ns.config)
    if ns.base_url:
        settings = replace(settings, base_url=ns.base_url)
    if ns.max_concurrency is not None:
        settings = replace(settings, max_concurrency=int(ns.max_concurrency))
    if ns.cache_ttl is not None:
        settings = replace(settings, cache_ttl=int(ns.cache_ttl))
    return settings


def main(argv: list[str] | None = None) -> None:
    """Console entrypoint that launches Streamlit with the Restake Watch UI.

    If already executing within a Streamlit server (environment variable
    STREAMLIT_SERVER_PORT is set), this function renders the app directly.
    Otherwise, it execs "python -m streamlit run <this_module>" to leverage
    Streamlit's reloader and argument parsing, passing through any supported
    options after "--".

    Variables from a local .env file are loaded first (existing environment wins),
    so RWATCH_API_* and RWATCH_LOG_LEVEL may live there.

    Args:
        argv (list[str] | None): Optional list of CLI arguments. If None,
            sys.argv[1:] is used.

    Examples:
        uv run python -m app.main --base-url http://localhost:8000/api/avs
        streamlit run src/app/main.py -- --max-concurrency 4
    """
    load_dotenv()
    args = list(sys.argv[1:] if argv is None else argv)
    ns = _build_parser().parse_args(args)

    # If invoked within Streamlit, just render
    if os.environ.get("STREAMLIT_SERVER_PORT"):
        configure_logging()
        streamlit_app(default_settings=settings_from_args(ns))
        return

    # Otherwise, exec streamlit run on this module to take over the process
    app_path = Path(__file__).resolve()
    cmd = [sys.executable, "-m", "streamlit", "run", str(app_path)]

    passthrough: list[str] = []
    if ns.base_url:
        passthrough += ["--base-url", ns.base_url]
    if ns.max_concurrency is not None:
        passthrough += ["--max-concurrency", str(int(ns.max_concurrency))]
    if ns.cache_ttl is not None:
        passthrough += ["--cache-ttl", str(int(ns.cache_ttl))]
    if ns.config:
        passthrough += ["--config", ns.config]
    if passthrough:
        cmd += ["--"] + passthrough

    try:
        os.execv(sys.executable, cmd)
    except OSError:
        import subprocess

        subprocess.run(cmd, check=False)


if __name__ == "__main__":
    # Support: --base-url, --max-concurrency, --cache-ttl, --config after '--' when using `streamlit run`
    load_dotenv()
    configure_logging()
    try:
        ns, _ = _build_parser(add_help=False).parse_known_args(sys.argv[1:])
        streamlit_app(default_settings=settings_from_args(ns))
    except SystemExit:
        # Fallback to no-arg render
        streamlit_app()
