"""
Restake Watch UI package.

This package contains the decomposed Streamlit UI for the dashboard. It exposes
high-level orchestration and focused modules for separate concerns.

Modules:
    - app: Streamlit application orchestrator (streamlit_app).
    - header: Global header (data source preferences, refresh, cache preferences).
    - helpers: Small cross-cutting helpers (accelerators, value formatting, summary cards).

Usage:
    from app.ui import streamlit_app
    streamlit_app()
"""

from __future__ import annotations

from .app import streamlit_app
from .header import render_header

__all__ = [
    "streamlit_app",
    "render_header",
]
