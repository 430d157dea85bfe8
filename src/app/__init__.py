"""
Top-level Streamlit app package.

This package hosts the interactive Restake Watch dashboard (Streamlit) decoupled
from the rwatch.* library modules. Fetching, aggregation and table transforms live
under rwatch.*; the Streamlit UI shell and app-specific helpers live here.

CLI entrypoint (configured in pyproject.toml):
    restake-watch = app.main:main
"""

from __future__ import annotations
