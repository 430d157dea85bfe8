"""
Restake Watch core defaults.

Shared sentinels, query windows and thresholds consumed by the aggregation core and
downstream IO/UI layers. This module is zero-IO and uses only the Python standard library.

Notes:
    - UNKNOWN is the sentinel used for missing status dates and defaulted ids.
    - The default query window is intentionally wide so the initial request covers
      the whole upstream history.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "UNKNOWN",
    "DEFAULT_DATE_START",
    "DEFAULT_DATE_END",
    "DEFAULT_TOP_N",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_CACHE_TTL",
    "RECORD_ID_FIELDS",
    "RISK_TOP5_CRITICAL",
    "RISK_TOP5_WARNING",
    "RISK_HHI_CRITICAL",
    "RISK_HHI_WARNING",
    "CSV_COLUMNS",
]

# Sentinel for missing dates and defaulted related ids.
UNKNOWN: Final[str] = "Unknown"

# Fixed wide window used by the initial (unscoped) request.
DEFAULT_DATE_START: Final[str] = "2020-01-01"
DEFAULT_DATE_END: Final[str] = "2099-12-31"

DEFAULT_TOP_N: Final[int] = 10
DEFAULT_PAGE_SIZE: Final[int] = 20
DEFAULT_CACHE_TTL: Final[int] = 600

# Raw upstream record keys that must be non-empty strings.
RECORD_ID_FIELDS: Final[tuple[str, str, str]] = ("avs", "operator", "strategy")

# Concentration risk thresholds (top-5 holder share in percent, Herfindahl index in [0, 1]).
RISK_TOP5_CRITICAL: Final[float] = 75.0
RISK_TOP5_WARNING: Final[float] = 50.0
RISK_HHI_CRITICAL: Final[float] = 0.25
RISK_HHI_WARNING: Final[float] = 0.15

CSV_COLUMNS: Final[tuple[str, ...]] = (
    "AVS Address",
    "Total ETH Value",
    "Total USD Value",
    "Unique Operators",
    "Unique Strategies",
    "Total Relationships",
    "Latest Update",
)
