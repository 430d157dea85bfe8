"""
CSV export of per-AVS aggregates.

Format
- Header: AVS Address,Total ETH Value,Total USD Value,Unique Operators,Unique Strategies,
  Total Relationships,Latest Update
- One row per aggregate; string fields are double-quoted (embedded quotes doubled), numbers
  are bare. Integral values render without a fractional part (13, not 13.0).
- Every row, header included, ends with "\\n".

Example row:
    "0xA",13,26000,2,1,2,"2025-02-11"
"""

from __future__ import annotations

import csv
import io
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from rwatch.core.constants import CSV_COLUMNS
from rwatch.core.schema import Aggregate

__all__ = [
    "aggregate_csv_row",
    "aggregates_to_csv",
    "write_aggregates_csv",
]


def _num(value: float) -> int | float:
    v = float(value)
    return int(v) if v.is_integer() else v


def aggregate_csv_row(aggregate: Aggregate) -> list[str | int | float]:
    """Return the CSV cell values for one aggregate, in CSV_COLUMNS order."""
    return [
        aggregate.avs_address,
        _num(aggregate.total_eth),
        _num(aggregate.total_usd),
        len(aggregate.unique_operators),
        len(aggregate.unique_strategies),
        len(aggregate.relationships),
        aggregate.latest_status_date,
    ]


def aggregates_to_csv(aggregates: Mapping[str, Aggregate] | Iterable[Aggregate]) -> str:
    """Render aggregates as CSV text (header + one row per aggregate).

    Args:
        aggregates: Mapping of AVS id to Aggregate, or any iterable of aggregates. Rows
            follow the iteration order; sort beforehand for a specific order.

    Returns:
        str: CSV document.
    """
    items = aggregates.values() if isinstance(aggregates, Mapping) else aggregates
    buf = io.StringIO()
    buf.write(",".join(CSV_COLUMNS) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for agg in items:
        writer.writerow(aggregate_csv_row(agg))
    return buf.getvalue()


def write_aggregates_csv(
    aggregates: Mapping[str, Aggregate] | Iterable[Aggregate],
    path: str | os.PathLike[str],
) -> Path:
    """Write aggregates_to_csv() output to ``path`` (UTF-8) and return the path."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(aggregates_to_csv(aggregates), encoding="utf-8")
    return out
