from __future__ import annotations

from pathlib import Path

from rwatch.core.aggregate import aggregate_relationships
from rwatch.core.schema import Aggregate, Relationship
from rwatch.io.export import aggregate_csv_row, aggregates_to_csv, write_aggregates_csv

HEADER = (
    "AVS Address,Total ETH Value,Total USD Value,Unique Operators,"
    "Unique Strategies,Total Relationships,Latest Update"
)


def _aggregate_0xa() -> Aggregate:
    rels = [
        Relationship(
            avs_address="0xA", operator_address="X", strategy_address="P",
            eth_value=10, usd_value=20000, status_date="2025-01-01",
        ),
        Relationship(
            avs_address="0xA", operator_address="Z", strategy_address="P",
            eth_value=3, usd_value=6000, status_date="2025-02-11",
        ),
    ]
    return aggregate_relationships(rels)["0xA"]


def test_csv_header_and_row_format() -> None:
    text = aggregates_to_csv({"0xA": _aggregate_0xa()})
    assert text == HEADER + "\n" + '"0xA",13,26000,2,1,2,"2025-02-11"\n'


def test_csv_keeps_fractional_values_and_escapes_quotes() -> None:
    agg = Aggregate(avs_address='we"ird', total_eth=1.5, total_usd=0)
    assert aggregate_csv_row(agg) == ['we"ird', 1.5, 0, 0, 0, 0, "Unknown"]
    line = aggregates_to_csv([agg]).splitlines()[1]
    assert line == '"we""ird",1.5,0,0,0,0,"Unknown"'


def test_csv_empty_input_has_header_only() -> None:
    assert aggregates_to_csv({}) == HEADER + "\n"


def test_write_aggregates_csv(tmp_path: Path) -> None:
    out = write_aggregates_csv({"0xA": _aggregate_0xa()}, tmp_path / "nested" / "avs.csv")
    assert out.exists()
    assert out.read_text(encoding="utf-8").startswith(HEADER)
