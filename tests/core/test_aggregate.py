from __future__ import annotations

import pytest

from rwatch.core.aggregate import AvsAggregator, aggregate_relationships
from rwatch.core.schema import Relationship


def _rel(avs: str, op: str, strat: str, eth: float = 0.0, usd: float = 0.0, date: str = "Unknown") -> Relationship:
    return Relationship(
        avs_address=avs,
        operator_address=op,
        strategy_address=strat,
        eth_value=eth,
        usd_value=usd,
        status_date=date,
    )


def test_scenario_merged_fetch_aggregates_avs_a() -> None:
    # Initial batch (A/X/P, B/Y/Q) followed by A's scoped batch (A/X/P dup, A/Z/P)
    rels = [
        _rel("A", "X", "P", eth=10),
        _rel("B", "Y", "Q", eth=5),
        _rel("A", "Z", "P", eth=3),
    ]
    aggregates = aggregate_relationships(rels)

    a = aggregates["A"]
    assert a.total_eth == 13
    assert a.unique_operators == ["X", "Z"]
    assert a.unique_strategies == ["P"]
    assert len(a.relationships) == 2
    assert aggregates["B"].total_eth == 5
    assert list(aggregates) == ["A", "B"]


def test_incomplete_first_item_does_not_create_aggregate() -> None:
    agg = AvsAggregator()
    assert agg.add({"avsAddress": "A", "operatorAddress": None, "strategyAddress": "P", "ethValue": 4}) is False
    assert "A" not in agg.result()
    assert agg.failed == 1


def test_incomplete_item_after_creation_is_appended_with_unknown_ids() -> None:
    agg = AvsAggregator()
    agg.add({"avsAddress": "A", "operatorAddress": "X", "strategyAddress": "P", "ethValue": 1})
    assert agg.add({"avsAddress": "A", "operatorAddress": "", "strategyAddress": "Q", "ethValue": 2}) is True

    a = agg.result()["A"]
    assert a.total_eth == 3
    assert a.unique_operators == ["X"]
    assert a.unique_strategies == ["P", "Q"]
    assert [r.operator_address for r in a.relationships] == ["X", "Unknown"]


def test_items_without_avs_id_are_skipped() -> None:
    agg = AvsAggregator()
    assert agg.add({"avsAddress": None, "operatorAddress": "X", "strategyAddress": "P"}) is False
    assert agg.add({"avsAddress": "   ", "operatorAddress": "X", "strategyAddress": "P"}) is False
    assert agg.result() == {}
    assert agg.failed == 2


def test_non_numeric_values_coerce_to_zero_in_mappings() -> None:
    aggregates = aggregate_relationships(
        [
            {"avs_address": "A", "operator_address": "X", "strategy_address": "P", "eth_value": "abc", "usd_value": None},
            {"avsAddress": "A", "operatorAddress": "Y", "strategyAddress": "P", "ethValue": "2.5", "usdValue": 10},
        ]
    )
    assert aggregates["A"].total_eth == 2.5
    assert aggregates["A"].total_usd == 10


@pytest.mark.parametrize(
    "dates",
    [
        ["2025-01-01", "2025-02-11", "2024-12-31"],
        ["2025-02-11", "2024-12-31", "2025-01-01"],
        ["Unknown", "2024-12-31", "2025-02-11"],
    ],
)
def test_latest_status_date_is_maximum_regardless_of_order(dates: list[str]) -> None:
    rels = [_rel("A", f"O{i}", "P", date=d) for i, d in enumerate(dates)]
    assert aggregate_relationships(rels)["A"].latest_status_date == "2025-02-11"


def test_latest_status_date_stays_unknown_without_valid_dates() -> None:
    rels = [_rel("A", "X", "P"), _rel("A", "Y", "P", date="garbage")]
    assert aggregate_relationships(rels)["A"].latest_status_date == "Unknown"


def test_latest_status_date_never_moves_backward() -> None:
    rels = [_rel("A", "X", "P", date="2025-02-11"), _rel("A", "Y", "P", date="2025-01-01")]
    assert aggregate_relationships(rels)["A"].latest_status_date == "2025-02-11"


def test_latest_status_date_tie_keeps_earliest_seen_text() -> None:
    rels = [
        _rel("A", "X", "P", date="2025-02-11"),
        _rel("A", "Y", "P", date="2025-02-11T00:00:00Z"),
    ]
    assert aggregate_relationships(rels)["A"].latest_status_date == "2025-02-11"


def test_totals_equal_sum_of_constituents_and_replay_is_stable() -> None:
    rels = [
        _rel("A", "X", "P", eth=1.5, usd=3000),
        _rel("A", "Y", "Q", eth=2.25, usd=4500),
        _rel("B", "X", "P", eth=7, usd=14000),
        _rel("A", "Z", "P", eth=0.25, usd=500),
    ]
    first = aggregate_relationships(rels)
    for agg in first.values():
        assert agg.total_eth == pytest.approx(sum(r.eth_value for r in agg.relationships))
        assert agg.total_usd == pytest.approx(sum(r.usd_value for r in agg.relationships))

    second = aggregate_relationships(rels)
    assert {k: v.total_eth for k, v in first.items()} == {k: v.total_eth for k, v in second.items()}
    assert {k: v.total_usd for k, v in first.items()} == {k: v.total_usd for k, v in second.items()}
