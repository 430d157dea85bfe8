from __future__ import annotations

import pytest
from pydantic import ValidationError

from rwatch.core.schema import Aggregate, ConcentrationMetrics, Relationship


def test_relationship_accepts_alias_and_field_names() -> None:
    a = Relationship(avsAddress="A", operatorAddress="X", strategyAddress="P", ethValue=1)
    b = Relationship(avs_address="A", operator_address="X", strategy_address="P", eth_value=1)
    assert a == b
    assert a.key == ("A", "X", "P")


def test_relationship_dump_by_alias_is_camel_case() -> None:
    rel = Relationship(avs_address="A", operator_address="X", strategy_address="P")
    dumped = rel.model_dump(by_alias=True)
    assert dumped == {
        "avsAddress": "A",
        "operatorAddress": "X",
        "strategyAddress": "P",
        "shares": 0.0,
        "ethValue": 0.0,
        "usdValue": 0.0,
        "statusDate": "Unknown",
    }


def test_relationship_is_frozen_and_forbids_extra() -> None:
    rel = Relationship(avs_address="A", operator_address="X", strategy_address="P")
    with pytest.raises(ValidationError):
        rel.eth_value = 5.0  # type: ignore[misc]
    with pytest.raises(ValidationError):
        Relationship(avs_address="A", operator_address="X", strategy_address="P", bogus=1)


def test_aggregate_unique_lists_keep_first_seen_order() -> None:
    agg = Aggregate(avs_address="A")
    assert agg.add_operator("X") is True
    assert agg.add_operator("Z") is True
    assert agg.add_operator("X") is False
    assert agg.unique_operators == ["X", "Z"]
    assert agg.add_strategy("P") is True
    assert agg.add_strategy("P") is False
    assert agg.unique_strategies == ["P"]


def test_aggregate_seeded_lists_are_respected() -> None:
    agg = Aggregate(avs_address="A", unique_operators=["X"])
    assert agg.add_operator("X") is False
    assert agg.unique_operators == ["X"]


def test_aggregate_dump_by_alias_uses_output_names() -> None:
    dumped = Aggregate(avs_address="A", total_eth=13).model_dump(by_alias=True)
    assert dumped["totalETH"] == 13.0
    assert dumped["totalUSD"] == 0.0
    assert dumped["latestStatusDate"] == "Unknown"
    assert dumped["uniqueOperators"] == []


def test_concentration_metrics_bounds_herfindahl() -> None:
    with pytest.raises(ValidationError):
        ConcentrationMetrics(herfindahl_index=1.5)
