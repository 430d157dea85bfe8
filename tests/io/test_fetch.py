from __future__ import annotations

import asyncio

import httpx
import pytest

from rwatch.core.schema import Relationship
from rwatch.io.client import RestakeApiClient
from rwatch.io.config import ApiSettings
from rwatch.io.fetch import FetchReport, RelationshipFetcher, RelationshipSet, discover_avs_ids

BASE = "https://api.test/avs"

INITIAL = [
    {"avs": "A", "operator": "X", "strategy": "P", "eth": 10, "usd": 20000, "status_date": "2025-01-01"},
    {"avs": "B", "operator": "Y", "strategy": "Q", "eth": 5},
]
SCOPED = {
    "A": [
        {"avs": "A", "operator": "X", "strategy": "P", "eth": 99},
        {"avs": "A", "operator": "Z", "strategy": "P", "eth": 3},
    ],
    "B": [],
}


def _handler(initial=INITIAL, scoped=SCOPED, calls: list[dict[str, str]] | None = None, fail: set[str] = frozenset()):
    def handler(request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        if calls is not None:
            calls.append(params)
        avs = params.get("avs")
        if avs is None:
            if "initial" in fail:
                return httpx.Response(500)
            return httpx.Response(200, json={"data": initial})
        if avs in fail:
            return httpx.Response(502)
        return httpx.Response(200, json={"data": scoped.get(avs, [])})

    return handler


def _fetcher(handler, **settings) -> RelationshipFetcher:
    s = ApiSettings(base_url=BASE, **settings)
    client = RestakeApiClient(s, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    return RelationshipFetcher(client)


def test_discover_avs_ids_first_appearance_order() -> None:
    records = [{"avs": "B"}, {"avs": "A"}, {"avs": "B"}, {"avs": ""}, {"operator": "X"}, "junk"]
    assert discover_avs_ids(records) == ["B", "A"]


def test_relationship_set_first_seen_wins_and_is_idempotent() -> None:
    first = Relationship(avs_address="A", operator_address="X", strategy_address="P", eth_value=10)
    later = Relationship(avs_address="A", operator_address="X", strategy_address="P", eth_value=99)
    rs = RelationshipSet([first])
    assert rs.extend([later, first]) == 0
    assert len(rs) == 1
    assert ("A", "X", "P") in rs
    assert rs.to_list()[0].eth_value == 10


@pytest.mark.asyncio
async def test_fetch_merges_initial_and_followups_with_dedup() -> None:
    calls: list[dict[str, str]] = []
    fetcher = _fetcher(_handler(calls=calls))

    rels = await fetcher.fetch_relationships()

    assert [r.key for r in rels] == [("A", "X", "P"), ("B", "Y", "Q"), ("A", "Z", "P")]
    # First seen wins: the initial batch's A/X/P value survives
    assert rels[0].eth_value == 10
    assert calls[0] == {"date_start": "2020-01-01", "date_end": "2099-12-31"}
    assert calls[1:] == [{"avs": "A"}, {"avs": "B"}]

    report = fetcher.last_report
    assert report is not None
    assert report.requests == 3
    assert report.avs_ids == ["A", "B"]
    assert report.duplicates == 1
    assert report.relationships == 3


@pytest.mark.asyncio
async def test_initial_failure_collapses_to_empty_list() -> None:
    calls: list[dict[str, str]] = []
    fetcher = _fetcher(_handler(calls=calls, fail={"initial"}))

    report = FetchReport()
    assert await fetcher.fetch_relationships(report=report) == []
    assert report.initial_failed is True
    assert report.status_code == 500
    # No follow-ups after a failed initial request
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_per_id_failure_is_skipped() -> None:
    fetcher = _fetcher(_handler(fail={"A"}))

    rels = await fetcher.fetch_relationships()

    assert [r.key for r in rels] == [("A", "X", "P"), ("B", "Y", "Q")]
    assert fetcher.last_report is not None
    assert set(fetcher.last_report.per_id_failures) == {"A"}


@pytest.mark.asyncio
async def test_record_missing_operator_is_dropped() -> None:
    initial = INITIAL + [{"avs": "C", "operator": None, "strategy": "R", "eth": 1}]
    fetcher = _fetcher(_handler(initial=initial, scoped={**SCOPED, "C": []}))

    rels = await fetcher.fetch_relationships()

    assert all(r.avs_address != "C" for r in rels)
    assert fetcher.last_report is not None
    assert fetcher.last_report.dropped_records == 1
    # C is still discovered and followed up
    assert "C" in fetcher.last_report.avs_ids


@pytest.mark.asyncio
async def test_target_avs_issues_only_scoped_request() -> None:
    calls: list[dict[str, str]] = []
    fetcher = _fetcher(_handler(calls=calls))

    rels = await fetcher.fetch_relationships("A")

    assert calls == [{"avs": "A"}]
    assert [r.key for r in rels] == [("A", "X", "P"), ("A", "Z", "P")]


@pytest.mark.asyncio
async def test_concurrent_followups_merge_in_discovery_order() -> None:
    initial = [
        {"avs": "A", "operator": "X", "strategy": "P"},
        {"avs": "B", "operator": "X", "strategy": "P"},
    ]
    scoped = {
        "A": [{"avs": "A", "operator": "SLOW", "strategy": "P"}],
        "B": [{"avs": "B", "operator": "FAST", "strategy": "P"}],
    }
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        avs = request.url.params.get("avs")
        if avs is None:
            return httpx.Response(200, json={"data": initial})
        in_flight += 1
        peak = max(peak, in_flight)
        # A completes after B
        await asyncio.sleep(0.05 if avs == "A" else 0.0)
        in_flight -= 1
        return httpx.Response(200, json={"data": scoped[avs]})

    fetcher = _fetcher(handler, max_concurrency=2)
    rels = await fetcher.fetch_relationships()

    assert [r.operator_address for r in rels] == ["X", "X", "SLOW", "FAST"]
    assert peak == 2


@pytest.mark.asyncio
async def test_sequential_by_default() -> None:
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        if request.url.params.get("avs") is None:
            return httpx.Response(200, json={"data": INITIAL})
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(200, json={"data": []})

    await _fetcher(handler).fetch_relationships()
    assert peak == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"foo": 1}, {"data": {}}, ["not", "an", "object"]])
async def test_malformed_initial_response_collapses_to_empty_list(body: object) -> None:
    calls: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(dict(request.url.params))
        return httpx.Response(200, json=body)

    fetcher = _fetcher(handler)
    report = FetchReport()

    assert await fetcher.fetch_relationships(report=report) == []
    assert report.initial_failed is True
    assert report.status_code is None
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_malformed_followup_response_skips_that_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        avs = request.url.params.get("avs")
        if avs is None:
            return httpx.Response(200, json={"data": INITIAL})
        if avs == "A":
            return httpx.Response(200, json={"data": {"unexpected": True}})
        return httpx.Response(200, json={"data": SCOPED[avs]})

    fetcher = _fetcher(handler)
    rels = await fetcher.fetch_relationships()

    assert [r.key for r in rels] == [("A", "X", "P"), ("B", "Y", "Q")]
    assert fetcher.last_report is not None
    assert set(fetcher.last_report.per_id_failures) == {"A"}
    assert fetcher.last_report.requests == 3


@pytest.mark.asyncio
async def test_oversized_integer_values_coerce_instead_of_raising() -> None:
    initial = [{"avs": "A", "operator": "X", "strategy": "P", "shares": 10**400, "eth": 1}]
    fetcher = _fetcher(_handler(initial=initial, scoped={"A": []}))

    rels = await fetcher.fetch_relationships()

    assert len(rels) == 1
    assert rels[0].shares == 0.0
    assert rels[0].eth_value == 1.0
