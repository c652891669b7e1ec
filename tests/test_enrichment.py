"""
Pytest tests for DRep enrichment: batching, fallback policy, failure
degradation, per-call timeout and merge semantics. Providers are in-memory.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from backend_govtwool.aggregation import (
    DRepEnricher,
    DRepSource,
    DRepStats,
    decide_fallback,
    enrich_dreps,
)
from backend_govtwool.identifiers import MalformedIdentifier, to_legacy
from backend_govtwool.providers import DelegatorRecord, NoUsableData, ProviderUnavailable, VoteRecord


def _delegators(n: int) -> list[DelegatorRecord]:
    return [DelegatorRecord(f"stake1u{i}", 1_000_000) for i in range(n)]


def test_decide_fallback_is_pure_over_whole_result_set():
    empty = DRepStats()
    assert decide_fallback({"a": empty, "b": DRepStats()}) is True
    assert decide_fallback({"a": DRepStats(delegators=_delegators(1)), "b": empty}) is False
    assert decide_fallback({"a": empty, "b": DRepStats(votes=[VoteRecord("yes")])}) is False
    assert decide_fallback({}) is True


def test_one_nonempty_result_prevents_fallback(provider_factory, drep_ids, fast_settings):
    """{A: 3 delegators}, {B: 0}, no votes: bulk data is usable, no fallback."""
    a, b = drep_ids(2)
    bulk = provider_factory("koios", delegators={a: _delegators(3)})
    fallback = provider_factory("blockfrost", delegators={a: _delegators(99), b: _delegators(99)})

    records = asyncio.run(DRepEnricher(bulk, fallback, fast_settings).enrich([a, b]))

    assert fallback.calls == []
    assert [r.delegator_count for r in records] == [3, 0]
    assert [r.vote_count for r in records] == [0, 0]
    assert [r.source for r in records] == ["koios", "koios"]


def test_all_empty_batch_falls_back(provider_factory, drep_ids, fast_settings):
    ids = drep_ids(5)
    bulk = provider_factory("koios")
    fallback = provider_factory(
        "blockfrost",
        delegators={ids[0]: _delegators(2)},
        votes={
            ids[0]: [VoteRecord("yes", epoch=510), VoteRecord("no", epoch=512), VoteRecord("abstain", epoch=511)],
        },
    )

    records = asyncio.run(DRepEnricher(bulk, fallback, fast_settings).enrich(ids))

    assert len(records) == 5
    assert sorted(fallback.called_ids("delegators")) == sorted(ids)
    first = records[0]
    assert first.source == "blockfrost"
    assert first.delegator_count == 2
    assert first.vote_count == 3
    assert first.votes.to_dict() == {"yes": 1, "no": 1, "abstain": 1}
    assert first.last_vote_epoch == 512
    for record in records[1:]:
        assert record.delegator_count == 0
        assert record.vote_count == 0
        assert record.last_vote_epoch is None


def test_all_empty_without_fallback_keeps_bulk_results(provider_factory, drep_ids, fast_settings):
    ids = drep_ids(2)
    bulk = provider_factory("koios")

    records = asyncio.run(DRepEnricher(bulk, None, fast_settings).enrich(ids))

    assert sorted(bulk.called_ids("delegators")) == sorted(ids)
    assert [r.source for r in records] == ["koios", "koios"]
    assert [r.delegator_count for r in records] == [0, 0]


def test_both_providers_failing_yields_zero_counts(provider_factory, drep_ids, fast_settings):
    ids = drep_ids(3)
    down = {drep_id: ProviderUnavailable("koios", "503", status_code=503) for drep_id in ids}
    bulk = provider_factory("koios", delegators=down, votes=down)
    bf_down = {drep_id: ProviderUnavailable("blockfrost", "connect failed") for drep_id in ids}
    fallback = provider_factory("blockfrost", delegators=bf_down, votes=bf_down)

    records = asyncio.run(DRepEnricher(bulk, fallback, fast_settings).enrich(ids))

    assert [(r.delegator_count, r.vote_count, r.source) for r in records] == [(0, 0, "none")] * 3


def test_no_usable_data_selects_fallback(provider_factory, drep_ids, fast_settings):
    (a,) = drep_ids(1)
    bulk = provider_factory("koios", delegators={a: NoUsableData("koios", "not a list")})
    fallback = provider_factory("blockfrost", votes={a: [VoteRecord("yes", epoch=500)]})

    (record,) = asyncio.run(DRepEnricher(bulk, fallback, fast_settings).enrich([a]))

    assert record.source == "blockfrost"
    assert record.vote_count == 1


def test_single_id_failure_does_not_fail_batch(provider_factory, drep_ids, fast_settings):
    a, b = drep_ids(2)
    bulk = provider_factory(
        "koios",
        delegators={a: ProviderUnavailable("koios", "500", status_code=500), b: _delegators(4)},
        votes={a: [VoteRecord("Yes")]},
    )

    records = asyncio.run(DRepEnricher(bulk, None, fast_settings).enrich([a, b]))

    assert records[0].delegator_count == 0
    assert records[0].votes.yes == 1
    assert records[1].delegator_count == 4


def test_call_timeout_degrades_to_empty(provider_factory, drep_ids, fast_settings):
    (a,) = drep_ids(1)
    slow = provider_factory("koios", delegators={a: _delegators(5)}, delay_sec=1.0)
    fallback = provider_factory("blockfrost", delegators={a: _delegators(1)})
    settings = replace(fast_settings, call_timeout_sec=0.05)

    (record,) = asyncio.run(DRepEnricher(slow, fallback, settings).enrich([a]))

    assert record.source == "blockfrost"
    assert record.delegator_count == 1


def test_batches_bound_in_flight_calls(provider_factory, drep_ids, fast_settings):
    ids = drep_ids(7)
    bulk = provider_factory("koios", delegators={i: _delegators(1) for i in ids}, delay_sec=0.01)
    settings = replace(fast_settings, batch_size=3)

    records = asyncio.run(DRepEnricher(bulk, None, settings).enrich(ids))

    assert all(r.delegator_count == 1 for r in records)
    # two statistics per ID, three IDs per batch
    assert bulk.max_in_flight <= 6
    assert len(bulk.calls) == 14


def test_calls_carry_limit_and_vote_order(provider_factory, drep_ids, fast_settings):
    (a,) = drep_ids(1)
    bulk = provider_factory("koios", delegators={a: _delegators(1)})

    asyncio.run(DRepEnricher(bulk, None, fast_settings).enrich([a]))

    kwargs = {stat: kw for stat, _, kw in bulk.calls}
    assert kwargs["delegators"] == {"limit": 1000}
    assert kwargs["votes"] == {"limit": 1000, "order": "block_time.desc"}


def test_legacy_and_current_inputs_share_one_query(provider_factory, drep_ids, fast_settings):
    (current,) = drep_ids(1)
    legacy = to_legacy(current)
    bulk = provider_factory("koios", delegators={current: _delegators(2)})

    records = asyncio.run(DRepEnricher(bulk, None, fast_settings).enrich([legacy, current]))

    assert bulk.called_ids("delegators") == [current]
    assert [r.identifier for r in records] == [legacy, current]
    assert [r.normalized_id for r in records] == [current, current]
    assert [r.delegator_count for r in records] == [2, 2]


def test_uppercase_and_legacy_inputs_share_one_query(provider_factory, drep_ids, fast_settings):
    (current,) = drep_ids(1)
    bulk = provider_factory("koios", delegators={current: _delegators(1)})

    records = asyncio.run(
        DRepEnricher(bulk, None, fast_settings).enrich([current.upper(), to_legacy(current).upper()])
    )

    assert bulk.called_ids("delegators") == [current]
    assert [r.normalized_id for r in records] == [current, current]
    assert [r.delegator_count for r in records] == [1, 1]


def test_system_dreps_are_never_queried(provider_factory, drep_ids, fast_settings):
    (a,) = drep_ids(1)
    bulk = provider_factory("koios", delegators={a: _delegators(1)})

    records = asyncio.run(
        DRepEnricher(bulk, None, fast_settings).enrich(["drep_always_abstain", a, "drep_always_no_confidence"])
    )

    assert bulk.called_ids("delegators") == [a]
    assert records[0].normalized_id == "drep_always_abstain"
    assert (records[0].delegator_count, records[0].source) == (0, "none")
    assert records[1].delegator_count == 1


def test_only_system_dreps_makes_no_calls(provider_factory, fast_settings):
    bulk = provider_factory("koios")
    fallback = provider_factory("blockfrost")

    records = asyncio.run(DRepEnricher(bulk, fallback, fast_settings).enrich(["drep_always_yes"]))

    assert bulk.calls == [] and fallback.calls == []
    assert records[0].vote_count == 0


def test_malformed_id_raises_before_any_call(provider_factory, drep_ids, fast_settings):
    (a,) = drep_ids(1)
    bulk = provider_factory("koios")

    with pytest.raises(MalformedIdentifier):
        asyncio.run(DRepEnricher(bulk, None, fast_settings).enrich([a, "drep1notvalid"]))
    assert bulk.calls == []


def test_has_profile_from_input_metadata(provider_factory, drep_ids, fast_settings):
    a, b = drep_ids(2)
    bulk = provider_factory("koios", delegators={a: _delegators(1)})
    sources = [
        DRepSource(a, {"body": {"givenName": {"@value": "Alice"}}}),
        DRepSource(b, {"@context": {"name": "CIP119:givenName"}}),
    ]

    records = asyncio.run(enrich_dreps(sources, bulk, settings=fast_settings))

    assert [r.has_profile for r in records] == [True, False]


def test_empty_input(provider_factory, fast_settings):
    bulk = provider_factory("koios")
    assert asyncio.run(DRepEnricher(bulk, None, fast_settings).enrich([])) == []
    assert bulk.calls == []


def test_record_to_dict(provider_factory, drep_ids, fast_settings):
    (a,) = drep_ids(1)
    bulk = provider_factory("koios", votes={a: [VoteRecord("no")]})

    (record,) = asyncio.run(DRepEnricher(bulk, None, fast_settings).enrich([a]))

    assert record.to_dict() == {
        "identifier": a,
        "normalized_id": a,
        "delegator_count": 0,
        "vote_count": 1,
        "has_profile": False,
        "votes": {"yes": 0, "no": 1, "abstain": 0},
        "last_vote_epoch": None,
        "source": "koios",
    }
