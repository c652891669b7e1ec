"""
Pytest tests for the Koios client against httpx.MockTransport: query shape,
auth header, status mapping and payload validation.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from backend_govtwool.identifiers import to_legacy
from backend_govtwool.providers import KoiosClient, NoUsableData, ProviderUnavailable

BASE_URL = "https://koios.test/api/v1"


def _client(handler, api_key: str | None = None) -> KoiosClient:
    return KoiosClient(BASE_URL, api_key=api_key, transport=httpx.MockTransport(handler))


def test_delegators_query_and_mapping(drep_ids):
    (drep_id,) = drep_ids(1)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"stake_address": "stake1u9a", "amount": "5000000"},
                {"stake_address": "stake1u9b", "amount": None},
            ],
        )

    records = asyncio.run(_client(handler, api_key="jwt-token").drep_delegators(drep_id, limit=5))

    assert [(r.counterparty, r.amount) for r in records] == [("stake1u9a", 5_000_000), ("stake1u9b", 0)]
    request = seen[0]
    assert request.url.path == "/api/v1/drep_delegators"
    assert request.url.params["_drep_id"] == drep_id
    assert request.url.params["limit"] == "5"
    assert request.headers["authorization"] == "Bearer jwt-token"


def test_legacy_input_sent_as_current(drep_ids):
    (drep_id,) = drep_ids(1)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    asyncio.run(_client(handler).drep_delegators(to_legacy(drep_id)))

    assert seen[0].url.params["_drep_id"] == drep_id
    assert "limit" not in seen[0].url.params
    assert "authorization" not in seen[0].headers


def test_votes_carry_order_and_lowercase_kind(drep_ids):
    (drep_id,) = drep_ids(1)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[{"proposal_id": "gov_action1abc", "vote": "Yes", "block_time": 1719000000}],
        )

    votes = asyncio.run(_client(handler).drep_votes(drep_id, limit=1000, order="block_time.desc"))

    assert votes[0].vote_kind == "yes"
    assert votes[0].timestamp == 1719000000
    assert votes[0].epoch is None
    assert seen[0].url.params["order"] == "block_time.desc"


@pytest.mark.parametrize("status", [404, 429])
def test_not_found_and_rate_limited_are_empty(status, drep_ids):
    (drep_id,) = drep_ids(1)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"message": "nope"})

    assert asyncio.run(_client(handler).drep_votes(drep_id)) == []


def test_server_error_is_provider_unavailable(drep_ids):
    (drep_id,) = drep_ids(1)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(ProviderUnavailable) as exc:
        asyncio.run(_client(handler).drep_delegators(drep_id))
    assert exc.value.status_code == 502
    assert exc.value.provider == "koios"


def test_transport_error_is_provider_unavailable(drep_ids):
    (drep_id,) = drep_ids(1)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderUnavailable):
        asyncio.run(_client(handler).drep_delegators(drep_id))


def test_non_list_payload_is_no_usable_data(drep_ids):
    (drep_id,) = drep_ids(1)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "unexpected"})

    with pytest.raises(NoUsableData):
        asyncio.run(_client(handler).drep_delegators(drep_id))


def test_invalid_json_is_no_usable_data(drep_ids):
    (drep_id,) = drep_ids(1)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    with pytest.raises(NoUsableData):
        asyncio.run(_client(handler).drep_votes(drep_id))


def test_proposal_voting_summary():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/proposal_voting_summary"
        if request.url.params["_proposal_id"] == "gov_action1known":
            return httpx.Response(200, json=[{"drep_yes_votes_cast": 12, "drep_no_votes_cast": 3}])
        return httpx.Response(200, json=[])

    client = _client(handler)
    assert asyncio.run(client.proposal_voting_summary("gov_action1known")) == {
        "drep_yes_votes_cast": 12,
        "drep_no_votes_cast": 3,
    }
    assert asyncio.run(client.proposal_voting_summary("gov_action1missing")) is None


def test_drep_epoch_summary():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"epoch_no": 520, "amount": "1", "dreps": 1042}])

    rows = asyncio.run(_client(handler).drep_epoch_summary(limit=1))

    assert rows == [{"epoch_no": 520, "amount": "1", "dreps": 1042}]
    assert seen[0].url.params["order"] == "epoch_no.desc"
    assert seen[0].url.params["limit"] == "1"


def test_empty_base_url_rejected():
    with pytest.raises(ValueError):
        KoiosClient("  ")
