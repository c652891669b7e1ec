"""
Pytest fixtures for GovTwool tests: zero-delay enrichment settings, in-memory
providers, DRep ID builders and a FastAPI TestClient with dependency overrides.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from backend_govtwool.config import EnrichmentSettings, ProviderSettings, Settings
from backend_govtwool.identifiers.drep_id import encode_raw, to_current


class FakeProvider:
    """
    In-memory StatsProvider. Tables map a current-form DRep ID to a list of
    records or to an exception instance to raise. Records every call.
    """

    def __init__(
        self,
        name: str,
        delegators: dict[str, Any] | None = None,
        votes: dict[str, Any] | None = None,
        delay_sec: float = 0.0,
    ) -> None:
        self.name = name
        self._delegators = delegators or {}
        self._votes = votes or {}
        self._delay = delay_sec
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _answer(self, table: dict[str, Any], stat: str, drep_id: str, kwargs: dict[str, Any]) -> list:
        self.calls.append((stat, drep_id, kwargs))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
            value = table.get(drep_id, [])
            if isinstance(value, BaseException):
                raise value
            return list(value)
        finally:
            self.in_flight -= 1

    async def drep_delegators(self, drep_id: str, limit: int | None = None) -> list:
        return await self._answer(self._delegators, "delegators", drep_id, {"limit": limit})

    async def drep_votes(self, drep_id: str, limit: int | None = None, order: str | None = None) -> list:
        return await self._answer(self._votes, "votes", drep_id, {"limit": limit, "order": order})

    def called_ids(self, stat: str) -> list[str]:
        return [drep_id for s, drep_id, _ in self.calls if s == stat]


def legacy_key_id(seed: int) -> str:
    """Legacy key-based DRep ID whose 28-byte credential is `seed` repeated."""
    return encode_raw("drep", bytes([seed]) * 28)


def current_key_id(seed: int) -> str:
    return to_current(legacy_key_id(seed))


@pytest.fixture
def fast_settings() -> EnrichmentSettings:
    """Enrichment settings with no pacing so tests run instantly."""
    return EnrichmentSettings(
        batch_size=10,
        call_delay_sec=0.0,
        batch_delay_sec=0.0,
        call_timeout_sec=2.0,
        result_limit=1000,
    )


@pytest.fixture
def provider_factory():
    return FakeProvider


@pytest.fixture
def drep_ids():
    """Builder for distinct current-form DRep IDs: drep_ids(3) -> [id1, id2, id3]."""

    def build(count: int, start: int = 1) -> list[str]:
        return [current_key_id(seed) for seed in range(start, start + count)]

    return build


@pytest.fixture
def app_settings(fast_settings) -> Settings:
    return Settings(
        providers=ProviderSettings(
            network="preview",
            koios_base_url="https://koios.test/api/v1",
            blockfrost_base_url="https://blockfrost.test/api/v0",
            blockfrost_api_key="previewTestKey",
        ),
        enrichment=fast_settings,
    )


@pytest.fixture
def client(app_settings):
    """
    FastAPI TestClient with settings overridden. Tests install their own
    get_enricher / get_koios overrides on client.app.dependency_overrides.
    """
    from fastapi.testclient import TestClient

    from backend_govtwool.api_server.server import app, get_app_settings

    app.dependency_overrides[get_app_settings] = lambda: app_settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
