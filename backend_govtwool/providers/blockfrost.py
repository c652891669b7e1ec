"""
Blockfrost (per-entity provider) client.

Slower than Koios: every DRep statistic is a paginated walk (100 items per
page) keyed by the legacy-form (CIP-105) ID. Used sequentially as the fallback
path. Vote rows carry the epoch, which Koios does not report.
"""

from __future__ import annotations

import math
from typing import Any

import httpx

from backend_govtwool.config.settings import ProviderSettings
from backend_govtwool.govtwool_logging import get_logger
from backend_govtwool.identifiers.drep_id import to_legacy
from backend_govtwool.providers.errors import NoUsableData, ProviderUnavailable
from backend_govtwool.providers.models import DelegatorRecord, VoteRecord

logger = get_logger(__name__)

PROVIDER_NAME = "blockfrost"
PAGE_SIZE = 100
DEFAULT_TIMEOUT_SEC = 30.0
# Blockfrost answers 400 with these messages when an endpoint is not served on a network/tier
_MISSING_ENDPOINT_MARKERS = ("Invalid path", "not found")


class BlockfrostClient:
    """Async Blockfrost v0 client; authenticates with the project_id header."""

    name = PROVIDER_NAME

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url must be non-empty")
        if not api_key:
            logger.warning("blockfrost_api_key_missing", base_url=base_url)
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or ""
        self._timeout = timeout_sec
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: ProviderSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "BlockfrostClient":
        return cls(
            settings.blockfrost_base_url,
            api_key=settings.blockfrost_api_key,
            timeout_sec=settings.timeout_sec,
            transport=transport,
        )

    async def _get(self, client: httpx.AsyncClient, path: str, params: dict[str, Any]) -> Any | None:
        try:
            resp = await client.get(
                f"{self._base_url}{path}",
                params=params,
                headers={"project_id": self._api_key},
            )
        except httpx.HTTPError as e:
            raise ProviderUnavailable(PROVIDER_NAME, f"request to {path} failed: {e}") from e
        if resp.status_code == 404:
            return None
        if resp.status_code == 400 and any(m in resp.text for m in _MISSING_ENDPOINT_MARKERS):
            logger.warning("blockfrost_endpoint_unavailable", path=path)
            return None
        if not resp.is_success:
            raise ProviderUnavailable(
                PROVIDER_NAME,
                f"{resp.status_code} for {path}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise NoUsableData(PROVIDER_NAME, f"invalid JSON from {path}") from e

    async def _get_paged(self, path: str, limit: int | None = None) -> list[dict[str, Any]]:
        """Walk pages until a short page, a missing endpoint, or enough rows for limit."""
        max_pages = math.ceil(limit / PAGE_SIZE) if limit else None
        rows: list[dict[str, Any]] = []
        page = 1
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            while max_pages is None or page <= max_pages:
                data = await self._get(client, path, {"page": page, "count": PAGE_SIZE})
                if data is None:
                    break
                if not isinstance(data, list):
                    raise NoUsableData(PROVIDER_NAME, f"expected a list from {path}")
                rows.extend(item for item in data if isinstance(item, dict))
                if len(data) < PAGE_SIZE:
                    break
                page += 1
        return rows[:limit] if limit else rows

    async def drep_delegators(self, drep_id: str, limit: int | None = None) -> list[DelegatorRecord]:
        path = f"/governance/dreps/{to_legacy(drep_id)}/delegators"
        return [DelegatorRecord.from_blockfrost(item) for item in await self._get_paged(path, limit)]

    async def drep_votes(
        self,
        drep_id: str,
        limit: int | None = None,
        order: str | None = None,
    ) -> list[VoteRecord]:
        # Blockfrost pages oldest first; order is a Koios filter and is ignored here
        path = f"/governance/dreps/{to_legacy(drep_id)}/votes"
        return [VoteRecord.from_blockfrost(item) for item in await self._get_paged(path, limit)]
