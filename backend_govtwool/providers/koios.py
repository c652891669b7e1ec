"""
Koios (bulk-query provider) client.

Koios keys DReps by current-form (CIP-129) IDs and supports PostgREST
horizontal filtering (limit, order) on every endpoint, so the pipeline can cap
payloads when only counts are needed. 404 (unknown DRep) and 429 (rate
pressure) are reported as "no result" rather than errors.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_govtwool.config.settings import ProviderSettings
from backend_govtwool.govtwool_logging import get_logger
from backend_govtwool.identifiers.drep_id import to_current
from backend_govtwool.providers.errors import NoUsableData, ProviderUnavailable
from backend_govtwool.providers.models import DelegatorRecord, VoteRecord

logger = get_logger(__name__)

PROVIDER_NAME = "koios"
DEFAULT_TIMEOUT_SEC = 30.0


class KoiosClient:
    """Async Koios v1 client; one short-lived httpx.AsyncClient per request."""

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
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout_sec
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: ProviderSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "KoiosClient":
        return cls(
            settings.koios_base_url,
            api_key=settings.koios_api_key,
            timeout_sec=settings.timeout_sec,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any | None:
        """GET endpoint; None for 404/429, ProviderUnavailable for other failures."""
        url = f"{self._base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            raise ProviderUnavailable(PROVIDER_NAME, f"request to {endpoint} failed: {e}") from e
        if resp.status_code == 404:
            return None
        if resp.status_code == 429:
            logger.warning("koios_rate_limited", endpoint=endpoint)
            return None
        if not resp.is_success:
            logger.error("koios_http_error", endpoint=endpoint, status=resp.status_code)
            raise ProviderUnavailable(
                PROVIDER_NAME,
                f"{resp.status_code} for {endpoint}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise NoUsableData(PROVIDER_NAME, f"invalid JSON from {endpoint}") from e

    async def _get_list(self, endpoint: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        data = await self._get(endpoint, params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise NoUsableData(PROVIDER_NAME, f"expected a list from {endpoint}, got {type(data).__name__}")
        return [item for item in data if isinstance(item, dict)]

    async def drep_delegators(self, drep_id: str, limit: int | None = None) -> list[DelegatorRecord]:
        params: dict[str, Any] = {"_drep_id": to_current(drep_id)}
        if limit is not None:
            params["limit"] = limit
        items = await self._get_list("/drep_delegators", params)
        return [DelegatorRecord.from_koios(item) for item in items]

    async def drep_votes(
        self,
        drep_id: str,
        limit: int | None = None,
        order: str | None = None,
    ) -> list[VoteRecord]:
        params: dict[str, Any] = {"_drep_id": to_current(drep_id)}
        if limit is not None:
            params["limit"] = limit
        if order:
            params["order"] = order
        items = await self._get_list("/drep_votes", params)
        return [VoteRecord.from_koios(item) for item in items]

    async def proposal_voting_summary(self, proposal_id: str) -> dict[str, Any] | None:
        """Voting summary for a compact (gov_action1...) proposal id; None if unknown."""
        items = await self._get_list("/proposal_voting_summary", {"_proposal_id": proposal_id})
        return items[0] if items else None

    async def drep_epoch_summary(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Per-epoch DRep totals, most recent first."""
        params: dict[str, Any] = {"order": "epoch_no.desc"}
        if limit is not None:
            params["limit"] = limit
        return await self._get_list("/drep_epoch_summary", params)
