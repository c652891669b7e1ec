"""
DRep enrichment: attach delegator and vote statistics to base DRep records.

Flow:
  normalize IDs (malformed input raises here, before any network call)
  → batches of `batch_size`, delegators + votes per ID run concurrently
    against the bulk provider, every call paced by one shared RateLimiter
  → decide_fallback over the whole result set
  → if nothing usable came back, walk the per-entity provider sequentially
  → merge per input record, in input order.

Provider failures are caught per call and logged; they degrade to empty
statistics for that ID and never escape enrich().
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Mapping, Sequence

from backend_govtwool.aggregation.batching import run_batched
from backend_govtwool.aggregation.models import (
    SOURCE_NONE,
    DRepSource,
    DRepStats,
    EnrichedRecord,
    VoteTally,
)
from backend_govtwool.aggregation.rate_limit import RateLimiter
from backend_govtwool.config.settings import EnrichmentSettings, Settings
from backend_govtwool.govtwool_logging import bind_drep, get_logger
from backend_govtwool.identifiers.drep_id import is_system_drep, normalize
from backend_govtwool.identifiers.errors import UnrecognizedProposalFormat
from backend_govtwool.identifiers.proposal_id import CompactProposalId, UnrecognizedProposalId, parse
from backend_govtwool.metadata.normalizer import has_profile, sanitize_metadata
from backend_govtwool.providers.blockfrost import BlockfrostClient
from backend_govtwool.providers.errors import ProviderError
from backend_govtwool.providers.koios import KoiosClient
from backend_govtwool.providers.models import StatsProvider

logger = get_logger(__name__)


def decide_fallback(results: Mapping[str, DRepStats]) -> bool:
    """True when no ID and no statistic kind produced a non-empty list."""
    return not any(stats.has_data() for stats in results.values())


async def _guarded_call(
    provider_name: str,
    stat: str,
    drep_id: str,
    call: Callable[[], Awaitable[list]],
    limiter: RateLimiter,
    timeout_sec: float | None,
) -> tuple[list, bool]:
    """Run one provider call; returns (rows, answered). Failures become ([], False)."""
    await limiter.acquire()
    try:
        rows = await asyncio.wait_for(call(), timeout=timeout_sec)
    except asyncio.TimeoutError:
        bind_drep(drep_id).warning(
            "provider_call_timeout", provider=provider_name, stat=stat, timeout_sec=timeout_sec
        )
        return [], False
    except ProviderError as e:
        bind_drep(drep_id).warning(
            "provider_call_failed", provider=provider_name, stat=stat, error=str(e)
        )
        return [], False
    return list(rows or []), True


class DRepEnricher:
    """Bulk-first enrichment with a per-entity fallback provider."""

    def __init__(
        self,
        bulk: StatsProvider,
        fallback: StatsProvider | None = None,
        settings: EnrichmentSettings | None = None,
    ) -> None:
        self._bulk = bulk
        self._fallback = fallback
        self._settings = settings or EnrichmentSettings()

    @property
    def settings(self) -> EnrichmentSettings:
        return self._settings

    async def _fetch_stats(
        self,
        provider: StatsProvider,
        drep_id: str,
        limiter: RateLimiter,
        *,
        concurrent: bool,
    ) -> DRepStats:
        s = self._settings

        def delegators() -> Awaitable[list]:
            return provider.drep_delegators(drep_id, limit=s.result_limit)

        def votes() -> Awaitable[list]:
            return provider.drep_votes(drep_id, limit=s.result_limit, order=s.vote_order)

        name = provider.name
        if concurrent:
            (dels, dels_ok), (vts, vts_ok) = await asyncio.gather(
                _guarded_call(name, "delegators", drep_id, delegators, limiter, s.call_timeout_sec),
                _guarded_call(name, "votes", drep_id, votes, limiter, s.call_timeout_sec),
            )
        else:
            dels, dels_ok = await _guarded_call(name, "delegators", drep_id, delegators, limiter, s.call_timeout_sec)
            vts, vts_ok = await _guarded_call(name, "votes", drep_id, votes, limiter, s.call_timeout_sec)
        return DRepStats(delegators=dels, votes=vts, answered=dels_ok or vts_ok)

    async def _bulk_phase(self, drep_ids: list[str], limiter: RateLimiter) -> dict[str, DRepStats]:
        async def worker(drep_id: str) -> DRepStats:
            return await self._fetch_stats(self._bulk, drep_id, limiter, concurrent=True)

        stats = await run_batched(
            drep_ids,
            worker,
            batch_size=self._settings.batch_size,
            batch_delay_sec=self._settings.batch_delay_sec,
        )
        return dict(zip(drep_ids, stats))

    async def _fallback_phase(
        self, provider: StatsProvider, drep_ids: list[str], limiter: RateLimiter
    ) -> dict[str, DRepStats]:
        results: dict[str, DRepStats] = {}
        for drep_id in drep_ids:
            results[drep_id] = await self._fetch_stats(provider, drep_id, limiter, concurrent=False)
        return results

    async def enrich(self, records: Sequence[DRepSource | str]) -> list[EnrichedRecord]:
        sources = [r if isinstance(r, DRepSource) else DRepSource(r) for r in records]
        normalized = [normalize(src.drep_id) for src in sources]
        # dict keeps first-seen order; duplicates after normalization are queried once
        queryable = list(dict.fromkeys(n for n in normalized if not is_system_drep(n)))

        stats: dict[str, DRepStats] = {}
        source_name = SOURCE_NONE
        if queryable:
            limiter = RateLimiter(self._settings.call_delay_sec)
            stats = await self._bulk_phase(queryable, limiter)
            source_name = self._bulk.name
            if decide_fallback(stats):
                if self._fallback is None:
                    logger.warning("enrichment_bulk_empty_no_fallback", count=len(queryable))
                else:
                    logger.warning(
                        "enrichment_fallback",
                        bulk=self._bulk.name,
                        fallback=self._fallback.name,
                        count=len(queryable),
                    )
                    stats = await self._fallback_phase(self._fallback, queryable, limiter)
                    source_name = self._fallback.name

        out: list[EnrichedRecord] = []
        for src, drep_id in zip(sources, normalized):
            st = stats.get(drep_id) or DRepStats()
            epochs = [v.epoch for v in st.votes if v.epoch is not None]
            out.append(
                EnrichedRecord(
                    identifier=src.drep_id,
                    normalized_id=drep_id,
                    delegator_count=len(st.delegators),
                    vote_count=len(st.votes),
                    has_profile=has_profile(sanitize_metadata(src.metadata)),
                    votes=VoteTally.from_votes(st.votes),
                    last_vote_epoch=max(epochs) if epochs else None,
                    source=source_name if st.answered else SOURCE_NONE,
                )
            )
        logger.info(
            "enrichment_complete",
            records=len(out),
            queried=len(queryable),
            source=source_name,
        )
        return out


def build_enricher(settings: Settings) -> DRepEnricher:
    """Koios bulk + Blockfrost fallback from resolved settings."""
    return DRepEnricher(
        KoiosClient.from_settings(settings.providers),
        BlockfrostClient.from_settings(settings.providers),
        settings.enrichment,
    )


async def enrich_dreps(
    records: Sequence[DRepSource | str],
    bulk: StatsProvider,
    fallback: StatsProvider | None = None,
    settings: EnrichmentSettings | None = None,
) -> list[EnrichedRecord]:
    return await DRepEnricher(bulk, fallback, settings).enrich(records)


async def fetch_proposal_voting_summaries(
    bulk: KoiosClient,
    proposal_ids: Sequence[str],
    settings: EnrichmentSettings | None = None,
) -> dict[str, dict[str, Any] | None]:
    """
    Voting summary per proposal ID, keyed by the ID as given.

    Only compact (gov_action1...) IDs can be looked up directly; composite
    tx_hash#index IDs map to None. Unrecognized IDs raise
    UnrecognizedProposalFormat before any request is made.
    """
    s = settings or EnrichmentSettings()
    compact: list[str] = []
    for text in proposal_ids:
        parsed = parse(text)
        if isinstance(parsed, CompactProposalId):
            compact.append(parsed.token)
        elif isinstance(parsed, UnrecognizedProposalId):
            raise UnrecognizedProposalFormat(f"Unrecognized proposal ID: {text!r}")
    limiter = RateLimiter(s.call_delay_sec)

    async def worker(token: str) -> dict[str, Any] | None:
        await limiter.acquire()
        try:
            return await asyncio.wait_for(bulk.proposal_voting_summary(token), timeout=s.call_timeout_sec)
        except asyncio.TimeoutError:
            logger.warning("proposal_summary_timeout", proposal_id=token)
        except ProviderError as e:
            logger.warning("proposal_summary_failed", proposal_id=token, error=str(e))
        return None

    unique = list(dict.fromkeys(compact))
    summaries = dict(
        zip(
            unique,
            await run_batched(unique, worker, batch_size=s.batch_size, batch_delay_sec=s.batch_delay_sec),
        )
    )
    return {text: summaries.get(text) for text in proposal_ids}


async def get_total_active_dreps(bulk: KoiosClient) -> int | None:
    """DRep count from the most recent epoch summary; None when unavailable."""
    try:
        rows = await bulk.drep_epoch_summary(limit=1)
    except ProviderError as e:
        logger.warning("active_dreps_failed", error=str(e))
        return None
    if not rows:
        return None
    dreps = rows[0].get("dreps")
    if isinstance(dreps, bool) or not isinstance(dreps, (int, str)):
        return None
    try:
        return int(dreps)
    except ValueError:
        return None
