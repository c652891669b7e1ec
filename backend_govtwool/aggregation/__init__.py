"""
Batched, rate-limited DRep enrichment over Koios with Blockfrost fallback.
"""

from backend_govtwool.aggregation.enrichment import (
    DRepEnricher,
    build_enricher,
    decide_fallback,
    enrich_dreps,
    fetch_proposal_voting_summaries,
    get_total_active_dreps,
)
from backend_govtwool.aggregation.models import DRepSource, DRepStats, EnrichedRecord, VoteTally
from backend_govtwool.aggregation.rate_limit import RateLimiter

__all__ = [
    "DRepEnricher",
    "DRepSource",
    "DRepStats",
    "EnrichedRecord",
    "RateLimiter",
    "VoteTally",
    "build_enricher",
    "decide_fallback",
    "enrich_dreps",
    "fetch_proposal_voting_summaries",
    "get_total_active_dreps",
]
