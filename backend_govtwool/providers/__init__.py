"""
Provider adapters: Koios (bulk, fast) and Blockfrost (per-entity, fallback).
"""

from backend_govtwool.providers.blockfrost import BlockfrostClient
from backend_govtwool.providers.errors import NoUsableData, ProviderError, ProviderUnavailable
from backend_govtwool.providers.koios import KoiosClient
from backend_govtwool.providers.models import DelegatorRecord, StatsProvider, VoteRecord

__all__ = [
    "BlockfrostClient",
    "DelegatorRecord",
    "KoiosClient",
    "NoUsableData",
    "ProviderError",
    "ProviderUnavailable",
    "StatsProvider",
    "VoteRecord",
]
