"""
Application settings and environment configuration.

Responsibilities:
- Resolve provider endpoints and credentials (see config.env).
- Read enrichment tuning (batch size, delays, timeouts, result cap) from env,
  falling back to defaults on missing or invalid values.
- Expose typed settings for the aggregation pipeline, API server and tools.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from backend_govtwool.config.env import (
    get_blockfrost_api_key,
    get_blockfrost_base_url,
    get_cardano_network,
    get_koios_api_key,
    get_koios_base_url,
    load_govtwool_env,
)
from backend_govtwool.govtwool_logging import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_CALL_DELAY_SEC = 0.1
DEFAULT_BATCH_DELAY_SEC = 0.2
DEFAULT_CALL_TIMEOUT_SEC = 15.0
DEFAULT_RESULT_LIMIT = 1000
DEFAULT_VOTE_ORDER = "block_time.desc"
DEFAULT_PROVIDER_TIMEOUT_SEC = 30.0
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8080


@dataclass
class EnrichmentSettings:
    """Tuning for the batched enrichment pipeline."""

    batch_size: int = DEFAULT_BATCH_SIZE
    call_delay_sec: float = DEFAULT_CALL_DELAY_SEC
    batch_delay_sec: float = DEFAULT_BATCH_DELAY_SEC
    call_timeout_sec: float | None = DEFAULT_CALL_TIMEOUT_SEC
    result_limit: int | None = DEFAULT_RESULT_LIMIT
    vote_order: str | None = DEFAULT_VOTE_ORDER

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.call_delay_sec < 0 or self.batch_delay_sec < 0:
            raise ValueError("delays must be >= 0")
        if self.result_limit is not None and self.result_limit < 1:
            raise ValueError("result_limit must be >= 1 or None")


@dataclass
class ProviderSettings:
    """Endpoints and credentials for Koios (bulk) and Blockfrost (per-entity)."""

    network: str
    koios_base_url: str
    blockfrost_base_url: str
    koios_api_key: str | None = None
    blockfrost_api_key: str | None = None
    timeout_sec: float = DEFAULT_PROVIDER_TIMEOUT_SEC


@dataclass
class Settings:
    providers: ProviderSettings
    enrichment: EnrichmentSettings = field(default_factory=EnrichmentSettings)
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("settings_invalid_int", name=name, value=raw, default=default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("settings_invalid_float", name=name, value=raw, default=default)
        return default


def get_settings() -> Settings:
    """
    Return the current application settings read from env (.env loaded first).

    ENRICH_RESULT_LIMIT=0 disables the per-call result cap;
    ENRICH_CALL_TIMEOUT_SEC=0 disables the per-call timeout.
    """
    load_govtwool_env()
    providers = ProviderSettings(
        network=get_cardano_network(),
        koios_base_url=get_koios_base_url(),
        blockfrost_base_url=get_blockfrost_base_url(),
        koios_api_key=get_koios_api_key(),
        blockfrost_api_key=get_blockfrost_api_key(),
        timeout_sec=_env_float("PROVIDER_TIMEOUT_SEC", DEFAULT_PROVIDER_TIMEOUT_SEC),
    )
    limit = _env_int("ENRICH_RESULT_LIMIT", DEFAULT_RESULT_LIMIT)
    timeout = _env_float("ENRICH_CALL_TIMEOUT_SEC", DEFAULT_CALL_TIMEOUT_SEC)
    enrichment = EnrichmentSettings(
        batch_size=max(1, _env_int("ENRICH_BATCH_SIZE", DEFAULT_BATCH_SIZE)),
        call_delay_sec=max(0.0, _env_float("ENRICH_CALL_DELAY_SEC", DEFAULT_CALL_DELAY_SEC)),
        batch_delay_sec=max(0.0, _env_float("ENRICH_BATCH_DELAY_SEC", DEFAULT_BATCH_DELAY_SEC)),
        call_timeout_sec=timeout if timeout > 0 else None,
        result_limit=limit if limit > 0 else None,
    )
    return Settings(
        providers=providers,
        enrichment=enrichment,
        api_host=(os.getenv("API_HOST") or DEFAULT_API_HOST).strip(),
        api_port=_env_int("API_PORT", DEFAULT_API_PORT),
    )
