"""
Environment variable loading for GovTwool providers.

- CARDANO_NETWORK: mainnet | preview | preprod (default: mainnet; BLOCKFROST_NETWORK accepted)
- KOIOS_BASE_URL: Koios API root (default per network)
- KOIOS_API_KEY: optional Koios bearer token
- BLOCKFROST_BASE_URL: Blockfrost API root (default per network)
- BLOCKFROST_API_KEY / BLOCKFROST_PROJECT_ID: Blockfrost project id
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_govtwool/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

NETWORKS = ("mainnet", "preview", "preprod")
DEFAULT_NETWORK = "mainnet"

KOIOS_URLS = {
    "mainnet": "https://api.koios.rest/api/v1",
    "preview": "https://preview.koios.rest/api/v1",
    "preprod": "https://preprod.koios.rest/api/v1",
}
BLOCKFROST_URL_TEMPLATE = "https://cardano-{network}.blockfrost.io/api/v0"


def load_govtwool_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides the process env."""
    load_dotenv(_ENV_PATH, override=False)


def get_cardano_network() -> str:
    """
    Return CARDANO_NETWORK from env: mainnet | preview | preprod.
    Unknown values fall back to mainnet.
    """
    load_govtwool_env()
    raw = (os.getenv("CARDANO_NETWORK") or os.getenv("BLOCKFROST_NETWORK") or DEFAULT_NETWORK).strip().lower()
    return raw if raw in NETWORKS else DEFAULT_NETWORK


def get_koios_base_url() -> str:
    """KOIOS_BASE_URL > network default. Trailing slash stripped."""
    load_govtwool_env()
    url = (os.getenv("KOIOS_BASE_URL") or "").strip()
    if url:
        return url.rstrip("/")
    return KOIOS_URLS[get_cardano_network()]


def get_koios_api_key() -> str | None:
    load_govtwool_env()
    return (os.getenv("KOIOS_API_KEY") or "").strip() or None


def get_blockfrost_base_url() -> str:
    """BLOCKFROST_BASE_URL > https://cardano-<network>.blockfrost.io/api/v0."""
    load_govtwool_env()
    url = (os.getenv("BLOCKFROST_BASE_URL") or "").strip()
    if url:
        return url.rstrip("/")
    return BLOCKFROST_URL_TEMPLATE.format(network=get_cardano_network())


def get_blockfrost_api_key() -> str | None:
    """BLOCKFROST_API_KEY, or BLOCKFROST_PROJECT_ID as used by older scripts."""
    load_govtwool_env()
    key = (os.getenv("BLOCKFROST_API_KEY") or os.getenv("BLOCKFROST_PROJECT_ID") or "").strip()
    return key or None
