"""
Configuration management for Backend GovTwool.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for provider and pipeline configuration.
"""

from backend_govtwool.config.settings import (  # noqa: F401
    EnrichmentSettings,
    ProviderSettings,
    Settings,
    get_settings,
)

__all__ = ["EnrichmentSettings", "ProviderSettings", "Settings", "get_settings"]
