"""Provider-side failures. Caught per call by the enrichment pipeline, never surfaced to API callers."""

from __future__ import annotations


class ProviderError(Exception):
    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderUnavailable(ProviderError):
    """Network error or non-success HTTP status from a provider."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(provider, message)


class NoUsableData(ProviderError):
    """Provider answered but nothing in the answer can be used (wrong shape, all empty)."""
