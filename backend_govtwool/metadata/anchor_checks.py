"""
Metadata anchor checks: where the document is hosted and whether it matches its hash.

An anchor is (url, hash) as registered on chain. The hash is blake2b-256 over
the exact bytes served at the URL. Fetching is left to the caller; these checks
are pure so they can run against cached bodies.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any

MAX_METADATA_BYTES = 5 * 1024 * 1024
ANCHOR_HASH_BYTES = 32


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CheckOutcome:
    status: CheckStatus
    message: str | None = None

    @classmethod
    def passed(cls, message: str) -> "CheckOutcome":
        return cls(CheckStatus.PASS, message)

    @classmethod
    def failed(cls, message: str) -> "CheckOutcome":
        return cls(CheckStatus.FAIL, message)

    @classmethod
    def unknown(cls, message: str) -> "CheckOutcome":
        return cls(CheckStatus.UNKNOWN, message)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "message": self.message}


def evaluate_anchor_url(url: str | None) -> CheckOutcome:
    """ipfs:// passes; missing or blank is unknown; any other scheme fails."""
    if url is None:
        return CheckOutcome.unknown("No metadata URL provided")
    if not url.strip():
        return CheckOutcome.unknown("Metadata URL is empty or whitespace")
    if url.startswith("ipfs://"):
        return CheckOutcome.passed("Metadata hosted on IPFS")
    scheme = url.split(":", 1)[0] if ":" in url else "unknown"
    return CheckOutcome.failed(f"Metadata URI uses '{scheme}' scheme; expected ipfs://")


def anchor_hash(body: bytes) -> str:
    """blake2b-256 hex digest of the document bytes."""
    return hashlib.blake2b(body, digest_size=ANCHOR_HASH_BYTES).hexdigest()


def evaluate_anchor_hash(body: bytes | None, expected_hash: str | None) -> CheckOutcome:
    """Compare blake2b-256(body) with the registered anchor hash (case-insensitive hex)."""
    if not expected_hash:
        return CheckOutcome.unknown("No metadata hash registered")
    if body is None:
        return CheckOutcome.unknown("Metadata document could not be fetched")
    if len(body) > MAX_METADATA_BYTES:
        return CheckOutcome.failed(
            f"Metadata document exceeds {MAX_METADATA_BYTES} bytes ({len(body)})"
        )
    actual = anchor_hash(body)
    if actual == expected_hash.strip().lower():
        return CheckOutcome.passed("Metadata hash matches anchor")
    return CheckOutcome.failed(f"Metadata hash mismatch: expected {expected_hash}, computed {actual}")
