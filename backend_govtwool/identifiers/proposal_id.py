"""
Proposal (governance action) ID parsing.

Two textual forms reach us:
- compact: gov_action1... (CIP-129 bech32). Opaque; the tx hash and index
  cannot be recovered without asking a provider.
- composite: <64 hex tx hash>#<cert index>, or a bare hash meaning index 0.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from backend_govtwool.identifiers.errors import UnrecognizedProposalFormat

COMPACT_PREFIX = "gov_action1"

_TX_HASH_RE = re.compile(r"[0-9a-fA-F]{64}")
_COMPOSITE_RE = re.compile(r"([0-9a-fA-F]{64})#([0-9]+)")


@dataclass(frozen=True)
class CompactProposalId:
    token: str

    format = "compact"


@dataclass(frozen=True)
class CompositeProposalId:
    tx_hash: str
    cert_index: int = 0

    format = "composite"

    def __str__(self) -> str:
        return format_proposal_id(self.tx_hash, self.cert_index)


@dataclass(frozen=True)
class UnrecognizedProposalId:
    text: str

    format = "unrecognized"


ParsedProposalId = Union[CompactProposalId, CompositeProposalId, UnrecognizedProposalId]


def is_compact_proposal_id(text: str) -> bool:
    return text.startswith(COMPACT_PREFIX)


def parse(text: str) -> ParsedProposalId:
    """Classify a proposal id; first matching rule wins (compact, hash#index, bare hash)."""
    if is_compact_proposal_id(text):
        return CompactProposalId(token=text)
    match = _COMPOSITE_RE.fullmatch(text)
    if match:
        return CompositeProposalId(tx_hash=match.group(1), cert_index=int(match.group(2)))
    if _TX_HASH_RE.fullmatch(text):
        return CompositeProposalId(tx_hash=text, cert_index=0)
    return UnrecognizedProposalId(text=text)


def format_proposal_id(tx_hash: str, cert_index: int = 0) -> str:
    """Inverse of parse for composites: "<tx_hash>#<cert_index>"."""
    if not isinstance(tx_hash, str) or not _TX_HASH_RE.fullmatch(tx_hash):
        raise UnrecognizedProposalFormat(f"tx_hash must be 64 hex characters, got {tx_hash!r}")
    if isinstance(cert_index, bool) or not isinstance(cert_index, int) or cert_index < 0:
        raise UnrecognizedProposalFormat(f"cert_index must be a non-negative integer, got {cert_index!r}")
    return f"{tx_hash}#{cert_index}"


def extract_tx_hash_and_index(text: str) -> tuple[str, int] | None:
    """
    (tx_hash, cert_index) for composite ids.

    Returns None for compact tokens (needs a provider lookup) and raises
    UnrecognizedProposalFormat for anything else.
    """
    parsed = parse(text)
    if isinstance(parsed, CompositeProposalId):
        return parsed.tx_hash, parsed.cert_index
    if isinstance(parsed, CompactProposalId):
        return None
    raise UnrecognizedProposalFormat(f"Unrecognized proposal id: {text!r}")
