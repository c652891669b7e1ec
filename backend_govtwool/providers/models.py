"""
Provider-neutral delegator and vote records.

Koios and Blockfrost name the same facts differently (stake_address vs address,
"Yes" vs "yes", block_time vs epoch). Adapters map into these records so the
pipeline never looks at raw payloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

VOTE_YES = "yes"
VOTE_NO = "no"
VOTE_ABSTAIN = "abstain"


def _int_or_none(val: Any) -> int | None:
    if val is None or isinstance(val, bool):
        return None
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class DelegatorRecord:
    counterparty: str
    """Stake address delegating to the DRep."""
    amount: int = 0
    """Delegated amount in lovelace."""

    @classmethod
    def from_koios(cls, item: dict[str, Any]) -> "DelegatorRecord":
        return cls(
            counterparty=str(item.get("stake_address") or ""),
            amount=_int_or_none(item.get("amount")) or 0,
        )

    @classmethod
    def from_blockfrost(cls, item: dict[str, Any]) -> "DelegatorRecord":
        return cls(
            counterparty=str(item.get("address") or ""),
            amount=_int_or_none(item.get("amount")) or 0,
        )


@dataclass(frozen=True)
class VoteRecord:
    vote_kind: str
    """Lowercased vote: yes | no | abstain."""
    timestamp: int | None = None
    """Block time (unix seconds) when the provider reports it."""
    proposal_id: str | None = None
    epoch: int | None = None
    """Epoch of the vote; only the per-entity provider reports it."""

    @classmethod
    def from_koios(cls, item: dict[str, Any]) -> "VoteRecord":
        return cls(
            vote_kind=str(item.get("vote") or "").strip().lower(),
            timestamp=_int_or_none(item.get("block_time")),
            proposal_id=item.get("proposal_id"),
        )

    @classmethod
    def from_blockfrost(cls, item: dict[str, Any]) -> "VoteRecord":
        return cls(
            vote_kind=str(item.get("vote") or "").strip().lower(),
            proposal_id=item.get("proposal_id"),
            epoch=_int_or_none(item.get("epoch")),
        )


class StatsProvider(Protocol):
    """What the enrichment pipeline needs from a provider; ids are in current (CIP-129) form."""

    name: str

    async def drep_delegators(self, drep_id: str, limit: int | None = None) -> list[DelegatorRecord]:
        ...

    async def drep_votes(
        self,
        drep_id: str,
        limit: int | None = None,
        order: str | None = None,
    ) -> list[VoteRecord]:
        ...
