"""Inputs and outputs of the enrichment pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from backend_govtwool.providers.models import (
    VOTE_ABSTAIN,
    VOTE_NO,
    VOTE_YES,
    DelegatorRecord,
    VoteRecord,
)

SOURCE_NONE = "none"


@dataclass
class DRepSource:
    """A base record from a prior listing call: the DRep ID as received plus its metadata, if any."""

    drep_id: str
    metadata: dict[str, Any] | None = None


@dataclass
class VoteTally:
    yes: int = 0
    no: int = 0
    abstain: int = 0

    @classmethod
    def from_votes(cls, votes: Iterable[VoteRecord]) -> "VoteTally":
        tally = cls()
        for vote in votes:
            kind = vote.vote_kind.lower()
            if kind == VOTE_YES:
                tally.yes += 1
            elif kind == VOTE_NO:
                tally.no += 1
            elif kind == VOTE_ABSTAIN:
                tally.abstain += 1
        return tally

    def to_dict(self) -> dict[str, int]:
        return {"yes": self.yes, "no": self.no, "abstain": self.abstain}


@dataclass
class DRepStats:
    """Raw statistics one provider returned for one normalized DRep ID."""

    delegators: list[DelegatorRecord] = field(default_factory=list)
    votes: list[VoteRecord] = field(default_factory=list)
    answered: bool = False
    """At least one call for this ID completed without a provider error."""

    def has_data(self) -> bool:
        return bool(self.delegators or self.votes)


@dataclass
class EnrichedRecord:
    identifier: str
    """DRep ID exactly as the caller supplied it."""
    normalized_id: str
    delegator_count: int = 0
    vote_count: int = 0
    has_profile: bool = False
    votes: VoteTally = field(default_factory=VoteTally)
    last_vote_epoch: int | None = None
    source: str = SOURCE_NONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "normalized_id": self.normalized_id,
            "delegator_count": self.delegator_count,
            "vote_count": self.vote_count,
            "has_profile": self.has_profile,
            "votes": self.votes.to_dict(),
            "last_vote_epoch": self.last_vote_epoch,
            "source": self.source,
        }
