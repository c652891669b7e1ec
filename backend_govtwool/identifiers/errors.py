"""Typed errors for DRep and proposal identifier handling."""

from __future__ import annotations


class GovernanceIdError(ValueError):
    """Base class: an identifier that cannot be decoded, converted or parsed."""


class MalformedIdentifier(GovernanceIdError):
    """Bad bech32 checksum, charset or padding, or a value with no binary form (system DReps)."""


class UnrecognizedPrefix(MalformedIdentifier):
    """Valid bech32 whose human-readable prefix is not a DRep prefix for its layout."""

    def __init__(self, prefix: str, message: str | None = None) -> None:
        self.prefix = prefix
        super().__init__(message or f"Unrecognized DRep prefix: {prefix!r}")


class InvalidLength(GovernanceIdError):
    """Decoded payload is neither 28 (legacy) nor 29 (current) bytes."""

    def __init__(self, length: int) -> None:
        self.length = length
        super().__init__(f"DRep payload must be 28 or 29 bytes, got {length}")


class UnrecognizedProposalFormat(GovernanceIdError):
    """Proposal id matches none of: gov_action1 token, <hash>#<index>, bare hash."""
