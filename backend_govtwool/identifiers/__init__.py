"""
Governance identifier handling: DRep ID codec (legacy/current) and proposal ID parsing.
"""

from backend_govtwool.identifiers.drep_id import (
    IdForm,
    SYSTEM_DREPS,
    classify,
    decode_to_raw,
    is_script_based,
    is_system_drep,
    is_valid_drep_id,
    normalize,
    to_current,
    to_legacy,
)
from backend_govtwool.identifiers.errors import (
    GovernanceIdError,
    InvalidLength,
    MalformedIdentifier,
    UnrecognizedPrefix,
    UnrecognizedProposalFormat,
)
from backend_govtwool.identifiers.proposal_id import (
    CompactProposalId,
    CompositeProposalId,
    UnrecognizedProposalId,
    format_proposal_id,
    parse,
)

__all__ = [
    "CompactProposalId",
    "CompositeProposalId",
    "GovernanceIdError",
    "IdForm",
    "InvalidLength",
    "MalformedIdentifier",
    "SYSTEM_DREPS",
    "UnrecognizedPrefix",
    "UnrecognizedProposalFormat",
    "UnrecognizedProposalId",
    "classify",
    "decode_to_raw",
    "format_proposal_id",
    "is_script_based",
    "is_system_drep",
    "is_valid_drep_id",
    "normalize",
    "parse",
    "to_current",
    "to_legacy",
]
