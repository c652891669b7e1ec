"""
Metadata normalization (sanitize, canonical field extraction) and anchor checks.
"""

from backend_govtwool.metadata.anchor_checks import (
    CheckOutcome,
    CheckStatus,
    evaluate_anchor_hash,
    evaluate_anchor_url,
)
from backend_govtwool.metadata.normalizer import (
    find_first_string,
    get_metadata_description,
    get_metadata_name,
    get_metadata_website,
    has_profile,
    sanitize_metadata,
)

__all__ = [
    "CheckOutcome",
    "CheckStatus",
    "evaluate_anchor_hash",
    "evaluate_anchor_url",
    "find_first_string",
    "get_metadata_description",
    "get_metadata_name",
    "get_metadata_website",
    "has_profile",
    "sanitize_metadata",
]
