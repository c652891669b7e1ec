"""
DRep ID codec: legacy (CIP-105) and current (CIP-129) bech32 layouts.

Legacy IDs carry the 28-byte credential only and signal script credentials via
the drep_script prefix. Current IDs prepend one header byte (0x22 key, 0x23
script) and always use the drep prefix. Koios keys everything by the current
form; Blockfrost paths take the legacy form.

System DReps (drep_always_abstain, ...) are not bech32: every entry point checks
for them before attempting a decode.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bech32 import bech32_decode, bech32_encode, convertbits

from backend_govtwool.identifiers.errors import (
    InvalidLength,
    MalformedIdentifier,
    UnrecognizedPrefix,
)

KEY_PREFIX = "drep"
SCRIPT_PREFIX = "drep_script"
LEGACY_PREFIXES = (KEY_PREFIX, SCRIPT_PREFIX)
CURRENT_PREFIX = KEY_PREFIX

KEY_HEADER = 0x22
SCRIPT_HEADER = 0x23

CREDENTIAL_LEN = 28
CURRENT_LEN = CREDENTIAL_LEN + 1

SYSTEM_DREPS = frozenset(
    {
        "drep_always_abstain",
        "drep_always_no_confidence",
        "drep_always_yes",
        "drep_always_no",
    }
)


class IdForm(str, Enum):
    LEGACY = "legacy"
    CURRENT = "current"


@dataclass(frozen=True)
class SystemDRepInfo:
    """Display descriptor for a system DRep."""

    name: str
    description: str
    icon: str


_SYSTEM_DREP_INFO: dict[str, SystemDRepInfo] = {
    "drep_always_abstain": SystemDRepInfo(
        name="Always Abstain",
        description=(
            'A system DRep that always votes "Abstain" on all governance actions. '
            "This represents delegators who prefer to abstain from voting."
        ),
        icon="⏸️",
    ),
    "drep_always_no_confidence": SystemDRepInfo(
        name="Always No Confidence",
        description=(
            'A system DRep that always votes "No Confidence" on all governance actions. '
            "This represents delegators who want to express no confidence in proposals."
        ),
        icon="❌",
    ),
    "drep_always_yes": SystemDRepInfo(
        name="Always Yes",
        description=(
            'A system DRep that always votes "Yes" on all governance actions. '
            "This represents delegators who approve all proposals."
        ),
        icon="✅",
    ),
    "drep_always_no": SystemDRepInfo(
        name="Always No",
        description=(
            'A system DRep that always votes "No" on all governance actions. '
            "This represents delegators who reject all proposals."
        ),
        icon="🚫",
    ),
}


def is_system_drep(text: str) -> bool:
    return text in SYSTEM_DREPS


def get_system_drep_info(text: str) -> SystemDRepInfo | None:
    """Friendly name/description for a system DRep; None for registered DReps."""
    return _SYSTEM_DREP_INFO.get(text)


def _reject_system_drep(text: str) -> None:
    if is_system_drep(text):
        raise MalformedIdentifier(f"System DRep {text!r} has no binary encoding")


def _decode(text: str) -> tuple[str, bytes]:
    """Return (prefix, payload bytes). Raises MalformedIdentifier."""
    _reject_system_drep(text)
    if not isinstance(text, str) or not text:
        raise MalformedIdentifier("DRep ID must be a non-empty string")
    hrp, words = bech32_decode(text)
    if hrp is None or words is None:
        raise MalformedIdentifier(f"Invalid bech32 checksum or charset: {text!r}")
    raw = convertbits(words, 5, 8, False)
    if raw is None:
        raise MalformedIdentifier(f"Invalid bech32 padding: {text!r}")
    return hrp, bytes(raw)


def encode_raw(prefix: str, raw: bytes) -> str:
    """bech32-encode raw bytes under the given human-readable prefix."""
    words = convertbits(list(raw), 8, 5)
    text = bech32_encode(prefix, words) if words is not None else None
    if not text:
        raise MalformedIdentifier(f"Cannot encode {len(raw)} bytes under prefix {prefix!r}")
    return text


def decode_to_raw(text: str) -> bytes:
    """
    Decode a DRep ID to its payload bytes (28 legacy, 29 current).

    Raises MalformedIdentifier for system DReps and bad checksum/charset;
    the payload length is not checked here (see classify).
    """
    return _decode(text)[1]


def classify(raw: bytes) -> IdForm:
    """28 bytes -> LEGACY, 29 bytes -> CURRENT, anything else InvalidLength."""
    if len(raw) == CREDENTIAL_LEN:
        return IdForm.LEGACY
    if len(raw) == CURRENT_LEN:
        return IdForm.CURRENT
    raise InvalidLength(len(raw))


def _decode_checked(text: str) -> tuple[str, bytes, IdForm]:
    """Decode, classify and validate prefix/header against the layout."""
    prefix, raw = _decode(text)
    form = classify(raw)
    if form is IdForm.LEGACY:
        if prefix not in LEGACY_PREFIXES:
            raise UnrecognizedPrefix(prefix)
    else:
        if prefix != CURRENT_PREFIX:
            raise UnrecognizedPrefix(
                prefix, f"Current-form DRep IDs use the {CURRENT_PREFIX!r} prefix, got {prefix!r}"
            )
        if raw[0] not in (KEY_HEADER, SCRIPT_HEADER):
            raise MalformedIdentifier(f"Unknown DRep header byte 0x{raw[0]:02x}")
    return prefix, raw, form


def is_script_based(text: str, form: IdForm | None = None) -> bool:
    """
    True for script credentials.

    Legacy: decided by the drep_script prefix. Current: header byte 0x23.
    If form is given it must match the decoded layout.
    """
    prefix, raw, actual = _decode_checked(text)
    if form is not None and IdForm(form) is not actual:
        raise MalformedIdentifier(f"Expected a {IdForm(form).value} DRep ID, got {actual.value}")
    if actual is IdForm.LEGACY:
        return prefix == SCRIPT_PREFIX
    return raw[0] == SCRIPT_HEADER


def to_current(text: str) -> str:
    """Legacy -> current (CIP-129). System DReps unchanged; current IDs re-encoded lowercase."""
    if is_system_drep(text):
        return text
    prefix, raw, form = _decode_checked(text)
    if form is IdForm.CURRENT:
        return encode_raw(prefix, raw)
    header = SCRIPT_HEADER if prefix == SCRIPT_PREFIX else KEY_HEADER
    return encode_raw(CURRENT_PREFIX, bytes([header]) + raw)


def to_legacy(text: str) -> str:
    """Current -> legacy (CIP-105). System DReps unchanged; legacy IDs re-encoded lowercase."""
    if is_system_drep(text):
        return text
    prefix, raw, form = _decode_checked(text)
    if form is IdForm.LEGACY:
        return encode_raw(prefix, raw)
    prefix = SCRIPT_PREFIX if raw[0] == SCRIPT_HEADER else KEY_PREFIX
    return encode_raw(prefix, raw[1:])


def normalize(text: str) -> str:
    """Canonical internal form: system DReps unchanged, everything else current."""
    if is_system_drep(text):
        return text
    return to_current(text)


def is_valid_drep_id(text: str) -> bool:
    """True for system DReps and for IDs that decode to a valid legacy or current layout."""
    if is_system_drep(text):
        return True
    try:
        _decode_checked(text)
    except (MalformedIdentifier, InvalidLength):
        return False
    return True


def drep_id_to_hex(text: str) -> str:
    """Hex of the decoded payload (56 chars legacy, 58 current)."""
    return decode_to_raw(text).hex()
