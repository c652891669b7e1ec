"""
DRep / proposal metadata normalization.

Metadata comes from third parties as arbitrary JSON: plain objects, CIP-119
JSON-LD documents ({"@context": ..., "body": {"givenName": {"@value": ...}}}),
and sometimes hex-encoded JSON stuffed into string fields. sanitize_metadata()
keeps only plain JSON values and unwraps hex JSON; find_first_string() pulls
canonical display fields out of whatever shape survives.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Optional, Sequence, Union

JsonValue = Union[None, bool, int, float, str, List["JsonValue"], Dict[str, "JsonValue"]]
JsonObject = Dict[str, JsonValue]

CONTEXT_KEY = "@context"
VALUE_WRAPPER_KEYS = ("@value", "value")

NAME_KEYS = ("name", "title", "givenName")
DESCRIPTION_KEYS = ("description", "abstract", "summary")
WEBSITE_KEYS = ("website", "url", "homepage", "link")

# Context term leaked into a value slot, e.g. "CIP119:givenName"
_CIP_REFERENCE_RE = re.compile(r"^CIP\d+:", re.IGNORECASE)
_HEX_RE = re.compile(r"[0-9a-fA-F]+")
_LEADING_X_RE = re.compile(r"^\\?x", re.IGNORECASE)

_DROP = object()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def try_decode_hex_json(value: str) -> Any:
    """
    Decode a hex string holding UTF-8 JSON (optionally \\x-escaped).
    Returns the parsed value, or _DROP when the string is not hex JSON.
    """
    cleaned = _LEADING_X_RE.sub("", value.strip().replace("\\x", ""))
    if not cleaned or len(cleaned) % 2 != 0 or not _HEX_RE.fullmatch(cleaned):
        return _DROP
    try:
        decoded = bytes.fromhex(cleaned).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return _DROP
    if not decoded:
        return _DROP
    try:
        return json.loads(decoded, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return _DROP


def _sanitize(value: Any) -> Any:
    # bool before int/float: bool is an int subclass
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        decoded = try_decode_hex_json(value)
        if decoded is not _DROP:
            try:
                return _sanitize(decoded)
            except RecursionError:
                return _DROP
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return _DROP
        return value
    if isinstance(value, (list, tuple)):
        out = []
        for entry in value:
            sanitized = _sanitize(entry)
            if sanitized is not _DROP:
                out.append(sanitized)
        return out
    if isinstance(value, dict):
        return _sanitize_object(value)
    return _DROP


def _sanitize_object(value: dict) -> JsonObject:
    result: JsonObject = {}
    for key, entry in value.items():
        if not isinstance(key, str):
            continue
        sanitized = _sanitize(entry)
        if sanitized is not _DROP:
            result[key] = sanitized
    return result


def sanitize_value(value: Any) -> Optional[JsonValue]:
    """Sanitize any value; returns None both for JSON null and for dropped values."""
    try:
        sanitized = _sanitize(value)
    except RecursionError:
        return None
    return None if sanitized is _DROP else sanitized


def sanitize_metadata(value: Any) -> Optional[JsonObject]:
    """
    Closure of a metadata tree under the plain-JSON filter.

    Non-plain values (callables, sets, bytes, custom objects, NaN) are dropped;
    strings holding hex-encoded JSON are replaced by their sanitized decoding.
    Returns None when the top-level value is not a dict. Trees nested too deep to
    walk are treated as unusable and also give None. Idempotent.
    """
    if not isinstance(value, dict):
        return None
    try:
        return _sanitize_object(value)
    except RecursionError:
        return None


def extract_string(value: Any) -> Optional[str]:
    """
    Pull a display string out of a field value.

    Unwraps {"@value": ...} / {"value": ...} JSON-LD wrappers, takes the first
    usable string in arrays, and treats blank strings and CIPnnn: references
    as absent.
    """
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed or _CIP_REFERENCE_RE.match(trimmed):
            return None
        return trimmed
    if isinstance(value, (list, tuple)):
        for entry in value:
            extracted = extract_string(entry)
            if extracted:
                return extracted
        return None
    if not isinstance(value, dict):
        return None
    for key in VALUE_WRAPPER_KEYS:
        if key in value:
            extracted = extract_string(value[key])
            if extracted:
                return extracted
    for key, entry in value.items():
        if key == CONTEXT_KEY:
            continue
        extracted = extract_string(entry)
        if extracted:
            return extracted
    return None


def _find(value: Any, keys: Sequence[str], current_key: Optional[str]) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        for entry in value:
            found = _find(entry, keys, current_key)
            if found:
                return found
        return None
    if not isinstance(value, dict):
        return None

    # Key priority at this node; skipped when we descended through a candidate key
    if current_key is None or current_key not in keys:
        for key in keys:
            if key != CONTEXT_KEY and key in value:
                extracted = extract_string(value[key])
                if extracted:
                    return extracted

    for key, entry in value.items():
        if key == CONTEXT_KEY:
            continue
        if key in keys:
            extracted = extract_string(entry)
            if extracted:
                return extracted
        else:
            found = _find(entry, keys, key)
            if found:
                return found
    return None


def find_first_string(tree: Any, keys: Sequence[str]) -> Optional[str]:
    """
    Depth-first search for the first non-empty string under any of keys.

    At each object, keys are tried in priority order before descending into
    children (in insertion order). @context is never read as data.
    """
    return _find(tree, tuple(keys), None)


def get_metadata_name(metadata: Optional[dict]) -> Optional[str]:
    return find_first_string(metadata, NAME_KEYS) if metadata else None


def get_metadata_description(metadata: Optional[dict]) -> Optional[str]:
    return find_first_string(metadata, DESCRIPTION_KEYS) if metadata else None


def get_metadata_website(metadata: Optional[dict]) -> Optional[str]:
    return find_first_string(metadata, WEBSITE_KEYS) if metadata else None


def has_profile(metadata: Optional[dict]) -> bool:
    """True when the metadata yields a name, description or website."""
    if not metadata:
        return False
    return bool(
        get_metadata_name(metadata)
        or get_metadata_description(metadata)
        or get_metadata_website(metadata)
    )
