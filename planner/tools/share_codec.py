"""
Share codes for build states.

A share code is the canonical BuildState serialized as compact JSON, UTF-8
encoded, then Base64 encoded with the URL-safe alphabet (+ -> -, / -> _) and
the trailing = padding stripped. It travels in a single query parameter,
BUILD_PARAM.

Decoding never raises: anything that is not a well-formed, structurally valid
build yields None.
"""

import base64
import binascii
import logging

from pydantic import ValidationError

from planner.models import BuildState


logger = logging.getLogger(__name__)


BUILD_PARAM = "b"

_REQUIRED_FIELDS = {"version", "unlocked", "placed", "trinkets"}


def base64url_encode(text: str) -> str:
    """UTF-8 encode text and return unpadded URL-safe Base64."""
    encoded = base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def base64url_decode(value: str) -> str:
    """
    Reverse base64url_encode.

    Raises binascii.Error or UnicodeDecodeError on malformed input.
    """
    padded = value + "=" * (-len(value) % 4)
    raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    return raw.decode("utf-8")


def canonicalize(state: BuildState) -> BuildState:
    """
    Return state in canonical order.

    Unlocked indices ascending without duplicates, placed tiles by instanceId,
    trinkets by slot then half. Logically equal states canonicalize equal.
    """
    return state.model_copy(update={
        "unlocked": sorted(set(state.unlocked)),
        "placed": sorted(state.placed, key=lambda p: p.instanceId),
        "trinkets": sorted(state.trinkets, key=lambda t: (t.slot, t.half, t.itemId)),
    })


def encode_build(state: BuildState) -> str:
    """Serialize a build state to a share code."""
    payload = canonicalize(state).model_dump_json(by_alias=True, exclude_none=True)
    return base64url_encode(payload)


def decode_build(value: str) -> BuildState | None:
    """
    Parse a share code back into a build state.

    Returns None for a bad Base64 string, invalid UTF-8, invalid JSON, or a
    payload that does not match the BuildState shape (wrong version, non-int
    coordinates, rotation outside 0/90/180/270, level outside 1-3, slot or
    half out of range).
    """
    if not isinstance(value, str):
        return None

    try:
        decoded = base64url_decode(value)
        state = BuildState.model_validate_json(decoded)
    except (binascii.Error, UnicodeDecodeError, ValidationError, ValueError) as e:
        logger.warning("Invalid share code: %s", e.__class__.__name__)
        return None

    # Defaults are for building states in code; a payload must spell them out.
    missing = _REQUIRED_FIELDS - state.model_fields_set
    if any("rot" not in tile.model_fields_set for tile in state.placed):
        missing.add("rot")
    if missing:
        logger.warning("Invalid share code: missing %s", ", ".join(sorted(missing)))
        return None
    return state
