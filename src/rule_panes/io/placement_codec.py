"""Versioned, tagged byte layout for persisted window placement.

// [LAW:single-enforcer] decode() is the sole validation boundary for stored placement blobs.
// [LAW:dataflow-not-control-flow] Malformed input yields a DecodeFailure value, never an exception.

Layout (big-endian):

    magic        4s   b"WPLC"
    version      u16  SCHEMA_VERSION
    field_count  u16
    field_count × { tag: u8, length: u8, value: length bytes }

Fields are matched by tag, not position. Unknown tags are skipped so a
blob written by a newer build with extra fields still decodes, and optional
tags missing from an older blob take their defaults. Blobs that claim a
newer schema version than this build understands are rejected.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from enum import IntEnum

logger = logging.getLogger(__name__)

PLACEMENT_KEY = "WindowPlacement"

MAGIC = b"WPLC"
SCHEMA_VERSION = 1

_HEADER = struct.Struct(">4sHH")
_FIELD_HEADER = struct.Struct(">BB")

_I32_MIN = -(2 ** 31)
_I32_MAX = 2 ** 31 - 1


class ShowState(IntEnum):
    HIDDEN = 0
    NORMAL = 1
    MINIMIZED = 2
    MAXIMIZED = 3


@dataclass(frozen=True)
class Placement:
    """Normal-position rectangle plus show state."""

    left: int
    top: int
    right: int
    bottom: int
    show_state: ShowState = ShowState.NORMAL
    flags: int = 0

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


@dataclass(frozen=True)
class DecodeFailure:
    """Why a stored blob could not be used. Callers fall back to defaults."""

    reason: str

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class _FieldDef:
    tag: int
    name: str
    fmt: struct.Struct
    required: bool


# [LAW:one-source-of-truth] Tag table; append new tags, never renumber.
_FIELDS: tuple[_FieldDef, ...] = (
    _FieldDef(1, "left", struct.Struct(">i"), True),
    _FieldDef(2, "top", struct.Struct(">i"), True),
    _FieldDef(3, "right", struct.Struct(">i"), True),
    _FieldDef(4, "bottom", struct.Struct(">i"), True),
    _FieldDef(5, "show_state", struct.Struct(">B"), True),
    _FieldDef(6, "flags", struct.Struct(">H"), False),
)
_FIELDS_BY_TAG = {f.tag: f for f in _FIELDS}


def encode(placement: Placement) -> bytes:
    """Serialize placement. Raises ValueError for out-of-range values."""
    for name in ("left", "top", "right", "bottom"):
        value = getattr(placement, name)
        if not _I32_MIN <= value <= _I32_MAX:
            raise ValueError("{}={} does not fit in i32".format(name, value))
    if not 0 <= placement.flags <= 0xFFFF:
        raise ValueError("flags={} does not fit in u16".format(placement.flags))

    values = {
        "left": placement.left,
        "top": placement.top,
        "right": placement.right,
        "bottom": placement.bottom,
        "show_state": int(ShowState(placement.show_state)),
        "flags": placement.flags,
    }
    body = bytearray()
    for field in _FIELDS:
        payload = field.fmt.pack(values[field.name])
        body += _FIELD_HEADER.pack(field.tag, len(payload))
        body += payload
    return _HEADER.pack(MAGIC, SCHEMA_VERSION, len(_FIELDS)) + bytes(body)


def decode(data: bytes | None) -> Placement | DecodeFailure:
    """Parse a blob produced by encode(). Never raises."""
    if not data:
        return DecodeFailure("absent")
    if not isinstance(data, (bytes, bytearray, memoryview)):
        return DecodeFailure("not bytes: {}".format(type(data).__name__))
    data = bytes(data)
    if len(data) < _HEADER.size:
        return DecodeFailure("truncated header")

    magic, version, count = _HEADER.unpack_from(data, 0)
    if magic != MAGIC:
        return DecodeFailure("bad magic")
    if version == 0 or version > SCHEMA_VERSION:
        return DecodeFailure("unsupported schema version {}".format(version))

    values: dict[str, int] = {}
    offset = _HEADER.size
    for _ in range(count):
        if offset + _FIELD_HEADER.size > len(data):
            return DecodeFailure("truncated field header")
        tag, length = _FIELD_HEADER.unpack_from(data, offset)
        offset += _FIELD_HEADER.size
        if offset + length > len(data):
            return DecodeFailure("truncated field {}".format(tag))
        field = _FIELDS_BY_TAG.get(tag)
        if field is not None:
            if length != field.fmt.size:
                return DecodeFailure("bad length {} for {}".format(length, field.name))
            if field.name in values:
                return DecodeFailure("duplicate field {}".format(field.name))
            (values[field.name],) = field.fmt.unpack_from(data, offset)
        offset += length

    if offset != len(data):
        return DecodeFailure("trailing bytes")

    missing = [f.name for f in _FIELDS if f.required and f.name not in values]
    if missing:
        return DecodeFailure("missing fields: {}".format(", ".join(missing)))

    try:
        show_state = ShowState(values["show_state"])
    except ValueError:
        return DecodeFailure("unknown show state {}".format(values["show_state"]))

    return Placement(
        left=values["left"],
        top=values["top"],
        right=values["right"],
        bottom=values["bottom"],
        show_state=show_state,
        flags=values.get("flags", 0),
    )


def load_placement(store) -> Placement | DecodeFailure:
    """Read and decode the stored placement. Absence is a failure value, not an error."""
    result = decode(store.get_value(PLACEMENT_KEY))
    if isinstance(result, DecodeFailure) and result.reason != "absent":
        logger.warning("Stored window placement unusable: %s", result.reason)
    return result


def save_placement(store, placement: Placement) -> None:
    store.set_value(PLACEMENT_KEY, encode(placement))
