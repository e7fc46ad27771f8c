"""MessagePack value codec for cache payloads.

Every value is wrapped in a one-field envelope ``{"v": value}`` before packing.
Types MessagePack has no native form for are stored as extension types so
they come back as the same Python type:

    1  tuple         4  datetime      7  Decimal
    2  set           5  date          8  UUID
    3  frozenset     6  timedelta

Subclasses of dict, list, str, int, float and bool are stored as their base
type (an IntEnum comes back as an int). bytearray and memoryview are packed
as binary and come back as bytes. Anything else raises EncodeError.
"""

import datetime
import decimal
import uuid
from typing import Any, Callable, Dict

import msgpack

from core.exceptions import DecodeError, EncodeError

ENVELOPE_FIELD = "v"

EXT_TUPLE = 1
EXT_SET = 2
EXT_FROZENSET = 3
EXT_DATETIME = 4
EXT_DATE = 5
EXT_TIMEDELTA = 6
EXT_DECIMAL = 7
EXT_UUID = 8


def _pack(obj: Any) -> bytes:
    # strict_types keeps tuples and subclasses away from the native encoders
    return msgpack.packb(obj, default=_default, use_bin_type=True, strict_types=True)


def _unpack(data: bytes) -> Any:
    return msgpack.unpackb(data, raw=False, ext_hook=_ext_hook, strict_map_key=False)


def _default(obj: Any) -> Any:
    """Map non-native types onto extension types."""
    if isinstance(obj, tuple):
        return msgpack.ExtType(EXT_TUPLE, _pack(list(obj)))
    if isinstance(obj, frozenset):
        return msgpack.ExtType(EXT_FROZENSET, _pack(list(obj)))
    if isinstance(obj, set):
        return msgpack.ExtType(EXT_SET, _pack(list(obj)))
    # datetime subclasses date, so it goes first
    if isinstance(obj, datetime.datetime):
        return msgpack.ExtType(EXT_DATETIME, obj.isoformat().encode())
    if isinstance(obj, datetime.date):
        return msgpack.ExtType(EXT_DATE, obj.isoformat().encode())
    if isinstance(obj, datetime.timedelta):
        return msgpack.ExtType(
            EXT_TIMEDELTA, _pack([obj.days, obj.seconds, obj.microseconds])
        )
    if isinstance(obj, decimal.Decimal):
        return msgpack.ExtType(EXT_DECIMAL, str(obj).encode())
    if isinstance(obj, uuid.UUID):
        return msgpack.ExtType(EXT_UUID, obj.bytes)
    if isinstance(obj, bool):
        return bool(obj)
    if isinstance(obj, int):
        return int(obj)
    if isinstance(obj, float):
        return float(obj)
    if isinstance(obj, str):
        return str.__str__(obj)
    if isinstance(obj, dict):
        return dict(obj)
    if isinstance(obj, list):
        return list(obj)
    raise TypeError(f"Cannot encode object of type {type(obj).__name__}")


_EXT_DECODERS: Dict[int, Callable[[bytes], Any]] = {
    EXT_TUPLE: lambda data: tuple(_unpack(data)),
    EXT_SET: lambda data: set(_unpack(data)),
    EXT_FROZENSET: lambda data: frozenset(_unpack(data)),
    EXT_DATETIME: lambda data: datetime.datetime.fromisoformat(data.decode()),
    EXT_DATE: lambda data: datetime.date.fromisoformat(data.decode()),
    EXT_TIMEDELTA: lambda data: datetime.timedelta(*_unpack(data)),
    EXT_DECIMAL: lambda data: decimal.Decimal(data.decode()),
    EXT_UUID: lambda data: uuid.UUID(bytes=data),
}


def _ext_hook(code: int, data: bytes) -> Any:
    decoder = _EXT_DECODERS.get(code)
    if decoder is None:
        raise ValueError(f"Unknown extension type {code}")
    return decoder(data)


def encode_value(value: Any) -> bytes:
    """Serialize any supported value into an opaque payload."""
    try:
        return _pack({ENVELOPE_FIELD: value})
    except Exception as e:
        raise EncodeError(f"Failed to encode value: {e}") from e


def decode_value(payload: bytes) -> Any:
    """Reverse of encode_value. Raises DecodeError on corrupt or foreign payloads."""
    if not payload:
        raise DecodeError("Empty payload")
    try:
        envelope = _unpack(payload)
    except Exception as e:
        raise DecodeError(f"Failed to decode payload: {e}") from e

    if not isinstance(envelope, dict) or set(envelope) != {ENVELOPE_FIELD}:
        raise DecodeError("Payload is not a cache envelope")
    return envelope[ENVELOPE_FIELD]
