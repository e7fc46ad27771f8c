"""Tests for the MessagePack value codec."""

import datetime
import decimal
import threading
import uuid
from collections import OrderedDict

import msgpack
import pytest

from core.codec import decode_value, encode_value
from core.exceptions import DecodeError, EncodeError


class TestRoundTrip:
    """Values come back equal and with the same type."""

    @pytest.mark.parametrize(
        "value",
        [
            None,
            True,
            0,
            -42,
            2**63 - 1,
            3.25,
            "",
            "héllo",
            b"\x00\xffraw",
            [1, "two", None],
            {"a": 1, "nested": {"b": [1, 2]}},
            {1: "int key"},
        ],
    )
    def test_native_values(self, value):
        assert decode_value(encode_value(value)) == value

    def test_tuple_stays_tuple(self):
        decoded = decode_value(encode_value((1, (2, 3), "x")))
        assert decoded == (1, (2, 3), "x")
        assert isinstance(decoded, tuple)
        assert isinstance(decoded[1], tuple)

    def test_tuple_inside_list_and_dict(self):
        value = {"points": [(0, 0), (1, 2)], (1, 2): "tuple key"}
        assert decode_value(encode_value(value)) == value

    def test_sets(self):
        assert decode_value(encode_value({1, 2, 3})) == {1, 2, 3}
        decoded = decode_value(encode_value(frozenset({"a", "b"})))
        assert decoded == frozenset({"a", "b"})
        assert isinstance(decoded, frozenset)

    def test_datetimes(self):
        aware = datetime.datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=datetime.timezone.utc)
        naive = datetime.datetime(2024, 5, 1, 12, 30)
        day = datetime.date(2024, 5, 1)
        span = datetime.timedelta(days=2, seconds=5, microseconds=7)

        assert decode_value(encode_value(aware)) == aware
        assert decode_value(encode_value(naive)) == naive
        decoded_day = decode_value(encode_value(day))
        assert decoded_day == day
        assert type(decoded_day) is datetime.date
        assert decode_value(encode_value(span)) == span

    def test_decimal_and_uuid(self):
        amount = decimal.Decimal("12.3400")
        ident = uuid.uuid4()
        assert str(decode_value(encode_value(amount))) == "12.3400"
        assert decode_value(encode_value(ident)) == ident

    def test_subclasses_stored_as_base_type(self):
        decoded = decode_value(encode_value(OrderedDict([("a", 1), ("b", 2)])))
        assert decoded == {"a": 1, "b": 2}
        assert type(decoded) is dict

    def test_binary_buffers_come_back_as_bytes(self):
        for buffer in (bytearray(b"ab\x00"), memoryview(b"ab\x00")):
            decoded = decode_value(encode_value(buffer))
            assert decoded == b"ab\x00"
            assert type(decoded) is bytes


class TestEncodeErrors:
    def test_function_is_rejected(self):
        with pytest.raises(EncodeError):
            encode_value(lambda: None)

    def test_lock_is_rejected(self):
        with pytest.raises(EncodeError):
            encode_value({"lock": threading.Lock()})

    def test_plain_object_is_rejected(self):
        with pytest.raises(EncodeError):
            encode_value([object()])

    def test_oversized_int_is_rejected(self):
        with pytest.raises(EncodeError):
            encode_value(2**70)


class TestDecodeErrors:
    @pytest.mark.parametrize(
        "payload",
        [
            b"",
            b"\xc1",  # never used by msgpack
            b"\x81\xa1",  # truncated map
            b"not msgpack at all",
            b"\x01\x02\x03",
        ],
    )
    def test_garbage(self, payload):
        with pytest.raises(DecodeError):
            decode_value(payload)

    def test_truncated_payload(self):
        payload = encode_value({"key": "value" * 10})
        with pytest.raises(DecodeError):
            decode_value(payload[:-3])

    def test_missing_envelope(self):
        with pytest.raises(DecodeError):
            decode_value(msgpack.packb({"other": 1}))

    def test_non_map_top_level(self):
        with pytest.raises(DecodeError):
            decode_value(msgpack.packb([1, 2, 3]))

    def test_unknown_extension(self):
        payload = msgpack.packb({"v": msgpack.ExtType(99, b"?")}, use_bin_type=True)
        with pytest.raises(DecodeError):
            decode_value(payload)
