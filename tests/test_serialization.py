"""
MetaChain - Serialization Tests
=================================
Unit tests for the binary encoding.
"""

import pytest

from meta_chain.errors import DecodeError, EncodeError
from meta_chain.utils.serialization import (
    BYTES,
    OPTIONAL_BYTES,
    U64,
    BinaryReader,
    SequenceCodec,
    TupleCodec,
    bytes_to_hex,
    hex_to_bytes,
)


def u64(value: int) -> bytes:
    return value.to_bytes(8, "little")


class TestEncoding:
    """Test pinned layouts"""

    def test_u64_little_endian(self):
        """Test u64 encoding"""
        assert U64.encode(42) == bytes([42, 0, 0, 0, 0, 0, 0, 0])
        assert U64.encode(2**64 - 1) == b"\xff" * 8

    def test_bytes_length_prefixed(self):
        """Test byte sequence encoding"""
        assert BYTES.encode(b"\x01\x02") == u64(2) + b"\x01\x02"
        assert BYTES.encode(b"") == u64(0)

    def test_option(self):
        """Test Option tag byte"""
        assert OPTIONAL_BYTES.encode(None) == b"\x00"
        assert OPTIONAL_BYTES.encode(b"\x05") == b"\x01" + u64(1) + b"\x05"

    def test_tuple_sender_nonce(self):
        """Test encoding of (sender, nonce)"""
        codec = TupleCodec(BYTES, U64)
        encoded = codec.encode((bytes([0, 1, 2, 3, 4]), 42))

        assert list(encoded) == [
            5, 0, 0, 0, 0, 0, 0, 0,
            0, 1, 2, 3, 4,
            42, 0, 0, 0, 0, 0, 0, 0,
        ]

    def test_sequence(self):
        """Test sequence count prefix"""
        codec = SequenceCodec(U64)
        assert codec.encode([1, 2]) == u64(2) + u64(1) + u64(2)
        assert codec.encode([]) == u64(0)

    def test_u64_rejects_out_of_range(self):
        """Test u64 range checks"""
        with pytest.raises(EncodeError) as exc_info:
            U64.encode(-1)
        assert exc_info.value.code == "U64_OUT_OF_RANGE"

        with pytest.raises(EncodeError):
            U64.encode(2**64)

    def test_u64_rejects_non_int(self):
        """Test u64 type checks"""
        with pytest.raises(EncodeError):
            U64.encode(1.5)
        with pytest.raises(EncodeError):
            U64.encode(True)

    def test_bytes_rejects_str(self):
        """Test byte sequence type check"""
        with pytest.raises(EncodeError) as exc_info:
            BYTES.encode("abc")
        assert exc_info.value.code == "INVALID_BYTES_TYPE"

    def test_tuple_arity(self):
        """Test tuple arity mismatch"""
        with pytest.raises(EncodeError) as exc_info:
            TupleCodec(BYTES, U64).encode((b"x",))
        assert exc_info.value.code == "TUPLE_ARITY_MISMATCH"


class TestDecoding:
    """Test decoding and malformed input"""

    def test_round_trip_composite(self):
        """Test decode(encode(v)) == v for a nested value"""
        codec = TupleCodec(SequenceCodec(BYTES), OPTIONAL_BYTES, U64)
        value = ([b"a", b"", b"xyz"], b"\x01\x02", 7)

        assert codec.decode(codec.encode(value)) == value

    def test_round_trip_none(self):
        """Test Option None round trip"""
        assert OPTIONAL_BYTES.decode(OPTIONAL_BYTES.encode(None)) is None

    def test_truncated(self):
        """Test truncated input"""
        with pytest.raises(DecodeError) as exc_info:
            U64.decode(b"\x01\x02")
        assert exc_info.value.code == "TRUNCATED_INPUT"
        assert exc_info.value.details["offset"] == 0

    def test_trailing_bytes(self):
        """Test trailing bytes rejection"""
        with pytest.raises(DecodeError) as exc_info:
            U64.decode(u64(1) + b"\x00")
        assert exc_info.value.code == "TRAILING_BYTES"
        assert exc_info.value.details["trailing"] == 1

    def test_invalid_option_tag(self):
        """Test invalid option tag"""
        with pytest.raises(DecodeError) as exc_info:
            OPTIONAL_BYTES.decode(b"\x02")
        assert exc_info.value.code == "INVALID_OPTION_TAG"

    def test_length_exceeds_input(self):
        """Test byte sequence length beyond buffer"""
        with pytest.raises(DecodeError) as exc_info:
            BYTES.decode(u64(5) + b"\x00\x01")
        assert exc_info.value.code == "INVALID_LENGTH"

    def test_sequence_count_exceeds_input(self):
        """Test absurd sequence count"""
        with pytest.raises(DecodeError) as exc_info:
            SequenceCodec(U64).decode(u64(2**40))
        assert exc_info.value.code == "INVALID_LENGTH"

    def test_empty_input(self):
        """Test empty buffer"""
        with pytest.raises(DecodeError):
            OPTIONAL_BYTES.decode(b"")

    def test_non_bytes_input(self):
        """Test decode of non-bytes"""
        with pytest.raises(DecodeError) as exc_info:
            U64.decode("not bytes")
        assert exc_info.value.code == "INVALID_INPUT_TYPE"


class TestBinaryReader:
    """Test reader cursor"""

    def test_offset_tracking(self):
        """Test offset and remaining"""
        reader = BinaryReader(u64(3) + b"\x09")

        assert reader.read_u64() == 3
        assert reader.offset == 8
        assert reader.remaining == 1
        assert reader.read_u8() == 9
        reader.finish()


class TestHexHelpers:
    """Test hex conversion helpers"""

    def test_conversion(self):
        """Test bytes <-> hex"""
        assert bytes_to_hex(b"\x00\x01\x02") == "000102"
        assert hex_to_bytes("000102") == b"\x00\x01\x02"
        assert bytes_to_hex(None) is None
        assert hex_to_bytes(None) is None

    def test_invalid_hex(self):
        """Test invalid hex rejection"""
        with pytest.raises(ValueError):
            hex_to_bytes("zz")
