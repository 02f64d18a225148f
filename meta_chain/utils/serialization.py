"""
MetaChain - Binary Serialization
==================================
Encoding binario deterministico usato per derivare gli id.

Layout:
- Interi: u64 little-endian
- Byte sequence: lunghezza u64 + byte
- Option: tag (0 = None, 1 = Some) + encoding interno se Some
- Tuple: concatenazione dei campi
- Sequence: numero elementi u64 + elementi

Ogni codec espone encode()/decode() sul buffer completo e
write()/read() per la composizione.
"""

import struct
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

from meta_chain.constants import (
    U64_SIZE,
    U64_MAX,
    OPTION_NONE_TAG,
    OPTION_SOME_TAG,
)
from meta_chain.errors import EncodeError, format_decode_error


_U64 = struct.Struct("<Q")

BYTES_LIKE = (bytes, bytearray, memoryview)


# ============================================================================
# READER
# ============================================================================

class BinaryReader:
    """
    Cursore su un buffer binario.

    Examples:
        >>> reader = BinaryReader(b"\\x2a\\x00\\x00\\x00\\x00\\x00\\x00\\x00")
        >>> reader.read_u64()
        42
        >>> reader.finish()
    """

    def __init__(self, data: bytes):
        if not isinstance(data, BYTES_LIKE):
            raise format_decode_error(
                f"expected bytes, got {type(data).__name__}", 0, "INVALID_INPUT_TYPE"
            )
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def read_exact(self, size: int) -> bytes:
        if size > self.remaining:
            raise format_decode_error(
                "truncated input",
                self._offset,
                "TRUNCATED_INPUT",
                needed=size,
                available=self.remaining,
            )
        chunk = self._data[self._offset:self._offset + size]
        self._offset += size
        return chunk

    def read_u8(self) -> int:
        return self.read_exact(1)[0]

    def read_u64(self) -> int:
        return _U64.unpack(self.read_exact(U64_SIZE))[0]

    def finish(self) -> None:
        """Verifica che il buffer sia stato consumato interamente."""
        if self.remaining:
            raise format_decode_error(
                "trailing bytes after value",
                self._offset,
                "TRAILING_BYTES",
                trailing=self.remaining,
            )


# ============================================================================
# CODECS
# ============================================================================

class Codec(ABC):
    """Base codec: write/read componibili, encode/decode sul buffer intero."""

    @abstractmethod
    def write(self, value: Any, out: bytearray) -> None:
        ...

    @abstractmethod
    def read(self, reader: BinaryReader) -> Any:
        ...

    def encode(self, value: Any) -> bytes:
        out = bytearray()
        self.write(value, out)
        return bytes(out)

    def decode(self, data: bytes) -> Any:
        """
        Decodifica l'intero buffer.

        Raises:
            DecodeError: input troncato, tag Option invalido o byte in eccesso
        """
        reader = BinaryReader(data)
        value = self.read(reader)
        reader.finish()
        return value


class U64Codec(Codec):
    """Intero senza segno a 64 bit, little-endian."""

    def write(self, value: int, out: bytearray) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodeError(
                f"u64 requires int, got {type(value).__name__}",
                code="INVALID_U64_TYPE"
            )
        if not 0 <= value <= U64_MAX:
            raise EncodeError(
                f"u64 out of range: {value}",
                code="U64_OUT_OF_RANGE",
                details={"value": value}
            )
        out += _U64.pack(value)

    def read(self, reader: BinaryReader) -> int:
        return reader.read_u64()


class BytesCodec(Codec):
    """Byte sequence con prefisso di lunghezza u64."""

    def write(self, value: bytes, out: bytearray) -> None:
        if not isinstance(value, BYTES_LIKE):
            raise EncodeError(
                f"byte sequence requires bytes, got {type(value).__name__}",
                code="INVALID_BYTES_TYPE"
            )
        value = bytes(value)
        out += _U64.pack(len(value))
        out += value

    def read(self, reader: BinaryReader) -> bytes:
        offset = reader.offset
        length = reader.read_u64()
        if length > reader.remaining:
            raise format_decode_error(
                "byte sequence length exceeds input",
                offset,
                "INVALID_LENGTH",
                length=length,
                available=reader.remaining,
            )
        return reader.read_exact(length)


class OptionCodec(Codec):
    """Option: tag byte 0/1 seguito dal valore se presente."""

    def __init__(self, inner: Codec):
        self.inner = inner

    def write(self, value: Optional[Any], out: bytearray) -> None:
        if value is None:
            out.append(OPTION_NONE_TAG)
        else:
            out.append(OPTION_SOME_TAG)
            self.inner.write(value, out)

    def read(self, reader: BinaryReader) -> Optional[Any]:
        offset = reader.offset
        tag = reader.read_u8()
        if tag == OPTION_NONE_TAG:
            return None
        if tag == OPTION_SOME_TAG:
            return self.inner.read(reader)
        raise format_decode_error(
            f"invalid option tag {tag}", offset, "INVALID_OPTION_TAG", tag=tag
        )


class SequenceCodec(Codec):
    """Sequenza omogenea: numero elementi u64 + elementi."""

    def __init__(self, inner: Codec):
        self.inner = inner

    def write(self, values, out: bytearray) -> None:
        values = list(values)
        out += _U64.pack(len(values))
        for value in values:
            self.inner.write(value, out)

    def read(self, reader: BinaryReader) -> List[Any]:
        offset = reader.offset
        count = reader.read_u64()
        # ogni elemento occupa almeno un byte
        if count > reader.remaining:
            raise format_decode_error(
                "sequence length exceeds input",
                offset,
                "INVALID_LENGTH",
                length=count,
                available=reader.remaining,
            )
        return [self.inner.read(reader) for _ in range(count)]


class TupleCodec(Codec):
    """Tupla a campi fissi: concatenazione degli encoding."""

    def __init__(self, *fields: Codec):
        self.fields = fields

    def write(self, value, out: bytearray) -> None:
        value = tuple(value)
        if len(value) != len(self.fields):
            raise EncodeError(
                f"tuple requires {len(self.fields)} fields, got {len(value)}",
                code="TUPLE_ARITY_MISMATCH"
            )
        for codec, item in zip(self.fields, value):
            codec.write(item, out)

    def read(self, reader: BinaryReader) -> Tuple[Any, ...]:
        return tuple(codec.read(reader) for codec in self.fields)


# Preset
U64 = U64Codec()
BYTES = BytesCodec()
OPTIONAL_BYTES = OptionCodec(BYTES)


# ============================================================================
# BYTES/HEX CONVERSION
# ============================================================================

def bytes_to_hex(data: Optional[bytes]) -> Optional[str]:
    """
    Convert bytes to hex string (None passa invariato).

    Examples:
        >>> bytes_to_hex(b"\\x00\\x01\\x02")
        '000102'
    """
    if data is None:
        return None
    return bytes(data).hex()


def hex_to_bytes(hex_str: Optional[str]) -> Optional[bytes]:
    """
    Convert hex string to bytes (None passa invariato).

    Raises:
        ValueError: If invalid hex string
    """
    if hex_str is None:
        return None
    try:
        return bytes.fromhex(hex_str)
    except ValueError as e:
        raise ValueError(f"Invalid hex string: {e}") from e


__all__ = [
    "BinaryReader",
    "Codec",
    "U64Codec",
    "BytesCodec",
    "OptionCodec",
    "SequenceCodec",
    "TupleCodec",
    "U64",
    "BYTES",
    "OPTIONAL_BYTES",
    "bytes_to_hex",
    "hex_to_bytes",
]
