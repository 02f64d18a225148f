"""
MetaChain - Utilities Package
===============================
Encoding binario e helper di conversione.
"""

from meta_chain.utils.serialization import (
    BinaryReader,
    Codec,
    U64Codec,
    BytesCodec,
    OptionCodec,
    SequenceCodec,
    TupleCodec,
    U64,
    BYTES,
    OPTIONAL_BYTES,
    bytes_to_hex,
    hex_to_bytes,
)

__all__ = [
    # Codecs
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

    # Hex
    "bytes_to_hex",
    "hex_to_bytes",
]
