"""ZOON - Zero Overhead Object Notation.

A compact, lossless, token-efficient text format for JSON-like data.
"""

from zoon.core import (
    EncodeOptions,
    TokenStats,
    Zoon,
    decode,
    encode,
    encode_with_schema,
    hint,
    stats,
)
from zoon.encoding import count_tokens
from zoon.errors import ZoonDecodeError, ZoonEncodeError, ZoonError, ZoonSchemaError
from zoon.schema import FieldKind, FieldSpec

__all__ = [
    "EncodeOptions",
    "FieldKind",
    "FieldSpec",
    "TokenStats",
    "Zoon",
    "ZoonDecodeError",
    "ZoonEncodeError",
    "ZoonError",
    "ZoonSchemaError",
    "count_tokens",
    "decode",
    "encode",
    "encode_with_schema",
    "hint",
    "stats",
]
__version__ = "0.1.0"
