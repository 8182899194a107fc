"""ZOON Protocol.

ZOON (Zero Overhead Object Notation) is a compact, lossless text encoding
for JSON-like data, optimized for LLM token counts.

Core features:
    - Tabular mode: uniform records become a typed header plus positional rows.
    - Schema inference: auto-increment ids, constants, enums, booleans and
      long text are detected from the full dataset.
    - Inline mode: single records become ``key=value`` / ``key:value`` pairs.
    - Self-describing: ``decode`` needs nothing but the text.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import orjson

from zoon.encoding import DEFAULT_ENCODING, count_tokens
from zoon.errors import ZoonSchemaError
from zoon.formats import ZoonInline, ZoonTabular
from zoon.formats.tabular import HEADER_MARKER
from zoon.schema import DEFAULT_ENUM_THRESHOLD, FieldSpec, infer_schema, validate_schema

logger = logging.getLogger(__name__)

# Key used to carry a root value that is not a record.
ROOT_VALUE_KEY = "value"


@dataclass(frozen=True)
class EncodeOptions:
    """Encoding configuration.

    Attributes:
        schema: Caller-supplied schema; bypasses inference when set.
        infer_enums: Allow enum classification of low-cardinality strings.
        enum_threshold: Maximum distinct values for an enum column.
        index_enums: Store enum rows as indexes into the declared values.
    """

    schema: Sequence[FieldSpec] | None = None
    infer_enums: bool = True
    enum_threshold: int = DEFAULT_ENUM_THRESHOLD
    index_enums: bool = False

    def __post_init__(self) -> None:
        if self.enum_threshold < 0:
            raise ValueError(f"enum_threshold must be >= 0, got {self.enum_threshold}")


@dataclass(frozen=True)
class TokenStats:
    """Token counts for the JSON and ZOON renderings of the same data."""

    json_tokens: int
    zoon_tokens: int

    @property
    def saved(self) -> int:
        return self.json_tokens - self.zoon_tokens

    @property
    def savings(self) -> float:
        """Fraction of JSON tokens saved, e.g. ``0.45`` for 45%."""
        return self.saved / max(1, self.json_tokens)


class Zoon:
    """Configured ZOON encoder/decoder.

    Example:
        >>> codec = Zoon(enum_threshold=5)
        >>> codec.encode([{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}])
        '# id:i+ name:s\\nAlice\\nBob'
    """

    def __init__(
        self,
        *,
        schema: Sequence[FieldSpec] | None = None,
        infer_enums: bool = True,
        enum_threshold: int = DEFAULT_ENUM_THRESHOLD,
        index_enums: bool = False,
    ) -> None:
        self.options = EncodeOptions(
            schema=schema,
            infer_enums=infer_enums,
            enum_threshold=enum_threshold,
            index_enums=index_enums,
        )

    def encode(self, data: Any) -> str:
        return encode_with_options(data, self.options)

    def encode_with_schema(self, data: Any, schema: Sequence[FieldSpec]) -> str:
        return encode_with_schema(data, schema)

    def decode(self, text: str) -> list[dict[str, Any]]:
        return decode(text)

    def stats(self, data: Any, *, encoding: str | None = DEFAULT_ENCODING) -> TokenStats:
        json_text = orjson.dumps(data).decode()
        return TokenStats(
            json_tokens=count_tokens(json_text, encoding=encoding),
            zoon_tokens=count_tokens(self.encode(data), encoding=encoding),
        )

    @staticmethod
    def count_tokens(text: str, *, encoding: str | None = DEFAULT_ENCODING) -> int:
        """Count tokens in text using the specified encoding."""
        return count_tokens(text, encoding=encoding)

    @staticmethod
    def hint() -> str:
        """Short description of ZOON for LLM prompts."""
        return (
            "ZOON: '#' header lists fields (name:s string, :i number, :b 1/0 bool, "
            ":t quoted text, :i+ row number, a=x|y enum, @f=v constant, %N=prefix alias); "
            "then one space-separated row per record, _ is a space, ~ is null. "
            "Inline: key=string key:typed (y/n, ~, numbers, {nested})."
        )


def encode(
    data: Any,
    *,
    schema: Sequence[FieldSpec] | None = None,
    infer_enums: bool = True,
    enum_threshold: int = DEFAULT_ENUM_THRESHOLD,
    index_enums: bool = False,
) -> str:
    """Encode data as ZOON.

    A list of records uses tabular mode; anything else uses inline mode.
    Non-record roots are carried under a ``"value"`` key.

    Args:
        data: Any JSON-compatible value.
        schema: Optional schema for tabular data; skips inference.
        infer_enums: Detect low-cardinality string columns as enums.
        enum_threshold: Maximum distinct values for enum detection.
        index_enums: Store enum rows as indexes instead of literals.

    Returns:
        ZOON text.

    Example:
        >>> encode({"host": "localhost", "port": 3000, "ssl": True})
        'host=localhost port:3000 ssl:y'
    """
    options = EncodeOptions(
        schema=schema,
        infer_enums=infer_enums,
        enum_threshold=enum_threshold,
        index_enums=index_enums,
    )
    return encode_with_options(data, options)


def encode_with_options(data: Any, options: EncodeOptions) -> str:
    if isinstance(data, (list, tuple)) and all(isinstance(item, dict) for item in data):
        rows = list(data)
        if options.schema is not None:
            validate_schema(options.schema, rows)
            schema = list(options.schema)
        else:
            schema = infer_schema(
                rows,
                infer_enums=options.infer_enums,
                enum_threshold=options.enum_threshold,
                index_enums=options.index_enums,
            )
        logger.debug("Encoding %d records in tabular mode", len(rows))
        return ZoonTabular.encode(rows, schema)

    if options.schema is not None:
        raise ZoonSchemaError("A schema can only be applied to a list of records")
    record = data if isinstance(data, dict) else {ROOT_VALUE_KEY: data}
    logger.debug("Encoding %s in inline mode", type(data).__name__)
    return ZoonInline.encode(record)


def encode_with_schema(data: Any, schema: Sequence[FieldSpec]) -> str:
    """Encode a list of records with a caller-supplied schema.

    Raises:
        ZoonSchemaError: If ``data`` is not a list of records or a value does
            not fit its field.
    """
    if not isinstance(data, (list, tuple)) or not all(isinstance(item, dict) for item in data):
        raise ZoonSchemaError("encode_with_schema expects a list of records")
    return encode_with_options(data, EncodeOptions(schema=schema))


def decode(text: str) -> list[dict[str, Any]]:
    """Decode ZOON text.

    Tabular text yields one record per row; inline text yields a list with
    exactly one record.

    Raises:
        ZoonDecodeError: If the text is not valid ZOON.
    """
    if not isinstance(text, str):
        raise TypeError(f"decode expects str, got {type(text).__name__}")
    if text.lstrip().startswith(HEADER_MARKER):
        return ZoonTabular.decode(text)
    return [ZoonInline.decode(text)]


def stats(data: Any, *, encoding: str | None = DEFAULT_ENCODING) -> TokenStats:
    """Compare token counts of the compact JSON and ZOON renderings of ``data``."""
    return Zoon().stats(data, encoding=encoding)


def hint() -> str:
    return Zoon.hint()
