"""ZOON value model.

ZOON operates on plain JSON-compatible Python values:

    None | bool | int | float | str | list[Value] | dict[str, Value]

Tuples are accepted wherever a list is. ``value_kind`` is the single place
that maps a Python object onto the closed set of ZOON value kinds; every
other module dispatches on its result.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any, TypeAlias

import orjson

from zoon.errors import ZoonEncodeError

Value: TypeAlias = "None | bool | int | float | str | list[Value] | dict[str, Value]"
Record: TypeAlias = "dict[str, Value]"

NULL = "~"
BOOL_TRUE = "1"
BOOL_FALSE = "0"
INLINE_TRUE = "y"
INLINE_FALSE = "n"
SPACE_ESCAPE = "_"

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_INT_RE = re.compile(r"-?\d+")
_NON_FINITE = {"inf": math.inf, "-inf": -math.inf, "nan": math.nan}

# Characters that force a string into its quoted form.
_QUOTE_TRIGGERS = frozenset('_"\\{}[]')
# Characters never allowed in a bare name.
_NAME_RESERVED = frozenset('.:="{}[]|~@%#+\\')


class ValueKind(Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    RECORD = "record"
    SEQUENCE = "sequence"


def value_kind(value: Any) -> ValueKind:
    """Classify a Python object as one of the ZOON value kinds.

    Raises:
        ZoonEncodeError: If the object has no ZOON representation.
    """
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int, so it has to be checked first.
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, dict):
        return ValueKind.RECORD
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    raise ZoonEncodeError(f"Unsupported value of type {type(value).__name__}: {value!r}")


def is_record(value: Any) -> bool:
    return isinstance(value, dict)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def same_value(a: Any, b: Any) -> bool:
    """Strict equality: ``1``, ``1.0`` and ``True`` are all different values."""
    if type(a) is not type(b):
        return False
    if isinstance(a, float) and math.isnan(a) and math.isnan(b):
        return True
    return a == b


def format_number(value: int | float) -> str:
    """Render a number in its shortest round-trip decimal form."""
    if isinstance(value, int):
        return str(value)
    return repr(value)


def parse_number(text: str) -> int | float | None:
    """Parse a number literal, returning None if ``text`` is not one."""
    if _INT_RE.fullmatch(text):
        return int(text)
    if _NUMBER_RE.fullmatch(text):
        return float(text)
    return _NON_FINITE.get(text)


def needs_quoting(text: str) -> bool:
    """Whether a string cannot be written in bare (space-escaped) form."""
    if text == "" or text == NULL:
        return True
    return any(ch in _QUOTE_TRIGGERS or (ch.isspace() and ch != " ") for ch in text)


def quote(text: str) -> str:
    return orjson.dumps(text).decode()


def string_token(text: str) -> str:
    """Render a string as a single whitespace-free token."""
    if needs_quoting(text):
        return quote(text)
    return text.replace(" ", SPACE_ESCAPE)


def unescape_bare(token: str) -> str:
    return token.replace(SPACE_ESCAPE, " ")


def is_bare_name(name: str) -> bool:
    if not name:
        return False
    return not any(ch in _NAME_RESERVED or ch.isspace() for ch in name)


def name_token(name: str) -> str:
    return name if is_bare_name(name) else quote(name)


def format_scalar(value: Any) -> str:
    """Render a null, boolean or number with the inline typed alphabet."""
    kind = value_kind(value)
    if kind is ValueKind.NULL:
        return NULL
    if kind is ValueKind.BOOL:
        return INLINE_TRUE if value else INLINE_FALSE
    if kind is ValueKind.NUMBER:
        return format_number(value)
    raise ZoonEncodeError(f"Not a typed scalar: {value!r}")
