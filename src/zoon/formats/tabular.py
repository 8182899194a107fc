"""ZOON tabular format.

A sequence of records is written as one header line followed by one line per
record:

    # id:i+ name:s role=admin|user active:b @region=us-east-1
    Alice admin 1
    Bob user 1
    Carol user 0

Auto-increment and constant fields are declared in the header only and never
appear in rows. Nested records are flattened into dotted columns
(``server.host:s``); repeated prefixes may be shortened with ``%N`` aliases
defined at the start of the header.

Columns follow the first-seen order of keys across all rows, so every
decoded record lists its keys in that shared order. A row whose keys were
inserted in a different order decodes to an equal record with the shared
key order.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from zoon.errors import ZoonDecodeError
from zoon.formats.inline import decode_typed, encode_typed
from zoon.optimizer import AliasTable, build_path_aliases, is_symbol
from zoon.schema import FieldKind, FieldSpec, lookup
from zoon.tokenizer import Token, scan_atom, scan_name, scan_quoted, split_tokens
from zoon.values import (
    BOOL_FALSE,
    BOOL_TRUE,
    NULL,
    format_number,
    format_scalar,
    is_bare_name,
    name_token,
    parse_number,
    quote,
    string_token,
    unescape_bare,
)

logger = logging.getLogger(__name__)

HEADER_MARKER = "#"
EMPTY_SENTINEL = "# empty"
CONSTANT_MARKER = "@"
ROW_COUNT_MARKER = "+"
INDEXED_ENUM_CODE = "e"

_ROW_COUNT_RE = re.compile(r"\+(\d+)")
_TYPE_CODES = {
    "s": FieldKind.PLAIN_STRING,
    "i": FieldKind.NUMERIC,
    "n": FieldKind.NUMERIC,
    "i+": FieldKind.AUTO_INCREMENT,
    "b": FieldKind.BOOLEAN,
    "t": FieldKind.QUOTED_TEXT,
    "v": FieldKind.VALUE,
}


class ZoonTabular:
    """Encoder/decoder for sequences of records."""

    @staticmethod
    def encode(rows: Sequence[dict[str, Any]], schema: Sequence[FieldSpec]) -> str:
        """Render ``rows`` with an already inferred (or validated) schema."""
        if not rows:
            return EMPTY_SENTINEL

        paths = [spec.keys if all(is_bare_name(k) for k in spec.keys) else () for spec in schema]
        aliases, depths = build_path_aliases(paths)
        names = [
            _field_name(spec, aliases, depth) for spec, depth in zip(schema, depths, strict=True)
        ]

        header = [HEADER_MARKER, *aliases.definitions()]
        header.extend(_field_header(spec, name) for spec, name in zip(schema, names, strict=True))
        body = [spec for spec in schema if spec.in_body]
        if not body:
            header.append(f"{ROW_COUNT_MARKER}{len(rows)}")

        lines = [" ".join(header)]
        if body:
            for row in rows:
                lines.append(" ".join(_cell(spec, lookup(row, spec.keys)) for spec in body))
        logger.debug("Encoded %d rows with %d body fields", len(rows), len(body))
        return "\n".join(lines)

    @staticmethod
    def decode(text: str) -> list[dict[str, Any]]:
        """Decode a tabular document.

        Raises:
            ZoonDecodeError: On a malformed header, a row whose token count
                does not match the header, or an invalid cell.
        """
        # Only "\n" separates rows; quoted cells may hold raw U+2028, U+2029 or U+0085.
        lines = [line.removesuffix("\r") for line in text.split("\n")]
        header_index = next((i for i, line in enumerate(lines) if line.strip()), None)
        if header_index is None:
            raise ZoonDecodeError("Empty document")
        header_line = lines[header_index].strip()
        line_number = header_index + 1
        if header_line == EMPTY_SENTINEL:
            return []
        if not header_line.startswith(HEADER_MARKER):
            raise ZoonDecodeError("Missing '#' header", line=line_number)

        indent = len(lines[header_index]) - len(lines[header_index].lstrip())
        header = _parse_header(header_line[1:], line_number, indent + 1)
        body = [spec for spec in header.fields if spec.in_body]

        cells_per_row: list[tuple[int, list[Token]]] = []
        for offset, line in enumerate(lines[header_index + 1 :], start=header_index + 2):
            if not line.strip():
                continue
            tokens = split_tokens(line, line_number=offset)
            if len(tokens) != len(body):
                raise ZoonDecodeError(
                    f"Row has {len(tokens)} values but the header declares {len(body)}",
                    line=offset,
                )
            cells_per_row.append((offset, tokens))

        if header.row_count is not None:
            if body and header.row_count != len(cells_per_row):
                raise ZoonDecodeError(
                    f"Header declares {header.row_count} rows but {len(cells_per_row)} follow",
                    line=line_number,
                )
            if not body and cells_per_row:
                raise ZoonDecodeError("Rows present but the header declares no row fields", line=line_number)
            count = header.row_count if not body else len(cells_per_row)
        elif not body:
            raise ZoonDecodeError("Header declares no row fields and no row count", line=line_number)
        else:
            count = len(cells_per_row)

        records: list[dict[str, Any]] = []
        for index in range(count):
            row_cells = cells_per_row[index] if body else (line_number, [])
            row_line, tokens = row_cells
            cells = iter(tokens)
            record: dict[str, Any] = {}
            for spec in header.fields:
                if spec.kind is FieldKind.AUTO_INCREMENT:
                    value: Any = index + 1
                elif spec.kind is FieldKind.CONSTANT:
                    value = spec.constant_value
                else:
                    value = _parse_cell(spec, next(cells), row_line, header.aliases)
                _assign(record, spec.keys, value, row_line)
            records.append(record)
        return records


def _field_name(spec: FieldSpec, aliases: AliasTable, depth: int) -> str:
    keys = spec.keys
    if len(keys) == 1:
        return name_token(keys[0])
    if depth:
        symbol = aliases.by_prefix[".".join(keys[:depth])]
        return ".".join((symbol, *keys[depth:]))
    return ".".join(keys)


def _field_header(spec: FieldSpec, name: str) -> str:
    kind = spec.kind
    if kind is FieldKind.CONSTANT:
        value = spec.constant_value
        if isinstance(value, str):
            return f"{CONSTANT_MARKER}{name}={string_token(value)}"
        return f"{CONSTANT_MARKER}{name}:{format_scalar(value)}"
    if kind is FieldKind.ENUM:
        values = "|".join(spec.enum_values or ())
        if spec.indexed:
            return f"{name}:{INDEXED_ENUM_CODE}={values}"
        return f"{name}={values}"
    return f"{name}:{kind.value}"


def _cell(spec: FieldSpec, value: Any) -> str:
    kind = spec.kind
    if kind is FieldKind.VALUE:
        return encode_typed(value)
    if value is None:
        return NULL
    if kind is FieldKind.BOOLEAN:
        return BOOL_TRUE if value else BOOL_FALSE
    if kind is FieldKind.NUMERIC:
        return format_number(value)
    if kind is FieldKind.QUOTED_TEXT:
        return quote(value)
    if kind is FieldKind.ENUM and spec.indexed:
        return str((spec.enum_values or ()).index(value))
    return string_token(value)


class _Header:
    def __init__(self) -> None:
        self.fields: list[FieldSpec] = []
        self.aliases = AliasTable()
        self.row_count: int | None = None


def _parse_header(text: str, line: int, offset: int = 1) -> _Header:
    """Parse the header after its marker; ``offset`` is the marker's width plus indentation."""
    header = _Header()
    for token in split_tokens(text, line_number=line):
        column = token.column + offset
        match = _ROW_COUNT_RE.fullmatch(token.text)
        if match:
            header.row_count = int(match.group(1))
            continue
        spec = _parse_field(token.text, header, line, column)
        if spec is not None:
            header.fields.append(spec)

    seen: set[tuple[str, ...]] = set()
    for spec in header.fields:
        if spec.keys in seen:
            raise ZoonDecodeError(f"Duplicate field {spec.name!r}", line=line)
        seen.add(spec.keys)
    return header


def _parse_field(text: str, header: _Header, line: int, column: int) -> FieldSpec | None:
    """Parse one header declaration; alias definitions return None."""
    constant = text.startswith(CONSTANT_MARKER)
    start = 1 if constant else 0
    name, quoted, op = scan_name(text, start, line_number=line)
    rest = text[op + 1 :]

    if not constant and not quoted and is_symbol(name) and text[op] == "=":
        if not rest:
            raise ZoonDecodeError(f"Empty alias definition for {name}", line=line, column=column)
        header.aliases.define(name, rest, line=line, column=column)
        return None

    path = (name,) if quoted else _resolve_path(name, header.aliases, line, column)
    display = ".".join(path)

    if constant:
        if text[op] == "=":
            value: Any = _parse_string(rest, line, column + op + 1)
        else:
            atom, end = scan_atom(rest, 0)
            value = _parse_scalar(atom, line, column + op + 1)
            if end != len(rest):
                raise ZoonDecodeError(f"Invalid constant {text!r}", line=line, column=column)
        return FieldSpec(display, FieldKind.CONSTANT, constant_value=value, path=path)

    if text[op] == "=":
        return FieldSpec(display, FieldKind.ENUM, enum_values=_enum_values(rest, line, column), path=path)

    if rest.startswith(f"{INDEXED_ENUM_CODE}="):
        values = _enum_values(rest[2:], line, column)
        return FieldSpec(display, FieldKind.ENUM, enum_values=values, path=path, indexed=True)
    kind = _TYPE_CODES.get(rest)
    if kind is None:
        raise ZoonDecodeError(f"Unknown type code {rest!r} for field {display!r}", line=line, column=column)
    return FieldSpec(display, kind, path=path)


def _resolve_path(name: str, aliases: AliasTable, line: int, column: int) -> tuple[str, ...]:
    segments = name.split(".")
    if is_symbol(segments[0]):
        prefix = aliases.resolve(segments[0], line=line, column=column)
        segments = [*prefix.split("."), *segments[1:]]
    if not all(segments):
        raise ZoonDecodeError(f"Invalid field name {name!r}", line=line, column=column)
    return tuple(segments)


def _enum_values(text: str, line: int, column: int) -> tuple[str, ...]:
    values = tuple(text.split("|"))
    if not all(values):
        raise ZoonDecodeError(f"Invalid enum value list {text!r}", line=line, column=column)
    return values


def _parse_string(token: str, line: int, column: int) -> str | None:
    if token.startswith('"'):
        value, end = scan_quoted(token, 0, line_number=line)
        if end != len(token):
            raise ZoonDecodeError(f"Unexpected text after string {token!r}", line=line, column=column)
        return value
    if token == NULL:
        return None
    return unescape_bare(token)


def _parse_scalar(atom: str, line: int, column: int) -> Any:
    value = decode_typed(atom, line=line, column=column)
    if isinstance(value, (dict, list)):
        raise ZoonDecodeError(f"Expected a scalar, found {atom!r}", line=line, column=column)
    return value


def _parse_cell(spec: FieldSpec, token: Token, line: int, aliases: AliasTable) -> Any:
    text = token.text
    kind = spec.kind
    if kind is FieldKind.VALUE:
        return decode_typed(text, aliases=aliases, line=line, column=token.column)
    if text == NULL:
        return None
    if kind is FieldKind.BOOLEAN:
        if text == BOOL_TRUE:
            return True
        if text == BOOL_FALSE:
            return False
        raise ZoonDecodeError(f"Invalid boolean {text!r} for field {spec.name!r}", line=line, column=token.column)
    if kind is FieldKind.NUMERIC:
        number = parse_number(text)
        if number is None:
            raise ZoonDecodeError(f"Invalid number {text!r} for field {spec.name!r}", line=line, column=token.column)
        return number
    if kind is FieldKind.ENUM:
        values = spec.enum_values or ()
        if spec.indexed:
            index = parse_number(text)
            if not isinstance(index, int) or not 0 <= index < len(values):
                raise ZoonDecodeError(
                    f"Invalid enum index {text!r} for field {spec.name!r}", line=line, column=token.column
                )
            return values[index]
        if text not in values:
            raise ZoonDecodeError(
                f"Value {text!r} is not declared for field {spec.name!r}", line=line, column=token.column
            )
        return text
    return _parse_string(text, line, token.column)


def _assign(record: dict[str, Any], path: tuple[str, ...], value: Any, line: int) -> None:
    target = record
    for key in path[:-1]:
        child = target.setdefault(key, {})
        if not isinstance(child, dict):
            raise ZoonDecodeError(f"Field path {'.'.join(path)!r} conflicts with a scalar field", line=line)
        target = child
    if path[-1] in target and isinstance(target[path[-1]], dict):
        raise ZoonDecodeError(f"Field path {'.'.join(path)!r} conflicts with a nested field", line=line)
    target[path[-1]] = value

