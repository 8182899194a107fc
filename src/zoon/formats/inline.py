"""ZOON inline format.

Inline mode renders one record as space-separated pairs:

    host=localhost port:3000 ssl:y db:{driver=postgres pool:[5 10]}

``key=value`` carries a string, ``key:value`` a typed value: a number,
``y``/``n``, ``~`` (null), a nested ``{...}`` record, a ``[...]`` list or a
quoted string. Keys that hold nested records in more than one place may be
replaced by ``%N`` aliases declared at the start of the document.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple, cast

from zoon.errors import ZoonDecodeError, ZoonEncodeError
from zoon.optimizer import AliasTable, build_key_aliases, is_symbol
from zoon.tokenizer import scan_atom, scan_name, scan_quoted, skip_whitespace
from zoon.values import (
    INLINE_FALSE,
    INLINE_TRUE,
    NULL,
    ValueKind,
    format_scalar,
    name_token,
    parse_number,
    quote,
    string_token,
    unescape_bare,
    value_kind,
)


class ZoonInline:
    """Encoder/decoder for single records."""

    @staticmethod
    def encode(record: dict[str, Any], *, aliases: bool = True) -> str:
        """Encode a record as an inline document.

        Args:
            record: Record to encode.
            aliases: Replace repeated container keys with ``%N`` symbols.
        """
        table = build_key_aliases([record]) if aliases else AliasTable()
        parts = table.definitions()
        body = encode_pairs(record, table)
        if body:
            parts.append(body)
        return " ".join(parts)

    @staticmethod
    def decode(text: str) -> dict[str, Any]:
        """Decode an inline document into a record.

        Raises:
            ZoonDecodeError: If the text is malformed.
        """
        try:
            return _Parser(text, AliasTable()).parse_document()
        except ZoonDecodeError as e:
            raise _relocate(text, e) from e


def encode_pairs(record: dict[str, Any], aliases: AliasTable) -> str:
    return _render(_pair_items(record, aliases), aliases)


def encode_typed(value: Any, aliases: AliasTable | None = None) -> str:
    """Render a value in the typed (``key:...``) alphabet."""
    table = aliases if aliases is not None else AliasTable()
    return _render([_Item(value, literal=False)], table)


class _Item(NamedTuple):
    """A pending output piece: literal text, or a value still to be rendered."""

    payload: Any
    literal: bool = True


def _pair_items(record: dict[str, Any], aliases: AliasTable) -> list[_Item]:
    items: list[_Item] = []
    for key, value in record.items():
        if not isinstance(key, str):
            raise ZoonEncodeError(f"Record keys must be strings, got {key!r}")
        if items:
            items.append(_Item(" "))
        if isinstance(value, dict) and key in aliases.by_prefix:
            rendered_key = aliases.by_prefix[key]
        else:
            rendered_key = name_token(key)
        if value_kind(value) is ValueKind.STRING:
            items.append(_Item(f"{rendered_key}={string_token(value)}"))
        else:
            items.append(_Item(f"{rendered_key}:"))
            items.append(_Item(value, literal=False))
    return items


def _render(items: list[_Item], aliases: AliasTable) -> str:
    """Render items left to right; nested containers expand onto the stack."""
    out: list[str] = []
    stack = items[::-1]
    while stack:
        item = stack.pop()
        if item.literal:
            out.append(item.payload)
            continue
        value = item.payload
        kind = value_kind(value)
        if kind is ValueKind.STRING:
            out.append(quote(value))
        elif kind is ValueKind.RECORD:
            out.append("{")
            stack.append(_Item("}"))
            stack.extend(reversed(_pair_items(value, aliases)))
        elif kind is ValueKind.SEQUENCE:
            out.append("[")
            stack.append(_Item("]"))
            parts: list[_Item] = []
            for element in value:
                if parts:
                    parts.append(_Item(" "))
                parts.append(_Item(element, literal=False))
            stack.extend(reversed(parts))
        else:
            out.append(format_scalar(value))
    return "".join(out)


def decode_typed(
    text: str, *, aliases: AliasTable | None = None, line: int | None = None, column: int = 1
) -> Any:
    """Decode one typed value token, e.g. a tabular ``:v`` cell.

    ``line`` and ``column`` locate the token in its document for error reports.
    """
    parser = _Parser(text, aliases if aliases is not None else AliasTable())
    try:
        return parser.parse_single_value()
    except ZoonDecodeError as e:
        offset = (e.column or 1) + column - 1
        raise ZoonDecodeError(e.message, line=line, column=offset) from e


def _atom_value(atom: str) -> Any:
    if atom == NULL:
        return None
    if atom == INLINE_TRUE:
        return True
    if atom == INLINE_FALSE:
        return False
    number = parse_number(atom)
    if number is not None:
        return number
    return unescape_bare(atom)


def _relocate(text: str, error: ZoonDecodeError) -> ZoonDecodeError:
    """Turn a flat character offset into a line/column pair."""
    if error.column is None or error.line is not None:
        return error
    offset = error.column - 1
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return ZoonDecodeError(error.message, line=line, column=column)


@dataclass
class _Frame:
    container: dict[str, Any] | list[Any]
    opened_at: int


class _Parser:
    """Iterative parser for the inline grammar.

    Nested records and lists are tracked on an explicit frame stack instead
    of recursive calls.
    """

    def __init__(self, text: str, aliases: AliasTable) -> None:
        self.text = text
        self.aliases = aliases
        self.pos = 0

    def error(self, message: str, pos: int | None = None) -> ZoonDecodeError:
        return ZoonDecodeError(message, column=(self.pos if pos is None else pos) + 1)

    def parse_document(self) -> dict[str, Any]:
        self._read_definitions()
        root: dict[str, Any] = {}
        self._run([_Frame(root, -1)])
        return root

    def parse_single_value(self) -> Any:
        holder: list[Any] = []
        self._run([_Frame(holder, -1)], single=True)
        if len(holder) != 1:
            raise self.error("Expected exactly one value", 0)
        return holder[0]

    def _read_definitions(self) -> None:
        text = self.text
        while True:
            pos = skip_whitespace(text, self.pos)
            if not text.startswith("%", pos):
                self.pos = pos
                return
            symbol, _, op = scan_name(text, pos)
            if not is_symbol(symbol) or text[op] != "=":
                self.pos = pos
                return
            prefix, end = scan_atom(text, op + 1)
            if not prefix:
                raise self.error(f"Empty alias definition for {symbol}", op + 1)
            self.aliases.define(symbol, prefix, column=pos + 1)
            self.pos = end

    def _run(self, stack: list[_Frame], *, single: bool = False) -> None:
        text = self.text
        end = len(text)
        while True:
            self.pos = skip_whitespace(text, self.pos)
            frame = stack[-1]
            if self.pos >= end:
                if len(stack) > 1:
                    closer = "}" if isinstance(frame.container, dict) else "]"
                    raise self.error(f"Unclosed region, missing {closer!r}", frame.opened_at)
                return
            ch = text[self.pos]
            if ch in "}]":
                expected = "}" if isinstance(frame.container, dict) else "]"
                if len(stack) == 1:
                    raise self.error(f"Unexpected {ch!r}")
                if ch != expected:
                    raise self.error(f"Expected {expected!r} but found {ch!r}")
                stack.pop()
                self.pos += 1
                self._expect_separator()
                continue
            if single and len(stack) == 1 and frame.container:
                raise self.error("Unexpected trailing content")

            container = frame.container
            if isinstance(container, dict):
                key, quoted, op = scan_name(text, self.pos)
                if not quoted and is_symbol(key):
                    key = self.aliases.resolve(key, column=self.pos + 1)
                if key in container:
                    raise self.error(f"Duplicate key {key!r}")
                self.pos = op + 1
                if text[op] == "=":
                    container[key] = self._read_string()
                    self._expect_separator()
                    continue
                child = self._read_typed(container, key)
            else:
                child = self._read_typed(container, None)
            if child is not None:
                stack.append(child)
            else:
                self._expect_separator()

    def _read_typed(self, container: dict[str, Any] | list[Any], key: str | None) -> _Frame | None:
        """Read a typed value into ``container``; returns a frame for nested values."""
        text = self.text
        if self.pos >= len(text):
            raise self.error("Missing value")
        ch = text[self.pos]
        value: Any
        child: _Frame | None = None
        if ch == "{":
            value = {}
            child = _Frame(value, self.pos)
            self.pos += 1
        elif ch == "[":
            value = []
            child = _Frame(value, self.pos)
            self.pos += 1
        elif ch == '"':
            value, self.pos = scan_quoted(text, self.pos)
        else:
            atom, self.pos = scan_atom(text, self.pos)
            if not atom:
                raise self.error("Missing value")
            value = _atom_value(atom)
        if isinstance(container, dict):
            container[cast("str", key)] = value
        else:
            container.append(value)
        return child

    def _read_string(self) -> str | None:
        text = self.text
        if self.pos < len(text) and text[self.pos] == '"':
            value, self.pos = scan_quoted(text, self.pos)
            return value
        atom, self.pos = scan_atom(text, self.pos)
        if atom == NULL:
            return None
        return unescape_bare(atom)

    def _expect_separator(self) -> None:
        if self.pos < len(self.text) and not self.text[self.pos].isspace() and self.text[self.pos] not in "}]":
            raise self.error(f"Unexpected {self.text[self.pos]!r}")
