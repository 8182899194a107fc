"""Low-level ZOON lexer shared by the tabular and inline decoders.

All scanning is iterative: balanced ``{...}`` / ``[...]`` regions are tracked
with an explicit stack, so hostile nesting depth cannot exhaust the
interpreter's call stack.
"""

from __future__ import annotations

from typing import NamedTuple

import orjson

from zoon.errors import ZoonDecodeError

OPENERS = {"{": "}", "[": "]"}
CLOSERS = frozenset("}]")


class Token(NamedTuple):
    """A whitespace-delimited token and its 1-based column."""

    text: str
    column: int


def split_tokens(line: str, *, line_number: int | None = None) -> list[Token]:
    """Split ``line`` on top-level whitespace.

    Quoted strings and bracketed regions are kept intact, e.g.
    ``'a "b c" x:{d=1 e=2}'`` yields ``a``, ``"b c"`` and ``x:{d=1 e=2}``.

    Raises:
        ZoonDecodeError: On an unterminated quote or unbalanced brackets.
    """
    tokens: list[Token] = []
    stack: list[tuple[str, int]] = []
    start: int | None = None
    pos = 0
    end = len(line)

    while pos < end:
        ch = line[pos]
        if ch == '"':
            if start is None:
                start = pos
            pos = find_closing_quote(line, pos, line_number=line_number) + 1
            continue
        if ch.isspace() and not stack:
            if start is not None:
                tokens.append(Token(line[start:pos], start + 1))
                start = None
            pos += 1
            continue
        if start is None:
            start = pos
        if ch in OPENERS:
            stack.append((OPENERS[ch], pos))
        elif ch in CLOSERS:
            if not stack:
                raise ZoonDecodeError(f"Unexpected {ch!r}", line=line_number, column=pos + 1)
            expected, _ = stack.pop()
            if ch != expected:
                raise ZoonDecodeError(
                    f"Expected {expected!r} but found {ch!r}", line=line_number, column=pos + 1
                )
        pos += 1

    if stack:
        expected, opened_at = stack[-1]
        raise ZoonDecodeError(f"Unclosed region, missing {expected!r}", line=line_number, column=opened_at + 1)
    if start is not None:
        tokens.append(Token(line[start:], start + 1))
    return tokens


def find_closing_quote(text: str, pos: int, *, line_number: int | None = None) -> int:
    """Return the index of the quote that closes the string opened at ``pos``."""
    i = pos + 1
    end = len(text)
    while i < end:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i
        i += 1
    raise ZoonDecodeError("Unterminated quoted string", line=line_number, column=pos + 1)


def scan_quoted(text: str, pos: int, *, line_number: int | None = None) -> tuple[str, int]:
    """Decode the JSON string literal starting at ``pos``.

    Returns the decoded string and the index just past the closing quote.
    """
    close = find_closing_quote(text, pos, line_number=line_number)
    try:
        value = orjson.loads(text[pos : close + 1])
    except orjson.JSONDecodeError as e:
        raise ZoonDecodeError(f"Invalid quoted string: {e}", line=line_number, column=pos + 1) from e
    return value, close + 1


def skip_whitespace(text: str, pos: int) -> int:
    end = len(text)
    while pos < end and text[pos].isspace():
        pos += 1
    return pos


def scan_atom(text: str, pos: int) -> tuple[str, int]:
    """Read an unquoted atom up to whitespace or a closing bracket."""
    start = pos
    end = len(text)
    while pos < end and not text[pos].isspace() and text[pos] not in CLOSERS:
        pos += 1
    return text[start:pos], pos


def scan_name(text: str, pos: int, *, line_number: int | None = None) -> tuple[str, bool, int]:
    """Read a bare or quoted name terminated by ``=`` or ``:``.

    Returns ``(name, was_quoted, index of the operator)``.
    """
    if pos < len(text) and text[pos] == '"':
        name, pos = scan_quoted(text, pos, line_number=line_number)
        quoted = True
    else:
        start = pos
        end = len(text)
        while pos < end and text[pos] not in "=:" and not text[pos].isspace():
            if text[pos] in OPENERS or text[pos] in CLOSERS:
                break
            pos += 1
        name = text[start:pos]
        quoted = False
        if not name:
            raise ZoonDecodeError("Expected a key", line=line_number, column=start + 1)
    if pos >= len(text) or text[pos] not in "=:":
        raise ZoonDecodeError(f"Expected '=' or ':' after {name!r}", line=line_number, column=pos + 1)
    return name, quoted, pos
