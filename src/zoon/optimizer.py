"""Document-level optimizer passes.

Alias detection replaces a repeated container key (or dotted key prefix) with
a short ``%N`` symbol. The table is built fresh for each encode call and
passed explicitly to the renderers; nothing is cached between calls.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from zoon.errors import ZoonDecodeError
from zoon.values import is_bare_name

logger = logging.getLogger(__name__)

ALIAS_MIN_LENGTH = 5
ALIAS_PREFIX = "%"

_SYMBOL_RE = re.compile(r"%\d+")


def is_symbol(text: str) -> bool:
    return _SYMBOL_RE.fullmatch(text) is not None


@dataclass
class AliasTable:
    """Bidirectional mapping between alias symbols and literal prefixes."""

    by_prefix: dict[str, str] = field(default_factory=dict)
    by_symbol: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.by_symbol)

    def add(self, prefix: str) -> str:
        symbol = f"{ALIAS_PREFIX}{len(self.by_symbol)}"
        self.by_prefix[prefix] = symbol
        self.by_symbol[symbol] = prefix
        return symbol

    def define(self, symbol: str, prefix: str, *, line: int | None = None, column: int | None = None) -> None:
        """Register a definition read from a document."""
        if symbol in self.by_symbol:
            raise ZoonDecodeError(f"Alias {symbol} defined twice", line=line, column=column)
        self.by_symbol[symbol] = prefix
        self.by_prefix[prefix] = symbol

    def resolve(self, symbol: str, *, line: int | None = None, column: int | None = None) -> str:
        try:
            return self.by_symbol[symbol]
        except KeyError:
            raise ZoonDecodeError(f"Undefined alias {symbol}", line=line, column=column) from None

    def definitions(self) -> list[str]:
        return [f"{symbol}={prefix}" for symbol, prefix in self.by_symbol.items()]


def _saves(prefix: str, uses: int, symbol: str) -> bool:
    """Whether substituting ``symbol`` for ``prefix`` beats its definition cost."""
    if uses < 2 or len(prefix) <= ALIAS_MIN_LENGTH:
        return False
    saved = uses * (len(prefix) - len(symbol))
    cost = len(symbol) + 1 + len(prefix) + 1
    return saved > cost


def _select(candidates: Counter[str]) -> list[str]:
    guess = f"{ALIAS_PREFIX}{max(len(candidates) - 1, 0)}"
    return [p for p, uses in candidates.items() if _saves(p, uses, guess)]


def build_path_aliases(paths: Sequence[tuple[str, ...]]) -> tuple[AliasTable, list[int]]:
    """Choose aliases for dotted column paths.

    Every proper prefix of a path (``infrastructure``,
    ``infrastructure.postgres`` for ``infrastructure.postgres.status``) is a
    candidate. Each path takes its longest qualifying prefix; candidates
    that end up under-used are dropped and the assignment is repeated.

    Returns:
        The alias table and, per path, the number of leading segments
        replaced by a symbol (0 for none).
    """
    counts: Counter[str] = Counter()
    for path in paths:
        for depth in range(1, len(path)):
            counts[".".join(path[:depth])] += 1
    active = set(_select(counts))

    depths = [0] * len(paths)
    while active:
        usage: Counter[str] = Counter()
        for i, path in enumerate(paths):
            depths[i] = 0
            for depth in range(len(path) - 1, 0, -1):
                if ".".join(path[:depth]) in active:
                    depths[i] = depth
                    usage[".".join(path[:depth])] += 1
                    break
        kept = set(_select(usage))
        if kept == active:
            break
        active = kept
    else:
        depths = [0] * len(paths)

    table = AliasTable()
    for path, depth in zip(paths, depths, strict=True):
        if depth:
            prefix = ".".join(path[:depth])
            if prefix not in table.by_prefix:
                table.add(prefix)
    if table:
        logger.debug("Column aliases: %s", table.by_symbol)
    return table, depths


def build_key_aliases(records: Iterable[dict[str, Any]]) -> AliasTable:
    """Choose aliases for keys that hold nested records anywhere in the document."""
    counts: Counter[str] = Counter()
    stack: list[Any] = list(records)
    # Depth-first walk with an explicit stack; keys are counted in document order.
    stack.reverse()
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            children = []
            for key, value in node.items():
                if isinstance(value, dict) and is_bare_name(key):
                    counts[key] += 1
                if isinstance(value, (dict, list, tuple)):
                    children.append(value)
            stack.extend(reversed(children))
        elif isinstance(node, (list, tuple)):
            stack.extend(reversed([v for v in node if isinstance(v, (dict, list, tuple))]))

    table = AliasTable()
    for key in _select(counts):
        table.add(key)
    if table:
        logger.debug("Key aliases: %s", table.by_symbol)
    return table
