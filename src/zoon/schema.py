"""Schema inference for tabular ZOON.

Each column of a record sequence is classified from its complete set of
values. Classification is deterministic: the same rows always produce the
same schema, and a single row can demote a column for the whole dataset
(one gap in an ``id`` sequence turns ``id:i+`` into ``id:i``).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from zoon.errors import ZoonSchemaError
from zoon.values import (
    ValueKind,
    is_bare_name,
    is_number,
    is_record,
    needs_quoting,
    same_value,
    value_kind,
)

logger = logging.getLogger(__name__)

DEFAULT_ENUM_THRESHOLD = 10
TEXT_THRESHOLD = 30


class FieldKind(str, Enum):
    """Column classification, in inference precedence order."""

    AUTO_INCREMENT = "i+"
    CONSTANT = "@"
    ENUM = "="
    BOOLEAN = "b"
    QUOTED_TEXT = "t"
    PLAIN_STRING = "s"
    NUMERIC = "i"
    VALUE = "v"


# Kinds that never contribute a token to a row.
ELIMINATED = frozenset({FieldKind.AUTO_INCREMENT, FieldKind.CONSTANT})


@dataclass(frozen=True)
class FieldSpec:
    """Schema entry for one tabular column.

    Attributes:
        name: Column name. For flattened nested fields this is the dotted path.
        kind: Column classification.
        enum_values: Declared literal values for ENUM columns.
        constant_value: Hoisted value for CONSTANT columns.
        path: Key path into each record; defaults to ``(name,)``.
        indexed: ENUM rows carry value indexes instead of literals.
    """

    name: str
    kind: FieldKind
    enum_values: tuple[str, ...] | None = None
    constant_value: Any = None
    path: tuple[str, ...] | None = None
    indexed: bool = False

    @property
    def keys(self) -> tuple[str, ...]:
        return self.path if self.path is not None else (self.name,)

    @property
    def in_body(self) -> bool:
        return self.kind not in ELIMINATED


@dataclass
class Column:
    path: tuple[str, ...]
    values: list[Any] = field(default_factory=list)


def lookup(record: dict[str, Any], path: tuple[str, ...]) -> Any:
    """Follow ``path`` into nested records; missing keys read as None."""
    value: Any = record
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def collect_columns(rows: Sequence[dict[str, Any]]) -> list[Column]:
    """Gather columns over the key union of ``rows``, flattening nested records.

    A key is flattened into ``key.sub`` columns only when every row holds a
    record there and all nested keys can be written as bare names.
    """
    columns: list[Column] = []
    # Depth-first over key paths with an explicit stack, children in key order.
    stack: list[tuple[str, ...]] = [(key,) for key in reversed(_key_union(rows))]
    while stack:
        path = stack.pop()
        values = [lookup(row, path) for row in rows]
        if all(is_record(v) for v in values) and all(is_bare_name(k) for k in path):
            nested_keys = _key_union(values)
            if nested_keys and all(is_bare_name(k) for k in nested_keys):
                stack.extend((*path, key) for key in reversed(nested_keys))
                continue
        columns.append(Column(path, values))
    return columns


def _key_union(records: Sequence[dict[str, Any]]) -> list[str]:
    seen: dict[str, None] = {}
    for record in records:
        for key in record:
            if not isinstance(key, str):
                raise ZoonSchemaError(f"Record keys must be strings, got {key!r}")
            seen.setdefault(key, None)
    return list(seen)


def infer_schema(
    rows: Sequence[dict[str, Any]],
    *,
    infer_enums: bool = True,
    enum_threshold: int = DEFAULT_ENUM_THRESHOLD,
    index_enums: bool = False,
) -> list[FieldSpec]:
    """Derive a FieldSpec for every column of a non-empty record sequence."""
    if not rows:
        return []
    columns = collect_columns(rows)
    specs = [
        classify(
            column,
            sole_column=len(columns) == 1,
            infer_enums=infer_enums,
            enum_threshold=enum_threshold,
            index_enums=index_enums,
        )
        for column in columns
    ]
    logger.debug(
        "Inferred schema for %d rows: %s",
        len(rows),
        ", ".join(f"{spec.name}:{spec.kind.name}" for spec in specs),
    )
    return specs


def classify(
    column: Column,
    *,
    sole_column: bool = False,
    infer_enums: bool = True,
    enum_threshold: int = DEFAULT_ENUM_THRESHOLD,
    index_enums: bool = False,
) -> FieldSpec:
    """Classify one column; the first matching kind wins."""
    values = column.values
    path = column.path
    name = ".".join(path)
    kinds = [value_kind(v) for v in values]
    present = [v for v, k in zip(values, kinds, strict=True) if k is not ValueKind.NULL]
    present_kinds = {k for k in kinds if k is not ValueKind.NULL}

    if not sole_column and _is_auto_increment(values):
        return FieldSpec(name, FieldKind.AUTO_INCREMENT, path=path)

    if len(values) >= 2 and _is_constant(values, kinds):
        return FieldSpec(name, FieldKind.CONSTANT, constant_value=values[0], path=path)

    if present_kinds == {ValueKind.STRING}:
        if infer_enums:
            distinct = list(dict.fromkeys(present))
            if (
                len(distinct) <= enum_threshold
                and len(distinct) < len(present)
                and all(is_enum_literal(v) for v in distinct)
            ):
                return FieldSpec(
                    name, FieldKind.ENUM, enum_values=tuple(distinct), path=path, indexed=index_enums
                )
        if any(len(v) > TEXT_THRESHOLD for v in present):
            return FieldSpec(name, FieldKind.QUOTED_TEXT, path=path)
        return FieldSpec(name, FieldKind.PLAIN_STRING, path=path)

    if present_kinds == {ValueKind.BOOL}:
        return FieldSpec(name, FieldKind.BOOLEAN, path=path)
    if not present_kinds:
        return FieldSpec(name, FieldKind.PLAIN_STRING, path=path)
    if present_kinds == {ValueKind.NUMBER}:
        return FieldSpec(name, FieldKind.NUMERIC, path=path)
    return FieldSpec(name, FieldKind.VALUE, path=path)


def is_enum_literal(value: str) -> bool:
    """Whether ``value`` can appear in a header ``a|b|c`` list."""
    return not needs_quoting(value) and " " not in value and "|" not in value


def _is_auto_increment(values: list[Any]) -> bool:
    return all(type(v) is int and v == i for i, v in enumerate(values, start=1))


def _is_constant(values: list[Any], kinds: list[ValueKind]) -> bool:
    if kinds[0] in (ValueKind.RECORD, ValueKind.SEQUENCE):
        return False
    first = values[0]
    return all(same_value(first, v) for v in values[1:])


def check_row(spec: FieldSpec, index: int, value: Any) -> None:
    """Verify that ``value`` in row ``index`` (0-based) fits ``spec``.

    Raises:
        ZoonSchemaError: If the value is incompatible with the column kind.
    """
    kind = value_kind(value)
    ok: bool
    if spec.kind is FieldKind.AUTO_INCREMENT:
        ok = type(value) is int and value == index + 1
    elif spec.kind is FieldKind.CONSTANT:
        ok = same_value(value, spec.constant_value)
    elif kind is ValueKind.NULL or spec.kind is FieldKind.VALUE:
        ok = True
    elif spec.kind is FieldKind.ENUM:
        ok = value in (spec.enum_values or ())
    elif spec.kind is FieldKind.BOOLEAN:
        ok = kind is ValueKind.BOOL
    elif spec.kind in (FieldKind.QUOTED_TEXT, FieldKind.PLAIN_STRING):
        ok = kind is ValueKind.STRING
    else:
        ok = is_number(value)
    if not ok:
        raise ZoonSchemaError(
            f"Row {index + 1}: value {value!r} does not fit field {spec.name!r} ({spec.kind.name})"
        )


def validate_schema(schema: Sequence[FieldSpec], rows: Sequence[dict[str, Any]]) -> None:
    """Check a caller-supplied schema against the full dataset.

    Every key present in the rows must be covered by a field, and every
    value must fit its field's kind.
    """
    seen_names: set[tuple[str, ...]] = set()
    for spec in schema:
        if not isinstance(spec.kind, FieldKind):
            raise ZoonSchemaError(f"Field {spec.name!r} has unknown kind {spec.kind!r}")
        if spec.keys in seen_names:
            raise ZoonSchemaError(f"Duplicate field {spec.name!r}")
        seen_names.add(spec.keys)
        if not spec.keys or (len(spec.keys) > 1 and not all(is_bare_name(k) for k in spec.keys)):
            raise ZoonSchemaError(f"Field {spec.name!r} has an unusable key path {spec.keys!r}")
        if spec.kind is FieldKind.ENUM:
            if not spec.enum_values:
                raise ZoonSchemaError(f"Enum field {spec.name!r} declares no values")
            bad = [v for v in spec.enum_values if not isinstance(v, str) or not is_enum_literal(v)]
            if bad:
                raise ZoonSchemaError(f"Enum field {spec.name!r} has unusable values: {bad!r}")
        if spec.kind is FieldKind.CONSTANT and value_kind(spec.constant_value) in (
            ValueKind.RECORD,
            ValueKind.SEQUENCE,
        ):
            raise ZoonSchemaError(f"Constant field {spec.name!r} must hold a scalar")

    for keys in seen_names:
        for depth in range(1, len(keys)):
            if keys[:depth] in seen_names:
                raise ZoonSchemaError(f"Field {'.'.join(keys)!r} is nested under another field")

    branches = {keys[:depth] for keys in seen_names for depth in range(1, len(keys))}
    for index, row in enumerate(rows):
        _check_coverage(index, row, seen_names, branches)
        for spec in schema:
            check_row(spec, index, lookup(row, spec.keys))


def _check_coverage(
    index: int,
    row: dict[str, Any],
    leaves: set[tuple[str, ...]],
    branches: set[tuple[str, ...]],
) -> None:
    """Require every key of ``row``, at any depth, to reach a schema field."""
    extra: list[str] = []
    stack: list[tuple[tuple[str, ...], dict[str, Any]]] = [((), row)]
    while stack:
        prefix, record = stack.pop()
        for key, value in record.items():
            path = (*prefix, key)
            if path in leaves:
                continue
            if path not in branches:
                extra.append(".".join(str(k) for k in path))
            elif isinstance(value, dict):
                stack.append((path, value))
            else:
                raise ZoonSchemaError(
                    f"Row {index + 1}: value {value!r} at {'.'.join(path)!r} must be a record "
                    "holding the schema's nested fields"
                )
    if extra:
        raise ZoonSchemaError(f"Row {index + 1} has fields missing from the schema: {sorted(extra)!r}")
