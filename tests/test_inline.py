"""Tests for ZOON inline format.

Tests encoding and decoding of single (possibly nested) records.
"""

from __future__ import annotations

from typing import Any

import pytest

from zoon import ZoonDecodeError, decode, encode
from zoon.formats import ZoonInline
from zoon.formats.inline import decode_typed, encode_typed


class TestInlineBasic:
    def test_encode_single_object(self) -> None:
        encoded = encode({"host": "localhost", "port": 3000, "ssl": True})
        assert "host=localhost" in encoded
        assert "port:3000" in encoded
        assert "ssl:y" in encoded

    def test_decode_key_value_pairs(self) -> None:
        result = decode("host=localhost port:3000 ssl:y")
        assert result == [{"host": "localhost", "port": 3000, "ssl": True}]

    def test_roundtrip_config(self, config_data: dict[str, Any]) -> None:
        encoded = encode(config_data)
        assert encoded == (
            "server:{host=localhost port:3000 ssl:y} "
            "database:{driver=postgres host=db.example.com port:5432} debug:n owner:~"
        )
        assert decode(encoded) == [config_data]

    def test_decode_nested_objects(self) -> None:
        result = decode("server:{host=localhost port:3000} db:{driver=postgres}")
        assert result[0]["server"] == {"host": "localhost", "port": 3000}
        assert result[0]["db"] == {"driver": "postgres"}

    def test_booleans_use_letters(self) -> None:
        encoded = encode({"on": True, "off": False})
        assert encoded == "on:y off:n"
        assert decode(encoded) == [{"on": True, "off": False}]

    def test_string_value_that_looks_typed_stays_string(self) -> None:
        data = {"zip": "02134", "answer": "y", "count": "12"}
        encoded = encode(data)
        assert encoded == "zip=02134 answer=y count=12"
        assert decode(encoded) == [data]

    def test_empty_record(self) -> None:
        assert encode({}) == ""
        assert decode("") == [{}]

    def test_empty_nested_containers(self) -> None:
        data = {"meta": {}, "items": []}
        encoded = encode(data)
        assert encoded == "meta:{} items:[]"
        assert decode(encoded) == [data]

    def test_unquoted_typed_atom_is_plain_string(self) -> None:
        assert decode("mode:fast_lane") == [{"mode": "fast lane"}]

    def test_whitespace_and_newlines_are_separators(self) -> None:
        assert decode("a:1\n  b=x\t c:{ d:2 }") == [{"a": 1, "b": "x", "c": {"d": 2}}]


class TestInlineStrings:
    def test_spaces_are_escaped(self) -> None:
        encoded = encode({"title": "Hello World"})
        assert encoded == "title=Hello_World"
        assert decode(encoded) == [{"title": "Hello World"}]

    def test_strings_needing_quotes(self) -> None:
        data = {"msg": 'say "hi"\n', "path": "a_b", "empty": "", "tilde": "~", "br": "}"}
        encoded = encode(data)
        assert 'path="a_b"' in encoded
        assert decode(encoded) == [data]

    def test_quoted_keys(self) -> None:
        data = {"first name": "Ada", "a:b": 1, "%0": {"x": 1}}
        encoded = encode(data)
        assert encoded.startswith('"first name"=Ada')
        assert decode(encoded) == [data]


class TestInlineLists:
    def test_list_values(self) -> None:
        data = {"tags": ["a b", "c"], "nums": [1, 2.5, None, True]}
        encoded = encode(data)
        assert encoded == 'tags:["a b" "c"] nums:[1 2.5 ~ y]'
        assert decode(encoded) == [data]

    def test_lists_of_records(self) -> None:
        data = {"users": [{"name": "Ada", "tags": ["x"]}, {"name": "Bob", "tags": []}]}
        assert decode(encode(data)) == [data]

    def test_tuples_encode_as_lists(self) -> None:
        assert decode(encode({"point": (1, 2)})) == [{"point": [1, 2]}]

    def test_deep_nesting_does_not_recurse(self) -> None:
        depth = 5000
        text = "a:" + "[" * depth + "]" * depth
        result = decode(text)[0]["a"]
        for _ in range(depth - 1):
            result = result[0]
        assert result == []

    def test_deep_nesting_encodes(self) -> None:
        data: dict[str, Any] = {"leaf": "x y"}
        for _ in range(600):
            data = {"a": data}
        encoded = encode(data)
        assert encoded.startswith("a:{" * 3)
        assert encoded.endswith("leaf=x_y" + "}" * 600)
        assert decode(encoded) == [data]

    def test_deep_list_encodes(self) -> None:
        data: list[Any] = [1]
        for _ in range(3000):
            data = [data]
        assert encode_typed(data) == "[" * 3001 + "1" + "]" * 3001


class TestInlineAliases:
    def test_repeated_container_keys_are_aliased(self) -> None:
        data = {
            "primary": {"connection": {"host": "a"}},
            "replica": {"connection": {"host": "b"}},
        }
        encoded = encode(data)
        assert encoded == "%0=connection primary:{%0:{host=a}} replica:{%0:{host=b}}"
        assert decode(encoded) == [data]

    def test_short_keys_are_not_aliased(self) -> None:
        encoded = encode({"a": {"db": {"x": 1}}, "b": {"db": {"x": 2}}})
        assert "%" not in encoded

    def test_undefined_alias(self) -> None:
        with pytest.raises(ZoonDecodeError, match="Undefined alias %3"):
            decode("%3:{a=1}")

    def test_aliases_can_be_disabled(self) -> None:
        data = {"primary": {"connection": {"host": "a"}}, "replica": {"connection": {"host": "b"}}}
        assert "%" not in ZoonInline.encode(data, aliases=False)


class TestInlineErrors:
    def test_unclosed_record(self) -> None:
        with pytest.raises(ZoonDecodeError, match="Unclosed") as excinfo:
            decode("a:{b=1")
        assert excinfo.value.line == 1
        assert excinfo.value.column == 3

    def test_mismatched_closer(self) -> None:
        with pytest.raises(ZoonDecodeError, match="Expected"):
            decode("a:{b:[1}")

    def test_stray_closer(self) -> None:
        with pytest.raises(ZoonDecodeError, match="Unexpected"):
            decode("a=1 }")

    def test_missing_operator(self) -> None:
        with pytest.raises(ZoonDecodeError, match="Expected '=' or ':'"):
            decode("lonely")

    def test_duplicate_key(self) -> None:
        with pytest.raises(ZoonDecodeError, match="Duplicate key"):
            decode("a=1 a=2")

    def test_unterminated_quote(self) -> None:
        with pytest.raises(ZoonDecodeError, match="Unterminated"):
            decode('a="open')

    def test_error_location_on_later_line(self) -> None:
        with pytest.raises(ZoonDecodeError) as excinfo:
            decode("a=1\nb:{c=2")
        assert excinfo.value.line == 2
        assert excinfo.value.column == 3


class TestTypedValues:
    def test_encode_typed(self) -> None:
        assert encode_typed("x y") == '"x y"'
        assert encode_typed({"a": [1, "b"]}) == '{a:[1 "b"]}'
        assert encode_typed(None) == "~"

    def test_decode_typed(self) -> None:
        assert decode_typed('{a:[1 "b"]}') == {"a": [1, "b"]}
        assert decode_typed("-12") == -12
        assert decode_typed("n") is False

    def test_decode_typed_rejects_trailing_values(self) -> None:
        with pytest.raises(ZoonDecodeError, match="trailing"):
            decode_typed("1 2")

    def test_decode_typed_offsets_columns(self) -> None:
        with pytest.raises(ZoonDecodeError) as excinfo:
            decode_typed("{a=1", line=4, column=10)
        assert excinfo.value.line == 4
        assert excinfo.value.column == 10
