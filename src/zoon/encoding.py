"""Token counting helpers."""

from __future__ import annotations

import math

import tiktoken

DEFAULT_ENCODING = "o200k_base"


def count_tokens(text: str, *, encoding: str | None = DEFAULT_ENCODING) -> int:
    """Count tokens in ``text``.

    Args:
        text: Text to measure.
        encoding: Tiktoken encoding name. ``None`` uses a fast estimate of
            one token per four UTF-8 bytes.
    """
    if encoding is None:
        return math.ceil(len(text.encode()) / 4)
    return len(tiktoken.get_encoding(encoding).encode(text, disallowed_special=()))
