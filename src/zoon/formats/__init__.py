"""ZOON format implementations."""

from zoon.formats.inline import ZoonInline
from zoon.formats.tabular import ZoonTabular

__all__ = ["ZoonInline", "ZoonTabular"]
