"""Sentinel keys stored alongside literal names in the document index."""

from __future__ import annotations

from enum import Enum
from typing import Union


class IndexKey(Enum):
    """Non-literal index keys.

    Members never compare equal to ``str`` values, so a module tag literally
    named ``"ALL"`` and the all-documents key cannot collide.
    """

    ALL = "all"
    LATEST = "latest"

    def __repr__(self) -> str:
        return f"IndexKey.{self.name}"


VersionKey = Union[str, IndexKey]
TagKey = Union[str, IndexKey]

ALL = IndexKey.ALL
LATEST = IndexKey.LATEST

__all__ = ["ALL", "IndexKey", "LATEST", "TagKey", "VersionKey"]
