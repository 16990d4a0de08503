"""Document index keyed by component, version, module and tag."""

from .builder import DocumentIndex, IndexBuilder, build_index
from .keys import ALL, LATEST, IndexKey

__all__ = [
    "ALL",
    "DocumentIndex",
    "IndexBuilder",
    "IndexKey",
    "LATEST",
    "build_index",
]
