"""Document sources feeding the publishing pipeline."""

from .antora import AntoraContentSource, page_tags, parse_page, pick_latest_version
from .base import DocumentSource

__all__ = [
    "AntoraContentSource",
    "DocumentSource",
    "page_tags",
    "parse_page",
    "pick_latest_version",
]
