"""Selector parsing and feed resolution."""

from .resolver import FeedResult, SelectorResolver, feed_url, finalize_documents
from .selectors import COLLAPSE, FAN_OUT, Selector, parse_selector

__all__ = [
    "COLLAPSE",
    "FAN_OUT",
    "FeedResult",
    "Selector",
    "SelectorResolver",
    "feed_url",
    "finalize_documents",
    "parse_selector",
]
