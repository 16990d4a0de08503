"""Core data models shared across docfeed components."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Person:
    """Author or contributor attached to a feed or an entry."""

    name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class RawDocument:
    """A page discovered by a document source, before timestamps are known."""

    component: str
    version: str
    module: str
    path: Path
    url: str
    title: str
    content: str
    worktree: Optional[Path] = None
    attributes: Dict[str, str] = field(default_factory=dict)


# eq=False keeps identity semantics: the same page reached through two
# selectors is one feed entry, two pages with equal fields are two entries.
@dataclass(frozen=True, eq=False)
class Document:
    """An indexed page with resolved timestamps."""

    component: str
    version: str
    module: str
    tags: Tuple[str, ...]
    published: str
    updated: str
    url: str
    title: str
    content: str
    author: Optional[Person] = None
    contributors: Tuple[Person, ...] = ()

    @property
    def updated_at(self) -> datetime:
        return parse_timestamp(self.updated)

    @property
    def published_at(self) -> datetime:
        return parse_timestamp(self.published)


@dataclass(frozen=True)
class ComponentEntry:
    """Registry entry describing a component and its known versions."""

    name: str
    versions: Tuple[str, ...] = ()
    latest_version: Optional[str] = None
    enabled: bool = True
    feed_options: Dict[str, Any] = field(default_factory=dict)
    component_feeds: Optional[Tuple[Dict[str, Any], ...]] = None


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
