"""Configuration loading for docfeed (.docfeed.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .models import Person

CONFIG_FILENAME = ".docfeed.yml"

_KEY_ALIASES = {
    "maxEntries": "max_entries",
    "feedOptions": "feed_options",
    "componentFeeds": "component_feeds",
    "defaultComponentFeeds": "default_component_feeds",
    "latestVersion": "latest_version",
    "contentDir": "content_dir",
    "outputDir": "output_dir",
    "templatesDir": "templates_dir",
}


class ConfigurationError(RuntimeError):
    """Raised when configuration, a feed entry or a selector is malformed."""


@dataclass(frozen=True)
class FeedConfig:
    """Effective settings for one feed after option layers are merged."""

    title: str = "My Atom Feed"
    name: Optional[str] = None
    tags: Tuple[str, ...] = ()
    max_entries: int = 20
    author: Optional[Person] = None
    contributors: Tuple[Person, ...] = ()
    categories: Tuple[str, ...] = ()
    copyright: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    logo: Optional[str] = None


@dataclass
class ComponentSettings:
    """Per-component overrides declared in .docfeed.yml."""

    enabled: Optional[bool] = None
    latest_version: Optional[str] = None
    feed_options: Dict[str, Any] = field(default_factory=dict)
    component_feeds: Optional[List[Dict[str, Any]]] = None


@dataclass
class DocFeedConfig:
    """Represents the high-level settings defined in .docfeed.yml."""

    root: Path
    site_url: Optional[str] = None
    content_dir: Optional[Path] = None
    output_dir: Optional[Path] = None
    templates_dir: Optional[Path] = None
    git_concurrency: int = 8
    feed_options: Dict[str, Any] = field(default_factory=dict)
    default_component_feeds: Optional[List[Dict[str, Any]]] = None
    components: Dict[str, ComponentSettings] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.content_dir is None:
            self.content_dir = self.root
        if self.output_dir is None:
            self.output_dir = self.root / "build" / "site"

    def require_site_url(self) -> str:
        """Return the site URL or fail the whole run."""
        if not self.site_url:
            raise ConfigurationError("No site.url key specified, cannot build feeds")
        return self.site_url.rstrip("/")


def load_config(config_path: Path) -> DocFeedConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocFeedConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    data = normalise_keys(data)

    site_data = _as_dict(data.get("site"))
    git_data = _as_dict(data.get("git"))

    components: Dict[str, ComponentSettings] = {}
    for name, raw in _as_dict(data.get("components")).items():
        settings = normalise_keys(_as_dict(raw))
        components[str(name)] = ComponentSettings(
            enabled=_as_bool(raw) if not isinstance(raw, dict) else _as_bool(settings.get("enabled")),
            latest_version=_as_str(settings.get("latest_version")),
            feed_options=normalise_keys(_as_dict(settings.get("feed_options"))),
            component_feeds=_as_feed_list(settings.get("component_feeds")),
        )

    return DocFeedConfig(
        root=root,
        site_url=_as_str(site_data.get("url")),
        content_dir=_as_path(root, data.get("content_dir")),
        output_dir=_as_path(root, data.get("output_dir")),
        templates_dir=_as_path(root, data.get("templates_dir")),
        git_concurrency=max(1, _as_int(git_data.get("concurrency")) or 8),
        feed_options=normalise_keys(_as_dict(data.get("feed_options"))),
        default_component_feeds=_as_feed_list(data.get("default_component_feeds")),
        components=components,
    )


def merge_feed_config(*layers: Mapping[str, Any] | None) -> FeedConfig:
    """Merge option layers in increasing precedence on top of the defaults.

    Option layers (global and per-component ``feed_options``) are passed
    before the feed entry itself; any key present in a later layer wins.
    """
    merged: Dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(normalise_keys(layer))

    defaults = FeedConfig()
    icon = _as_str(merged.get("icon"))
    logo = _as_str(merged.get("logo"))
    max_entries = _as_int(merged.get("max_entries"))
    if max_entries is None:
        max_entries = defaults.max_entries
    if max_entries < 0:
        raise ConfigurationError(f"max_entries must be >= 0, got {max_entries}")

    return FeedConfig(
        title=_as_str(merged.get("title")) or defaults.title,
        name=_as_str(merged.get("name")),
        tags=tuple(_as_str_list(merged.get("tags"))),
        max_entries=max_entries,
        author=_as_person(merged.get("author")),
        contributors=tuple(
            person
            for person in (_as_person(item) for item in _as_list(merged.get("contributors")))
            if person is not None
        ),
        categories=tuple(_as_str_list(merged.get("categories"))),
        copyright=_as_str(merged.get("copyright")),
        description=_as_str(merged.get("description")),
        icon=icon or logo,
        logo=logo or icon,
    )


def feed_options_layer(options: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Strip the keys an option layer may not set (selectors belong to feeds)."""
    layer = normalise_keys(options or {})
    layer.pop("tags", None)
    return layer


def normalise_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_KEY_ALIASES.get(str(key), str(key)): value for key, value in data.items()}


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_feed_list(value: Any) -> Optional[List[Dict[str, Any]]]:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigurationError("Feed lists must be sequences of mappings")
    feeds: List[Dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise ConfigurationError(f"Feed entries must be mappings, got {item!r}")
        feeds.append(normalise_keys(item))
    return feeds


def _as_person(value: Any) -> Optional[Person]:
    if isinstance(value, str) and value.strip():
        return Person(name=value.strip())
    if isinstance(value, dict):
        name = _as_str(value.get("name"))
        email = _as_str(value.get("email"))
        if name or email:
            return Person(name=name, email=email)
    if isinstance(value, Person):
        return value
    return None


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    return (root / text).resolve()


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "ComponentSettings",
    "ConfigurationError",
    "DocFeedConfig",
    "FeedConfig",
    "feed_options_layer",
    "load_config",
    "merge_feed_config",
]
