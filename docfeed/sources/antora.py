"""Document source over an Antora-style content tree."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import yaml

from ..config import ComponentSettings, ConfigurationError, normalise_keys
from ..logging import get_logger
from ..models import ComponentEntry, RawDocument
from .base import DocumentSource

DESCRIPTOR_FILENAME = "antora.yml"
ROOT_MODULE = "ROOT"

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    "build",
}

_PAGE_SUFFIX = ".adoc"
_ATTRIBUTE_LINE = re.compile(r"^:(?P<name>[A-Za-z0-9_][A-Za-z0-9_-]*)(?P<unset>!)?:(?:\s+(?P<value>.*))?$")
_AUTHOR_ENTRY = re.compile(r"^\s*(?P<name>[^<]+?)\s*(?:<(?P<email>[^>]+)>)?\s*$")


@dataclass
class ComponentDescriptor:
    """One ``antora.yml`` found in the content tree."""

    name: str
    version: str
    root: Path
    prerelease: bool = False
    feeds: Optional[Dict[str, Any]] = None
    disabled: bool = False


@dataclass
class PageHeader:
    """Title, attributes and body split out of an AsciiDoc page."""

    title: str
    attributes: Dict[str, str] = field(default_factory=dict)
    body: str = ""


class AntoraContentSource(DocumentSource):
    """Discovers components and pages below ``content_root``.

    Each directory holding an ``antora.yml`` is a component version; its
    pages live under ``modules/<module>/pages``. Both snapshots are taken on
    first access and reused for the rest of the cycle.
    """

    def __init__(
        self,
        content_root: Path,
        site_url: str,
        *,
        overrides: Mapping[str, ComponentSettings] | None = None,
    ) -> None:
        self.content_root = Path(content_root).expanduser().resolve()
        self.site_url = site_url.rstrip("/")
        self.overrides = dict(overrides or {})
        self.logger = get_logger("sources.antora")
        self._descriptors: Optional[List[ComponentDescriptor]] = None
        self._components: Optional[List[ComponentEntry]] = None
        self._documents: Optional[List[RawDocument]] = None

    def get_components(self) -> List[ComponentEntry]:
        if self._components is None:
            self._components = self._build_registry(self._scan_descriptors())
        return list(self._components)

    def get_documents(self) -> List[RawDocument]:
        if self._documents is None:
            documents: List[RawDocument] = []
            for descriptor in self._scan_descriptors():
                documents.extend(self._scan_pages(descriptor))
            self.logger.debug("Discovered %d pages", len(documents))
            self._documents = documents
        return list(self._documents)

    # ------------------------------------------------------------------
    # Component discovery

    def _scan_descriptors(self) -> List[ComponentDescriptor]:
        if self._descriptors is not None:
            return self._descriptors
        if not self.content_root.is_dir():
            raise FileNotFoundError(f"Content directory not found: {self.content_root}")

        descriptors = [
            _read_descriptor(path) for path in _iter_named(self.content_root, DESCRIPTOR_FILENAME)
        ]
        for descriptor in descriptors:
            self.logger.info("Found component %s %s", descriptor.name, descriptor.version or "(unversioned)")
        self._descriptors = descriptors
        return descriptors

    def _build_registry(self, descriptors: List[ComponentDescriptor]) -> List[ComponentEntry]:
        grouped: Dict[str, List[ComponentDescriptor]] = {}
        for descriptor in descriptors:
            grouped.setdefault(descriptor.name, []).append(descriptor)

        entries: List[ComponentEntry] = []
        for name, group in grouped.items():
            override = self.overrides.get(name, ComponentSettings())
            versions = tuple(dict.fromkeys(descriptor.version for descriptor in group))
            settings_source = _settings_descriptor(group, override)
            feeds = normalise_keys(settings_source.feeds or {})

            latest = override.latest_version or _optional_str(feeds.get("latest_version"))
            if latest is None:
                latest = pick_latest_version(
                    [(descriptor.version, descriptor.prerelease) for descriptor in group]
                )

            enabled = not settings_source.disabled
            if override.enabled is not None:
                enabled = override.enabled

            feed_options = normalise_keys(feeds.get("feed_options") or {})
            feed_options.update(override.feed_options)

            component_feeds = override.component_feeds
            if component_feeds is None and feeds.get("component_feeds") is not None:
                component_feeds = [normalise_keys(item) for item in feeds["component_feeds"]]

            entries.append(
                ComponentEntry(
                    name=name,
                    versions=versions,
                    latest_version=latest,
                    enabled=enabled,
                    feed_options=feed_options,
                    component_feeds=tuple(component_feeds) if component_feeds is not None else None,
                )
            )
        return entries

    # ------------------------------------------------------------------
    # Page discovery

    def _scan_pages(self, descriptor: ComponentDescriptor) -> Iterator[RawDocument]:
        modules_dir = descriptor.root / "modules"
        if not modules_dir.is_dir():
            return
        for module_dir in sorted(path for path in modules_dir.iterdir() if path.is_dir()):
            pages_dir = module_dir / "pages"
            if not pages_dir.is_dir():
                continue
            for page in _iter_suffix(pages_dir, _PAGE_SUFFIX):
                relative = page.relative_to(pages_dir)
                if any(part.startswith("_") for part in relative.parts):
                    continue
                header = parse_page(page.read_text(encoding="utf-8"))
                if "feedphobic" in header.attributes:
                    self.logger.debug("Skipping feedphobic page %s", page)
                    continue
                yield RawDocument(
                    component=descriptor.name,
                    version=descriptor.version,
                    module=module_dir.name,
                    path=page,
                    url=self.site_url
                    + page_url(descriptor.name, descriptor.version, module_dir.name, relative),
                    title=header.title,
                    content=header.body,
                    worktree=descriptor.root,
                    attributes=header.attributes,
                )


def page_url(component: str, version: str, module: str, relative: Path) -> str:
    """Antora-style publish path; ROOT component/module and empty versions are omitted."""
    segments: List[str] = []
    if component != ROOT_MODULE:
        segments.append(component)
    if version:
        segments.append(version)
    if module != ROOT_MODULE:
        segments.append(module)
    segments.append(relative.with_suffix(".html").as_posix())
    return "/" + "/".join(segments)


def parse_page(text: str) -> PageHeader:
    """Split an AsciiDoc page into document title, header attributes and body."""
    lines = text.splitlines()
    index = 0
    while index < len(lines) and (not lines[index].strip() or lines[index].startswith("//")):
        index += 1

    title = ""
    attributes: Dict[str, str] = {}
    if index < len(lines) and lines[index].startswith("= "):
        title = lines[index][2:].strip()
        index += 1
        if index < len(lines) and lines[index].strip() and not lines[index].startswith((":", "//")):
            attributes.update(_parse_author_line(lines[index]))
            index += 1

    while index < len(lines) and lines[index].strip():
        line = lines[index]
        index += 1
        if line.startswith("//"):
            continue
        match = _ATTRIBUTE_LINE.match(line.rstrip())
        if match is None:
            index -= 1
            break
        name = match.group("name")
        if match.group("unset"):
            attributes.pop(name, None)
            continue
        attributes[name] = (match.group("value") or "").strip()

    body = "\n".join(lines[index:]).strip()
    return PageHeader(title=title, attributes=attributes, body=body)


def page_tags(attributes: Mapping[str, str]) -> Tuple[str, ...]:
    """Tags from ``feed-tags`` falling back to ``tags``, comma separated."""
    raw = attributes.get("feed-tags", attributes.get("tags"))
    if not raw:
        return ()
    return tuple(tag.strip() for tag in raw.split(",") if tag.strip())


def pick_latest_version(versions: List[Tuple[str, bool]]) -> Optional[str]:
    """Highest version by natural ordering, preferring non-prerelease versions."""
    if not versions:
        return None
    stable = [version for version, prerelease in versions if not prerelease]
    candidates = stable or [version for version, _ in versions]
    return max(candidates, key=_version_key)


def _version_key(version: str) -> Tuple[Tuple[int, Any], ...]:
    parts = [part for part in re.split(r"(\d+)", version) if part]
    return tuple((0, int(part)) if part.isdigit() else (1, part) for part in parts)


def _parse_author_line(line: str) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for position, raw in enumerate(line.split(";"), start=1):
        match = _AUTHOR_ENTRY.match(raw)
        if match is None:
            continue
        name_key = "author" if position == 1 else f"author_{position}"
        email_key = "email" if position == 1 else f"email_{position}"
        attributes[name_key] = match.group("name").strip()
        if match.group("email"):
            attributes[email_key] = match.group("email").strip()
    return attributes


def _read_descriptor(path: Path) -> ComponentDescriptor:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path}: {exc}") from exc
    if not isinstance(data, dict) or not data.get("name"):
        raise ConfigurationError(f"{path} must define a component name")

    version = data.get("version")
    if version is None or isinstance(version, bool):
        version = ""
    ext = data.get("ext") if isinstance(data.get("ext"), dict) else {}
    feeds = ext.get("feeds")
    return ComponentDescriptor(
        name=str(data["name"]),
        version=str(version),
        root=path.parent,
        prerelease=bool(data.get("prerelease")),
        feeds=feeds if isinstance(feeds, dict) else None,
        disabled=feeds is False,
    )


def _settings_descriptor(
    group: List[ComponentDescriptor], override: ComponentSettings
) -> ComponentDescriptor:
    latest = override.latest_version or pick_latest_version(
        [(descriptor.version, descriptor.prerelease) for descriptor in group]
    )
    for descriptor in group:
        if descriptor.version == latest:
            return descriptor
    return group[0]


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _iter_named(root: Path, filename: str) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        if filename in filenames:
            yield Path(dirpath) / filename


def _iter_suffix(root: Path, suffix: str) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        for filename in sorted(filenames):
            if filename.endswith(suffix):
                yield Path(dirpath) / filename
