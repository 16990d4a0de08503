"""Resolves feed templates into concrete, size-bounded document sets."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import ConfigurationError, FeedConfig
from ..index import ALL, LATEST, DocumentIndex, IndexKey
from ..logging import get_logger
from ..models import ComponentEntry, Document
from .selectors import COLLAPSE, FAN_OUT, Selector, parse_selector

ROOT_COMPONENT = "ROOT"

_PLACEHOLDERS = {
    "component": "{component}",
    "module": "{module}",
    "tag": "{tag}",
}


@dataclass(frozen=True)
class FeedResult:
    """A fully resolved feed: its effective config, entries and output path."""

    config: FeedConfig
    documents: Tuple[Document, ...]
    url: str
    component: str
    version: str


@dataclass(frozen=True)
class _Pending:
    """A queued template together with its already parsed selectors."""

    config: FeedConfig
    selectors: Tuple[Selector, ...]


class SelectorResolver:
    """Expands selector templates against a built DocumentIndex.

    Templates are processed from a FIFO work queue. A ``{*}`` field fans the
    current template out into one clone per existing value; the clones are
    queued and the current template contributes nothing. Templates without a
    fan-out are finalized into a :class:`FeedResult`.

    Selectors are parsed once, before the first pass. Clones carry narrowed
    :class:`Selector` values, so fanned-out module and tag names are never
    parsed again and may contain ``:`` or ``@``. A clone replaces its
    placeholder (``{component}``, ``{module}`` or ``{tag}``) in every selector
    field, the fanned one included, and in the feed's name, title,
    description and categories.
    """

    def __init__(self, index: DocumentIndex, registry: Sequence[ComponentEntry] = ()) -> None:
        self.index = index
        self.registry = list(registry)
        self.logger = get_logger("resolver")

    def resolve(
        self,
        template: FeedConfig,
        owning_component: str,
        owning_version: str,
    ) -> List[FeedResult]:
        """Resolve ``template`` for one component version.

        ``owning_version`` is the version whose feeds are being built; use
        ``""`` for an unversioned component.
        """
        if not template.name:
            raise ConfigurationError(f"No feed name provided for feed in {owning_component}")

        selectors = tuple(
            parse_selector(raw, owning_component, owning_version) for raw in template.tags
        )
        results: List[FeedResult] = []
        queue = deque([_Pending(template, selectors)])
        while queue:
            pending = queue.popleft()
            current = pending.config
            documents, clones = self._collect(pending)
            if clones is not None:
                self.logger.debug(
                    "Feed %s fanned out into %d templates", current.name, len(clones)
                )
                queue.extend(clones)
                continue
            url = feed_url(owning_component, owning_version, current.name or "")
            results.append(
                FeedResult(
                    config=current,
                    documents=finalize_documents(documents, current.max_entries),
                    url=url,
                    component=owning_component,
                    version=owning_version,
                )
            )

        seen: Dict[str, int] = {}
        for result in results:
            seen[result.url] = seen.get(result.url, 0) + 1
        for url, count in seen.items():
            if count > 1:
                self.logger.warning(
                    "%d feeds resolve to %s; use a placeholder such as {module} in the feed name",
                    count,
                    url,
                )
        return results

    def enabled_components(self) -> List[str]:
        names = [entry.name for entry in self.registry if entry.enabled]
        return list(dict.fromkeys(names))

    # ------------------------------------------------------------------
    # Resolution helpers

    def _collect(
        self, pending: _Pending
    ) -> Tuple[List[Document], Optional[List[_Pending]]]:
        accumulated: Dict[Document, None] = {}
        for position, selector in enumerate(pending.selectors):
            clones = self._apply(pending, position, selector, accumulated)
            if clones is not None:
                return [], clones
        return list(accumulated), None

    def _apply(
        self,
        pending: _Pending,
        position: int,
        selector: Selector,
        accumulated: Dict[Document, None],
    ) -> Optional[List[_Pending]]:
        version = LATEST if selector.version is None else selector.version

        if selector.component == FAN_OUT:
            return [
                _clone(pending, position, "component", name)
                for name in self.enabled_components()
            ]
        if selector.component == COLLAPSE:
            components = self.enabled_components()
        else:
            components = [selector.component]

        module_maps = [self.index.module_map(component, version) for component in components]

        if selector.module == FAN_OUT:
            modules = _unique(module for module_map in module_maps for module in module_map)
            return [_clone(pending, position, "module", module) for module in modules]

        tag_maps: List[Mapping] = []
        for module_map in module_maps:
            if selector.module == COLLAPSE:
                tag_maps.extend(module_map.values())
            elif selector.module in module_map:
                tag_maps.append(module_map[selector.module])

        if selector.tag == FAN_OUT:
            tags = _unique(
                tag for tag_map in tag_maps for tag in tag_map if not isinstance(tag, IndexKey)
            )
            return [_clone(pending, position, "tag", tag) for tag in tags]

        key = ALL if selector.tag == COLLAPSE else selector.tag
        for tag_map in tag_maps:
            for document in tag_map.get(key, ()):
                accumulated.setdefault(document, None)
        return None


def finalize_documents(documents: Iterable[Document], max_entries: int) -> Tuple[Document, ...]:
    """Newest-first by ``updated``, truncated to ``max_entries``."""
    ordered = sorted(documents, key=lambda document: document.updated_at)
    ordered.reverse()
    return tuple(ordered[: max(max_entries, 0)])


def feed_url(component: str, version: str, name: str) -> str:
    url = ""
    if component != ROOT_COMPONENT:
        url += f"/{component}"
    if version:
        url += f"/{version}"
    return f"{url}/{name}.xml"


def _clone(pending: _Pending, position: int, field: str, value: str) -> _Pending:
    token = _PLACEHOLDERS[field]

    def substitute(text: Optional[str]) -> Optional[str]:
        return text.replace(token, value) if text else text

    selectors = [selector.substitute(token, value) for selector in pending.selectors]
    selectors[position] = selectors[position].narrow(field, value)
    template = pending.config
    config = replace(
        template,
        tags=tuple(selector.render() for selector in selectors),
        name=substitute(template.name),
        title=substitute(template.title) or template.title,
        description=substitute(template.description),
        categories=tuple(substitute(category) or category for category in template.categories),
    )
    return _Pending(config, tuple(selectors))


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


__all__ = ["FeedResult", "SelectorResolver", "feed_url", "finalize_documents"]
