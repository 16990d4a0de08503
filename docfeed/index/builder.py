"""Builds the component/version/module/tag document index."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from ..config import ConfigurationError
from ..logging import get_logger
from ..models import ComponentEntry, Document
from .keys import ALL, LATEST, IndexKey, TagKey, VersionKey

ModuleMap = Mapping[str, Mapping[TagKey, Tuple[Document, ...]]]

_EMPTY: Tuple[Document, ...] = ()
_EMPTY_MAP: Mapping = MappingProxyType({})


class DocumentIndex:
    """Read-only nested lookup: component -> version -> module -> tag -> documents."""

    def __init__(
        self,
        tree: Mapping[str, Mapping[VersionKey, ModuleMap]],
        *,
        document_count: int = 0,
    ) -> None:
        self._tree = tree
        self._document_count = document_count

    def lookup(
        self,
        component: str,
        version: VersionKey = LATEST,
        module: str | IndexKey = ALL,
        tag: TagKey = ALL,
    ) -> Tuple[Document, ...]:
        """Return the documents under the given path, or an empty tuple on any miss.

        ``module=ALL`` concatenates the matching leaf of every module, in
        module insertion order.
        """
        module_map = self.module_map(component, version)
        if module is ALL:
            collected: List[Document] = []
            for tag_map in module_map.values():
                collected.extend(tag_map.get(tag, _EMPTY))
            return tuple(collected)
        tag_map = module_map.get(module)
        if tag_map is None:
            return _EMPTY
        return tag_map.get(tag, _EMPTY)

    def module_map(self, component: str, version: VersionKey = LATEST) -> ModuleMap:
        versions = self._tree.get(component)
        if versions is None:
            return _EMPTY_MAP
        return versions.get(version, _EMPTY_MAP)

    def components(self) -> List[str]:
        return list(self._tree.keys())

    def versions(self, component: str) -> List[str]:
        """Concrete versions indexed for ``component`` (the latest alias excluded)."""
        versions = self._tree.get(component, _EMPTY_MAP)
        return [version for version in versions if not isinstance(version, IndexKey)]

    def has_latest(self, component: str) -> bool:
        return LATEST in self._tree.get(component, _EMPTY_MAP)

    def modules(self, component: str, version: VersionKey = LATEST) -> List[str]:
        return list(self.module_map(component, version).keys())

    def tags(self, component: str, version: VersionKey, module: str) -> List[str]:
        """Tags present in a module; the all-documents key is never reported as a tag."""
        tag_map = self.module_map(component, version).get(module, _EMPTY_MAP)
        return [tag for tag in tag_map if not isinstance(tag, IndexKey)]

    def __contains__(self, component: object) -> bool:
        return component in self._tree

    def __len__(self) -> int:
        return self._document_count


class IndexBuilder:
    """Accumulates documents into mutable maps, then freezes them into a DocumentIndex."""

    def __init__(self) -> None:
        self._tree: Dict[str, Dict[str, Dict[str, Dict[TagKey, List[Document]]]]] = {}
        self._count = 0
        self.logger = get_logger("index")

    def add(self, document: Document) -> None:
        if not document.component or not document.module:
            raise ConfigurationError(
                f"Document {document.url or document.title!r} is missing its component or module"
            )
        tag_map = (
            self._tree.setdefault(document.component, {})
            .setdefault(document.version, {})
            .setdefault(document.module, {})
        )
        tag_map.setdefault(ALL, []).append(document)
        # Repeated tags are appended repeatedly; feeds dedupe on resolution.
        for tag in document.tags:
            tag_map.setdefault(tag, []).append(document)
        self._count += 1

    def add_all(self, documents: Iterable[Document]) -> "IndexBuilder":
        for document in documents:
            self.add(document)
        return self

    def build(self, components: Sequence[ComponentEntry] = ()) -> DocumentIndex:
        frozen: Dict[str, Dict[VersionKey, ModuleMap]] = {}
        for component, versions in self._tree.items():
            frozen[component] = {
                version: MappingProxyType(
                    {
                        module: MappingProxyType({tag: tuple(docs) for tag, docs in tag_map.items()})
                        for module, tag_map in modules.items()
                    }
                )
                for version, modules in versions.items()
            }

        for entry in components:
            versions = frozen.get(entry.name)
            if versions is None:
                self.logger.debug("Component %s has no indexed documents", entry.name)
                continue
            if entry.latest_version is None or entry.latest_version not in versions:
                self.logger.debug(
                    "Latest version %r of %s has no indexed documents",
                    entry.latest_version,
                    entry.name,
                )
                continue
            # Alias, not copy: both keys share one module map.
            versions[LATEST] = versions[entry.latest_version]

        tree = MappingProxyType(
            {component: MappingProxyType(versions) for component, versions in frozen.items()}
        )
        self.logger.debug("Indexed %d documents across %d components", self._count, len(tree))
        return DocumentIndex(tree, document_count=self._count)


def build_index(
    documents: Iterable[Document], components: Sequence[ComponentEntry] = ()
) -> DocumentIndex:
    """Index ``documents`` and install latest-version aliases from ``components``."""
    return IndexBuilder().add_all(documents).build(components)
