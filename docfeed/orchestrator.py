"""Pipeline orchestration for one feed publishing cycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .config import (
    ConfigurationError,
    DocFeedConfig,
    feed_options_layer,
    merge_feed_config,
)
from .documents import build_documents_sync
from .feeds import AtomRenderer
from .git.timestamps import GitTimestampResolver, TimestampResolver
from .index import build_index
from .logging import get_logger
from .models import ComponentEntry
from .resolver import SelectorResolver
from .sink import FeedSink, FileSystemFeedSink
from .sources import AntoraContentSource, DocumentSource


@dataclass
class BuildReport:
    """Outcome of a publishing cycle."""

    published: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    dropped_documents: int = 0


class FeedPipeline:
    """Coordinates document construction, indexing, resolution and output.

    Collaborators left as ``None`` are built from the configuration on each
    run: an Antora content source, git timestamps, the bundled Atom template
    and a filesystem sink.
    """

    def __init__(
        self,
        source: DocumentSource | None = None,
        timestamps: TimestampResolver | None = None,
        renderer: AtomRenderer | None = None,
        sink: FeedSink | None = None,
    ) -> None:
        self.source = source
        self.timestamps = timestamps
        self.renderer = renderer
        self.sink = sink
        self.logger = get_logger("orchestrator")

    def run(self, config: DocFeedConfig) -> BuildReport:
        site_url = config.require_site_url()
        self.logger.info("Starting feed build for %s", site_url)

        source = self.source or AntoraContentSource(
            config.content_dir, site_url, overrides=config.components
        )
        timestamps = self.timestamps or GitTimestampResolver(concurrency=config.git_concurrency)
        renderer = self.renderer or AtomRenderer(config.templates_dir)
        sink = self.sink or FileSystemFeedSink(config.output_dir)

        components = list(source.get_components())
        raw_documents = list(source.get_documents())
        self.logger.debug(
            "Source reported %d components and %d pages", len(components), len(raw_documents)
        )

        batch = build_documents_sync(raw_documents, timestamps)
        index = build_index(batch.documents, components)
        resolver = SelectorResolver(index, components)

        report = BuildReport(dropped_documents=len(batch.dropped))
        for entry in components:
            if not entry.enabled:
                self.logger.info("Feeds disabled for component %s", entry.name)
                continue
            feeds = self._feeds_for(entry, config)
            if not feeds:
                self.logger.debug("No feeds declared for component %s", entry.name)
                continue
            for version in entry.versions:
                self._build_component_feeds(
                    entry, version, feeds, config, resolver, renderer, sink, site_url, report
                )

        self.logger.info(
            "Published %d feeds (%d skipped)", len(report.published), len(report.skipped)
        )
        return report

    # ------------------------------------------------------------------
    # Helpers

    @staticmethod
    def _feeds_for(
        entry: ComponentEntry, config: DocFeedConfig
    ) -> Optional[Sequence[Dict[str, Any]]]:
        if entry.component_feeds is not None:
            return entry.component_feeds
        return config.default_component_feeds

    def _build_component_feeds(
        self,
        entry: ComponentEntry,
        version: str,
        feeds: Sequence[Dict[str, Any]],
        config: DocFeedConfig,
        resolver: SelectorResolver,
        renderer: AtomRenderer,
        sink: FeedSink,
        site_url: str,
        report: BuildReport,
    ) -> None:
        for position, feed_entry in enumerate(feeds):
            label = f"{entry.name}@{version or '-'}/{feed_entry.get('name') or f'#{position}'}"
            try:
                template = merge_feed_config(
                    feed_options_layer(config.feed_options),
                    feed_options_layer(entry.feed_options),
                    feed_entry,
                )
                results = resolver.resolve(template, entry.name, version)
            except ConfigurationError as exc:
                self.logger.error("Skipping feed %s: %s", label, exc)
                report.skipped.append(label)
                continue

            for result in results:
                sink.publish(result.url, renderer.render(result, site_url))
                report.published.append(result.url)
                self.logger.info(
                    "Built feed %s (%d entries)", result.url, len(result.documents)
                )


__all__ = ["BuildReport", "FeedPipeline"]
