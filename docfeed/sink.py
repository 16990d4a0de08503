"""Feed sinks receiving serialized feeds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict

from .logging import get_logger


class FeedSink(ABC):
    """Contract for collaborators that store finished feeds."""

    @abstractmethod
    def publish(self, feed_url: str, content: bytes) -> None:
        """Store ``content`` at the site-relative ``feed_url``."""


class FileSystemFeedSink(FeedSink):
    """Writes feeds below an output directory, mirroring their URLs."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)
        self.logger = get_logger("sink")

    def publish(self, feed_url: str, content: bytes) -> None:
        target = self.output_dir / feed_url.lstrip("/")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        self.logger.debug("Wrote %d bytes to %s", len(content), target)


class MemoryFeedSink(FeedSink):
    """Keeps published feeds in memory; used for dry runs."""

    def __init__(self) -> None:
        self.feeds: Dict[str, bytes] = {}

    def publish(self, feed_url: str, content: bytes) -> None:
        self.feeds[feed_url] = content


__all__ = ["FeedSink", "FileSystemFeedSink", "MemoryFeedSink"]
