"""Publish/update timestamps for pages, read from git history."""

from __future__ import annotations

import asyncio
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..logging import get_logger
from ..models import RawDocument

_PUBLISHED_ATTRIBUTES = ("feed-published", "published")


class TimestampResolutionError(RuntimeError):
    """Raised when a page's timestamps cannot be determined."""


class TimestampResolver(ABC):
    """Contract for collaborators resolving ISO-8601 timestamps for a page."""

    @abstractmethod
    async def resolve_published(self, document: RawDocument) -> str:
        """Return when the page was first published."""

    @abstractmethod
    async def resolve_updated(self, document: RawDocument) -> str:
        """Return when the page was last changed."""


class GitTimestampResolver(TimestampResolver):
    """Reads author dates from ``git log``.

    Header attributes (``feed-published``, ``published``) take precedence for
    the publish date. Git calls run in worker threads, at most
    ``concurrency`` at a time.
    """

    def __init__(
        self,
        runner: Callable[..., str] | None = None,
        *,
        concurrency: int = 8,
    ) -> None:
        self._runner = runner or self._default_runner
        self._concurrency = max(1, concurrency)
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._semaphore_loop: Optional[asyncio.AbstractEventLoop] = None
        self.logger = get_logger("git.timestamps")

    async def resolve_published(self, document: RawDocument) -> str:
        for attribute in _PUBLISHED_ATTRIBUTES:
            value = document.attributes.get(attribute)
            if value:
                return value
        lines = await self._git_log(document, "--diff-filter=A", "--reverse")
        return lines[0]

    async def resolve_updated(self, document: RawDocument) -> str:
        lines = await self._git_log(document, "-1")
        return lines[-1]

    # ------------------------------------------------------------------
    # Helpers

    async def _git_log(self, document: RawDocument, *args: str) -> List[str]:
        if document.worktree is None:
            raise TimestampResolutionError(f"{document.path} is not inside a git worktree")
        command = [
            "git",
            "-C",
            str(document.worktree),
            "log",
            "--follow",
            "--format=%aI",
            *args,
            "--",
            str(document.path),
        ]
        async with self._limiter():
            try:
                output = await asyncio.to_thread(
                    self._runner, command, cwd=document.worktree, capture_output=True
                )
            except (subprocess.CalledProcessError, OSError) as exc:
                raise TimestampResolutionError(
                    f"git log failed for {document.path}: {exc}"
                ) from exc

        lines = [line.strip() for line in output.splitlines() if line.strip()]
        if not lines:
            raise TimestampResolutionError(f"No git history for {document.path}")
        self.logger.debug("git log %s for %s -> %s", " ".join(args), document.path, lines[0])
        return lines

    def _limiter(self) -> asyncio.Semaphore:
        # A semaphore belongs to the loop it is first used on; asyncio.run creates a new one.
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self._concurrency)
            self._semaphore_loop = loop
        return self._semaphore

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            env=env,
            check=True,
            text=True,
            capture_output=capture_output,
        )
        if capture_output:
            return completed.stdout
        return ""


__all__ = ["GitTimestampResolver", "TimestampResolutionError", "TimestampResolver"]
