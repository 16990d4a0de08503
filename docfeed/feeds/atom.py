"""Atom serialization for resolved feeds."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .. import __version__
from ..resolver import FeedResult

GENERATOR_URI = "https://pypi.org/project/docfeed/"


class AtomRenderer:
    """Renders a FeedResult through the ``atom.xml.j2`` template.

    A user ``templates_dir`` is searched before the bundled templates, so a
    site can override the layout without touching the package.
    """

    TEMPLATE_NAME = "atom.xml.j2"

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)

    def render(
        self,
        result: FeedResult,
        site_url: str,
        *,
        generated_at: Optional[datetime] = None,
    ) -> bytes:
        feed_id = f"{site_url.rstrip('/')}{result.url}"
        template = self._env.get_template(self.TEMPLATE_NAME)
        text = template.render(
            feed_id=feed_id,
            config=result.config,
            updated=self._feed_updated(result, generated_at),
            entries=result.documents,
            generator_uri=GENERATOR_URI,
            version=__version__,
        )
        return text.encode("utf-8")

    @staticmethod
    def _feed_updated(result: FeedResult, generated_at: Optional[datetime]) -> str:
        if result.documents:
            newest = max(result.documents, key=lambda document: document.updated_at)
            return newest.updated
        moment = generated_at or datetime.now(timezone.utc)
        return moment.isoformat().replace("+00:00", "Z")

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).resolve().parent.parent / "templates"))
        loader = FileSystemLoader(list(dict.fromkeys(directories)))
        return Environment(
            loader=loader,
            autoescape=select_autoescape(enabled_extensions=("xml", "j2"), default=True),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


__all__ = ["AtomRenderer"]
