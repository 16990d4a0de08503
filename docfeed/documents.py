"""Turns raw pages into indexed documents once their timestamps are known."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

from .git.timestamps import TimestampResolutionError, TimestampResolver
from .logging import get_logger
from .models import Document, Person, RawDocument, parse_timestamp
from .sources.antora import page_tags

logger = get_logger("documents")


@dataclass
class DocumentBatch:
    """Documents that were built, and the pages dropped along the way."""

    documents: List[Document] = field(default_factory=list)
    dropped: List[RawDocument] = field(default_factory=list)


async def build_document(raw: RawDocument, resolver: TimestampResolver) -> Document:
    """Resolve timestamps for one page and build its Document."""
    lookups = (
        asyncio.ensure_future(resolver.resolve_published(raw)),
        asyncio.ensure_future(resolver.resolve_updated(raw)),
    )
    try:
        published, updated = await asyncio.gather(*lookups)
    except BaseException:
        # The page is dropped either way; release the sibling lookup's slot.
        for lookup in lookups:
            lookup.cancel()
        raise
    for value in (published, updated):
        try:
            parse_timestamp(value)
        except ValueError as exc:
            raise TimestampResolutionError(
                f"Invalid timestamp {value!r} for {raw.path}"
            ) from exc

    return Document(
        component=raw.component,
        version=raw.version,
        module=raw.module,
        tags=page_tags(raw.attributes),
        published=published,
        updated=updated,
        url=raw.url,
        title=raw.title,
        content=raw.content,
        author=page_author(raw.attributes),
        contributors=page_contributors(raw.attributes),
    )


async def build_documents(
    raw_documents: Sequence[RawDocument], resolver: TimestampResolver
) -> DocumentBatch:
    """Build every page concurrently and wait for all of them.

    A page whose timestamps cannot be resolved is logged and left out; the
    rest keep their source order.
    """
    results = await asyncio.gather(
        *(build_document(raw, resolver) for raw in raw_documents),
        return_exceptions=True,
    )
    batch = DocumentBatch()
    for raw, result in zip(raw_documents, results):
        if isinstance(result, TimestampResolutionError):
            logger.warning("Skipping %s: %s", raw.path, result)
            batch.dropped.append(raw)
        elif isinstance(result, BaseException):
            raise result
        else:
            batch.documents.append(result)
    logger.info(
        "Built %d documents (%d skipped)", len(batch.documents), len(batch.dropped)
    )
    return batch


def build_documents_sync(
    raw_documents: Sequence[RawDocument], resolver: TimestampResolver
) -> DocumentBatch:
    return asyncio.run(build_documents(raw_documents, resolver))


def page_author(attributes: Mapping[str, str]) -> Optional[Person]:
    name = attributes.get("author") or attributes.get("author_1")
    email = attributes.get("email") or attributes.get("email_1")
    if not name and not email:
        return None
    return Person(name=name or None, email=email or None)


def page_contributors(attributes: Mapping[str, str]) -> Tuple[Person, ...]:
    contributors: List[Person] = []
    position = 2
    while attributes.get(f"author_{position}"):
        contributors.append(
            Person(
                name=attributes[f"author_{position}"],
                email=attributes.get(f"email_{position}") or None,
            )
        )
        position += 1
    return tuple(contributors)


__all__ = [
    "DocumentBatch",
    "build_document",
    "build_documents",
    "build_documents_sync",
    "page_author",
    "page_contributors",
]
