"""Tests for docfeed.resolver.resolver."""

from __future__ import annotations

import pytest

from docfeed.config import ConfigurationError, FeedConfig
from docfeed.index import build_index
from docfeed.models import ComponentEntry
from docfeed.resolver import SelectorResolver, feed_url, finalize_documents
from tests._fixtures.doubles import make_document


def _resolver(documents, *entries: ComponentEntry) -> SelectorResolver:
    registry = list(entries) or [ComponentEntry(name="docs", versions=("1.0",), latest_version="1.0")]
    return SelectorResolver(build_index(documents, registry), registry)


def _feed(*tags: str, **overrides) -> FeedConfig:
    return FeedConfig(name=overrides.pop("name", "news"), tags=tags, **overrides)


def test_end_to_end_literal_and_collapsed_tag() -> None:
    tagged = make_document(tags=["news"], updated="2024-02-01")
    untagged = make_document(tags=[], updated="2024-01-01")
    resolver = _resolver([tagged, untagged])

    [literal] = resolver.resolve(_feed("guide:news"), "docs", "1.0")
    [collapsed] = resolver.resolve(_feed("guide:*"), "docs", "1.0")

    assert literal.documents == (tagged,)
    assert collapsed.documents == (tagged, untagged)


def test_document_reached_twice_appears_once() -> None:
    document = make_document(tags=["news", "release"])
    resolver = _resolver([document])

    [result] = resolver.resolve(_feed("guide:news", "guide:release", "guide:*"), "docs", "1.0")

    assert result.documents == (document,)


def test_repeated_tag_in_document_is_deduplicated() -> None:
    document = make_document(tags=["news", "news"])
    resolver = _resolver([document])

    [result] = resolver.resolve(_feed("guide:news"), "docs", "1.0")

    assert result.documents == (document,)


def test_ordering_and_truncation() -> None:
    oldest = make_document(tags=["news"], updated="2021-01-01")
    newest = make_document(tags=["news"], updated="2023-06-01")
    middle = make_document(tags=["news"], updated="2022-03-01")
    resolver = _resolver([oldest, newest, middle])

    [result] = resolver.resolve(_feed("guide:news", max_entries=2), "docs", "1.0")

    assert [document.updated for document in result.documents] == ["2023-06-01", "2022-03-01"]


def test_zero_max_entries_yields_empty_feed() -> None:
    resolver = _resolver([make_document(tags=["news"])])

    [result] = resolver.resolve(_feed("guide:news", max_entries=0), "docs", "1.0")

    assert result.documents == ()


def test_max_entries_larger_than_set_keeps_everything() -> None:
    documents = [make_document(tags=["news"], updated=f"2024-01-0{day}") for day in range(1, 4)]
    resolver = _resolver(documents)

    [result] = resolver.resolve(_feed("guide:news", max_entries=50), "docs", "1.0")

    assert result.documents == tuple(reversed(documents))


def test_resolution_is_idempotent() -> None:
    documents = [
        make_document(tags=["news"], updated="2024-01-01"),
        make_document(tags=["news", "release"], updated="2024-01-01"),
        make_document(module="api", tags=["news"], updated="2023-01-01"),
    ]
    resolver = _resolver(documents)
    template = _feed("*:news", "{*}:release")

    first = resolver.resolve(template, "docs", "1.0")
    second = resolver.resolve(template, "docs", "1.0")

    assert [(r.config, r.documents, r.url) for r in first] == [(r.config, r.documents, r.url) for r in second]


def test_module_fan_out_produces_one_template_per_module() -> None:
    resolver = _resolver(
        [make_document(module="a", tags=["tagX"]), make_document(module="b", tags=["other"])]
    )
    template = _feed("{*}:tagX", name="{module}-feed", title="Feed for {module}")

    results = resolver.resolve(template, "docs", "1.0")

    assert [result.config.tags for result in results] == [("a:tagX",), ("b:tagX",)]
    assert [result.config.name for result in results] == ["a-feed", "b-feed"]
    assert [result.config.title for result in results] == ["Feed for a", "Feed for b"]
    assert results[0].config.max_entries == template.max_entries
    assert len(results[0].documents) == 1
    assert results[1].documents == ()


def test_component_fan_out_substitutes_placeholders() -> None:
    docs_page = make_document(component="docs", tags=["news"])
    blog_page = make_document(component="blog", tags=["news"])
    registry = [
        ComponentEntry(name="docs", versions=("1.0",), latest_version="1.0"),
        ComponentEntry(name="blog", versions=("1.0",), latest_version="1.0"),
        ComponentEntry(name="hidden", versions=("1.0",), latest_version="1.0", enabled=False),
    ]
    resolver = _resolver([docs_page, blog_page], *registry)
    template = _feed(
        "{*}:guide:news",
        name="{component}",
        description="News from {component}",
        categories=("{component}",),
        copyright="{component} authors",
    )

    results = resolver.resolve(template, "docs", "1.0")

    assert [result.config.name for result in results] == ["docs", "blog"]
    assert [result.url for result in results] == ["/docs/1.0/docs.xml", "/docs/1.0/blog.xml"]
    assert results[0].documents == (docs_page,)
    assert results[1].documents == (blog_page,)
    assert results[1].config.description == "News from blog"
    assert results[1].config.categories == ("blog",)
    assert results[1].config.copyright == "{component} authors"


def test_tag_fan_out_skips_all_key_and_chains_with_module_fan_out() -> None:
    resolver = _resolver(
        [
            make_document(module="a", tags=["x", "y"]),
            make_document(module="b", tags=["y"]),
            make_document(module="b", tags=[]),
        ]
    )

    results = resolver.resolve(_feed("{*}:{*}", name="{module}-{tag}"), "docs", "1.0")

    assert [result.config.name for result in results] == ["a-x", "a-y", "b-y"]


def test_fan_out_discards_documents_from_earlier_selectors() -> None:
    resolver = _resolver([make_document(module="a", tags=["t"]), make_document(module="b", tags=["t"])])

    results = resolver.resolve(_feed("a:*", "{*}:t", name="{module}"), "docs", "1.0")

    assert [len(result.documents) for result in results] == [1, 2]
    assert [result.config.tags for result in results] == [("a:*", "a:t"), ("a:*", "b:t")]


def test_collapsed_component_unions_enabled_components() -> None:
    docs_page = make_document(component="docs", tags=["news"], updated="2024-01-02")
    blog_page = make_document(component="blog", tags=["news"], updated="2024-01-03")
    hidden_page = make_document(component="hidden", tags=["news"])
    registry = [
        ComponentEntry(name="docs", versions=("1.0",), latest_version="1.0"),
        ComponentEntry(name="blog", versions=("1.0",), latest_version="1.0"),
        ComponentEntry(name="hidden", versions=("1.0",), latest_version="1.0", enabled=False),
    ]
    resolver = _resolver([docs_page, blog_page, hidden_page], *registry)

    [result] = resolver.resolve(_feed("*:*:news"), "docs", "1.0")

    assert result.documents == (blog_page, docs_page)


def test_unknown_literals_contribute_nothing() -> None:
    document = make_document(tags=["news"])
    resolver = _resolver([document])

    [result] = resolver.resolve(
        _feed("ghost:guide:news", "docs:missing:news", "guide:missing", "guide:news"), "docs", "1.0"
    )

    assert result.documents == (document,)


def test_three_part_selector_uses_latest_or_pinned_version() -> None:
    old = make_document(version="1.0", tags=["news"])
    new = make_document(version="2.0", tags=["news"])
    registry = ComponentEntry(name="docs", versions=("1.0", "2.0"), latest_version="2.0")
    resolver = _resolver([old, new], registry)

    [latest] = resolver.resolve(_feed("docs:guide:news"), "docs", "1.0")
    [pinned] = resolver.resolve(_feed("1.0@docs:guide:news"), "docs", "2.0")
    [own_version] = resolver.resolve(_feed("guide:news"), "docs", "1.0")

    assert latest.documents == (new,)
    assert pinned.documents == (old,)
    assert own_version.documents == (old,)


def test_invalid_selector_fails_the_feed() -> None:
    resolver = _resolver([make_document(tags=["news"])])

    with pytest.raises(ConfigurationError):
        resolver.resolve(_feed("guide:news", "a:b:c:d"), "docs", "1.0")


def test_missing_name_fails_the_feed() -> None:
    resolver = _resolver([make_document(tags=["news"])])

    with pytest.raises(ConfigurationError):
        resolver.resolve(FeedConfig(tags=("guide:news",)), "docs", "1.0")


def test_fan_out_with_no_values_yields_no_feeds() -> None:
    resolver = _resolver([make_document(tags=["news"])])

    assert resolver.resolve(_feed("missing:{*}"), "docs", "1.0") == []


@pytest.mark.parametrize(
    ("component", "version", "expected"),
    [
        ("docs", "1.0", "/docs/1.0/news.xml"),
        ("docs", "", "/docs/news.xml"),
        ("ROOT", "2.0", "/2.0/news.xml"),
        ("ROOT", "", "/news.xml"),
    ],
)
def test_feed_url(component: str, version: str, expected: str) -> None:
    assert feed_url(component, version, "news") == expected


def test_finalize_keeps_newest_first_on_mixed_offsets() -> None:
    utc = make_document(updated="2024-01-01T10:00:00+00:00")
    ahead = make_document(updated="2024-01-01T11:00:00+02:00")

    assert finalize_documents([utc, ahead], 5) == (utc, ahead)


def test_tag_fan_out_keeps_tags_with_selector_characters() -> None:
    news = make_document(tags=["news"])
    team = make_document(tags=["team@acme"])
    beta = make_document(tags=["v2:beta"])
    resolver = _resolver([news, team, beta])

    results = resolver.resolve(_feed("guide:{*}", name="{tag}"), "docs", "1.0")

    assert [result.config.name for result in results] == ["news", "team@acme", "v2:beta"]
    assert [result.documents for result in results] == [(news,), (team,), (beta,)]


def test_resolve_requires_owning_version() -> None:
    resolver = _resolver([make_document(tags=["news"])])

    with pytest.raises(TypeError):
        resolver.resolve(_feed("guide:news"), "docs")  # type: ignore[call-arg]


def test_component_fan_out_substitutes_inside_its_own_selector() -> None:
    docs_notes = make_document(component="docs", module="docs-notes", tags=["t"])
    blog_notes = make_document(component="blog", module="blog-notes", tags=["t"])
    registry = [
        ComponentEntry(name="docs", versions=("1.0",), latest_version="1.0"),
        ComponentEntry(name="blog", versions=("1.0",), latest_version="1.0"),
    ]
    resolver = _resolver([docs_notes, blog_notes], *registry)

    results = resolver.resolve(_feed("{*}:{component}-notes:t", name="{component}"), "docs", "1.0")

    assert [result.config.tags for result in results] == [
        ("docs:docs-notes:t",),
        ("blog:blog-notes:t",),
    ]
    assert [result.documents for result in results] == [(docs_notes,), (blog_notes,)]
