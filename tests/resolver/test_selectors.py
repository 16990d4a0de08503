"""Tests for docfeed.resolver.selectors."""

from __future__ import annotations

import pytest

from docfeed.config import ConfigurationError
from docfeed.resolver.selectors import Selector, parse_selector


def test_two_part_selector_binds_owning_component_and_version() -> None:
    selector = parse_selector("guide:news", "docs", "2.0")

    assert selector == Selector(component="docs", module="guide", tag="news", version="2.0", qualified=False)
    assert selector.render() == "guide:news"


def test_three_part_selector_without_version_targets_latest() -> None:
    selector = parse_selector("blog:posts:*", "docs", "2.0")

    assert selector.component == "blog"
    assert selector.version is None
    assert selector.render() == "blog:posts:*"


def test_version_qualified_component() -> None:
    selector = parse_selector("1.5@blog:posts:news", "docs")

    assert selector.component == "blog"
    assert selector.version == "1.5"
    assert selector.render() == "1.5@blog:posts:news"


def test_wildcards_are_kept_verbatim() -> None:
    selector = parse_selector("{*}:*:{*}", "docs")

    assert (selector.component, selector.module, selector.tag) == ("{*}", "*", "{*}")


@pytest.mark.parametrize(
    "raw",
    ["a:b:c:d", "tag", "", ":news", "guide:", "a::c", "@blog:guide:news", "1.0@:guide:news", "guide:new@s"],
)
def test_malformed_selectors_raise(raw: str) -> None:
    with pytest.raises(ConfigurationError):
        parse_selector(raw, "docs")


def test_with_helpers_keep_shape() -> None:
    selector = parse_selector("{*}:news", "docs", "1.0")

    assert selector.with_module("guide").render() == "guide:news"
    assert selector.with_tag("other").render() == "{*}:other"


def test_narrow_and_substitute_work_on_fields() -> None:
    selector = parse_selector("{*}:{component}-notes:t", "docs")

    narrowed = selector.substitute("{component}", "blog").narrow("component", "blog")

    assert (narrowed.component, narrowed.module, narrowed.tag) == ("blog", "blog-notes", "t")
    assert selector.narrow("tag", "v2:beta").tag == "v2:beta"
    with pytest.raises(ValueError):
        selector.narrow("version", "1.0")
