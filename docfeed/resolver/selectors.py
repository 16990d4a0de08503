"""Parsing for ``[[version@]component:]module:tag`` feed selectors."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from ..config import ConfigurationError

COLLAPSE = "*"
FAN_OUT = "{*}"
VERSION_SEPARATOR = "@"


@dataclass(frozen=True)
class Selector:
    """One parsed selector.

    ``version`` is ``None`` when the selector targets the component's latest
    version. ``qualified`` records whether the source text named the
    component, so rendering keeps the two- or three-part shape.
    """

    component: str
    module: str
    tag: str
    version: Optional[str] = None
    qualified: bool = True

    def with_component(self, component: str) -> "Selector":
        return replace(self, component=component)

    def with_module(self, module: str) -> "Selector":
        return replace(self, module=module)

    def with_tag(self, tag: str) -> "Selector":
        return replace(self, tag=tag)

    def narrow(self, field: str, value: str) -> "Selector":
        """Pin ``field`` (component, module or tag) to a concrete value."""
        if field not in ("component", "module", "tag"):
            raise ValueError(f"Unknown selector field {field!r}")
        return replace(self, **{field: value})

    def substitute(self, token: str, value: str) -> "Selector":
        """Replace a placeholder such as ``{module}`` in every field."""
        return replace(
            self,
            component=self.component.replace(token, value),
            module=self.module.replace(token, value),
            tag=self.tag.replace(token, value),
            version=None if self.version is None else self.version.replace(token, value),
        )

    def render(self) -> str:
        if not self.qualified:
            return f"{self.module}:{self.tag}"
        component = self.component
        if self.version is not None:
            component = f"{self.version}{VERSION_SEPARATOR}{component}"
        return f"{component}:{self.module}:{self.tag}"

    def __str__(self) -> str:
        return self.render()


def parse_selector(
    raw: str, owning_component: str, owning_version: Optional[str] = None
) -> Selector:
    """Parse ``raw`` relative to the feed's owning component and version.

    Two-part selectors (``module:tag``) bind to the owning component at the
    owning version; a bare component in a three-part selector means latest.
    """
    parts = raw.split(":")
    if len(parts) not in (2, 3) or not all(parts):
        raise ConfigurationError(f"Invalid selector {raw!r}: expected [component:]module:tag")

    if len(parts) == 2:
        module, tag = parts
        _reject_version_marker(raw, module, tag)
        return Selector(
            component=owning_component,
            module=module,
            tag=tag,
            version=owning_version,
            qualified=False,
        )

    component_part, module, tag = parts
    _reject_version_marker(raw, module, tag)
    version: Optional[str] = None
    component = component_part
    if VERSION_SEPARATOR in component_part:
        version, component = component_part.split(VERSION_SEPARATOR, 1)
        if not version or not component or VERSION_SEPARATOR in component:
            raise ConfigurationError(
                f"Invalid selector {raw!r}: component must be 'name' or 'version@name'"
            )
    return Selector(component=component, module=module, tag=tag, version=version)


def _reject_version_marker(raw: str, *fields: str) -> None:
    for value in fields:
        if VERSION_SEPARATOR in value:
            raise ConfigurationError(
                f"Invalid selector {raw!r}: only the component part may carry a version"
            )


__all__ = ["COLLAPSE", "FAN_OUT", "Selector", "parse_selector"]
