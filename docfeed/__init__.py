"""Atom feeds for documentation sites, selected by component, module and tag."""

__version__ = "0.1.0"
