"""Feed serializers."""

from .atom import AtomRenderer

__all__ = ["AtomRenderer"]
