"""Git-backed collaborators."""

from .timestamps import GitTimestampResolver, TimestampResolutionError, TimestampResolver

__all__ = ["GitTimestampResolver", "TimestampResolutionError", "TimestampResolver"]
