"""Base class for document sources."""

from abc import ABC, abstractmethod
from typing import Sequence

from ..models import ComponentEntry, RawDocument


class DocumentSource(ABC):
    """Contract for collaborators that supply components and pages for one cycle."""

    @abstractmethod
    def get_components(self) -> Sequence[ComponentEntry]:
        """Return the component registry snapshot."""

    @abstractmethod
    def get_documents(self) -> Sequence[RawDocument]:
        """Return every publishable page, in source order."""
