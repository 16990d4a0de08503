from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.content_builder import ContentBuilder


@pytest.fixture
def content_builder(tmp_path: Path) -> ContentBuilder:
    """Provide a reusable content tree builder rooted at the pytest tmp_path."""
    return ContentBuilder(tmp_path)
