from __future__ import annotations

import pytest

from bpsites.config import reset_config
from bpsites.protocol.structures import Source


@pytest.fixture(autouse=True)
def _reset_config():
    """Each test starts and ends with the default process-wide configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def generated_source() -> Source:
    return Source(id="g1", url="http://example.com/bundle.js")


@pytest.fixture
def original_source() -> Source:
    return Source(id="g1/originalSource-abc", url="foo.src", is_original=True)
