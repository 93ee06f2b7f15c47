"""
Shared fixtures for loader tests.
"""

from pathlib import Path

import pytest
from amd_loader import Loader
from amd_loader.testing import EventRecorder

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Root of the ported conformance fixtures."""
    return FIXTURES


@pytest.fixture
def loader() -> Loader:
    """Loader with no source fetcher."""
    return Loader()


@pytest.fixture
def recorder(loader: Loader) -> EventRecorder:
    """Event recorder attached to the ``loader`` fixture."""
    return EventRecorder(loader.events)
