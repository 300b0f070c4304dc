"""Shared test fixtures."""

from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo global logging configuration (e.g. from CLI runs) between tests."""
    yield
    structlog.reset_defaults()
