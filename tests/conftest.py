"""Shared pytest fixtures for workmode tests."""

import pytest

from tests.helpers import FakeClock
from workmode.core.documents import DocumentRegistry
from workmode.core.workspace import Workspace


@pytest.fixture
def workspace(tmp_path):
    """An empty workspace folder under tmp_path."""
    root = tmp_path / "project"
    root.mkdir()
    return Workspace(root)


@pytest.fixture
def registry():
    """An empty open-document registry."""
    return DocumentRegistry()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def launched(monkeypatch):
    """Record click.launch calls instead of opening applications."""
    calls: list[tuple[str, bool]] = []

    def fake_launch(url, wait=False, locate=False):
        calls.append((url, locate))
        return 0

    monkeypatch.setattr("workmode.core.launch.click.launch", fake_launch)
    return calls
