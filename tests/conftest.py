"""Pytest fixtures for tli tests."""

import io

import pytest
from rich.console import Console

from tli.config import TliConfig
from tli.history import HistoryStore
from tli.paths import TliPaths


class FakeTransport:
    """Transport that fails the first `failures` sends, then succeeds."""

    def __init__(self, failures: int = 0, error: Exception | None = None):
        self.failures = failures
        self.error = error or ConnectionError("connection refused")
        self.sent = []
        self.calls = 0

    def send(self, envelope):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        self.sent.append(envelope)


@pytest.fixture
def tli_home(tmp_path):
    """Create a temporary home directory for testing.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to temporary home directory
    """
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def tli_paths(tli_home):
    """TliPaths rooted at the temporary home."""
    return TliPaths(tli_home)


@pytest.fixture
def history_store(tli_paths):
    """HistoryStore writing to the temporary home's history file."""
    return HistoryStore(tli_paths.history_file)


@pytest.fixture
def tli_config():
    """A valid configuration pointing at fake addresses."""
    return TliConfig(
        smtp_host="smtp.example.com",
        smtp_port=587,
        avatar="Ada Lovelace",
        email_addr="ada@example.com",
        username="ada",
        password="secret",
        things_addr="add-to-things-abc@things.email",
    )


@pytest.fixture
def quiet_console():
    """Rich console writing to an in-memory buffer."""
    return Console(file=io.StringIO(), force_terminal=False, width=120)


@pytest.fixture
def make_transport():
    """Factory for FakeTransport instances."""
    return FakeTransport
