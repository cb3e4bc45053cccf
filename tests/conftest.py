"""Pytest configuration and fixtures for browser-vcr tests."""

from pathlib import Path

import pytest
import structlog
from structlog.testing import LogCapture

from browser_vcr.config import VcrSettings, get_settings
from browser_vcr.store import CassetteStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: Integration tests driving a real headless browser")
    config.addinivalue_line("markers", "slow: Tests that take longer to run")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def log_events():
    """Structlog event dicts emitted during the test, after contextvars are merged."""
    capture = LogCapture()
    structlog.reset_defaults()
    structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
    yield capture.entries
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep BROWSER_VCR_* from the developer's shell out of the tests."""
    import os

    for var in list(os.environ.keys()):
        if var.startswith("BROWSER_VCR_"):
            monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def cassettes_dir(tmp_path: Path) -> Path:
    return tmp_path / "cassettes"


@pytest.fixture
def store(cassettes_dir: Path) -> CassetteStore:
    return CassetteStore(cassettes_dir)


@pytest.fixture
def settings(cassettes_dir: Path) -> VcrSettings:
    return VcrSettings(cassettes_dir=str(cassettes_dir))


@pytest.fixture
def strict_settings(cassettes_dir: Path) -> VcrSettings:
    return VcrSettings(cassettes_dir=str(cassettes_dir), strict_playback=True)
