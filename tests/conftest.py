"""Test configuration for collector tests."""

import pytest

import collector.config as cfg


# Configure pytest-asyncio markers
def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")


@pytest.fixture(autouse=True)
def memory_channel_only(monkeypatch, tmp_path):
    """Keep tests from writing to the real sink or log directory."""
    monkeypatch.setattr(cfg, "CHANNEL", "memory")
    monkeypatch.setattr(cfg, "SINK_PATH", tmp_path / "events.log")
    monkeypatch.setattr(cfg, "LOG_DIR", tmp_path / "logs")
