"""Tests for environment-driven configuration."""

import importlib

import pytest

import collector.config as cfg


@pytest.fixture
def reload_config(monkeypatch):
    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(cfg)

    yield _reload
    monkeypatch.undo()
    importlib.reload(cfg)


class TestParseBool:

    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", "on", True])
    def test_true(self, value):
        assert cfg.parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "off", False])
    def test_false(self, value):
        assert cfg.parse_bool(value, True) is False

    def test_default_for_missing(self):
        assert cfg.parse_bool(None, True) is True
        assert cfg.parse_bool("  ", True) is True


class TestContexts:

    def test_source_context_defaults(self, reload_config):
        config = reload_config()
        context = config.source_context()
        assert context["cookie.id"] == "uuid_tt_dd"
        assert context["session.id"] == "dc_session_id"
        assert context["cookie.path"] == "/"
        assert context["handler"] == "json"

    def test_source_context_from_env(self, reload_config):
        config = reload_config(
            COLLECTOR_COOKIE_DOMAIN=".example.com",
            COLLECTOR_WRITE_COOKIE="false",
            COLLECTOR_VALIDATE_HEADERS="page,action",
        )
        context = config.source_context()
        assert context["cookie.domain"] == ".example.com"
        assert context["write.cookie"] == "false"
        assert context["validate.headers"] == "page,action"

    def test_serializer_context_omits_blank_columns(self, reload_config):
        config = reload_config(COLLECTOR_SERIALIZER_COLUMNS="  ")
        assert "columns" not in config.serializer_context()

    def test_serializer_context_from_env(self, reload_config):
        config = reload_config(
            COLLECTOR_SERIALIZER_FORMAT="CSV",
            COLLECTOR_SERIALIZER_COLUMNS="page action",
            COLLECTOR_SERIALIZER_DELIMITER=",",
        )
        context = config.serializer_context()
        assert context["format"] == "CSV"
        assert context["columns"] == "page action"
        assert context["delimiter"] == ","
