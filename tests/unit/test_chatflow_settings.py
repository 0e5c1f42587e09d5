"""Testes de validação das Settings."""

from __future__ import annotations

import contextlib
import logging

import pytest

from chatflow.application.factories.widget_factory import configure_runtime
from chatflow.config.settings import Settings, get_settings


class TestValidateFlowConfig:
    def test_defaults_are_valid(self):
        assert Settings(environment="development").validate_all() == []

    def test_negative_delay(self):
        errors = Settings(auto_reply_delay_seconds=-1).validate_flow_config()

        assert any("AUTO_REPLY_DELAY_SECONDS" in e for e in errors)

    def test_blank_default_texts(self):
        settings = Settings(default_auto_reply_text=" ", default_handoff_text="")

        assert len(settings.validate_flow_config()) == 2


class TestValidateBackends:
    def test_redis_requires_url(self):
        errors = Settings(session_store_backend="redis").validate_local_state_backends()

        assert errors == ["SESSION_STORE_BACKEND=redis requer REDIS_URL configurado"]

    def test_unknown_local_backend(self):
        errors = Settings(navigation_store_backend="cookie").validate_local_state_backends()

        assert len(errors) == 1
        assert "cookie" in errors[0]

    def test_memory_data_backend_rejected_in_production(self):
        errors = Settings(environment="prod", data_backend="memory").validate_data_backend()

        assert errors == ["DATA_BACKEND=memory é proibido em staging/production"]

    def test_firestore_requires_project(self):
        errors = Settings(data_backend="firestore").validate_data_backend()

        assert any("FIRESTORE_PROJECT_ID" in e for e in errors)

    def test_firestore_in_production_is_valid(self):
        settings = Settings(
            environment="production", data_backend="firestore", firestore_project_id="proj"
        )

        assert settings.validate_data_backend() == []


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("AUTO_REPLY_DELAY_SECONDS", "0.25")
    monkeypatch.setenv("DATA_BACKEND", "firestore")

    settings = get_settings()

    assert settings.auto_reply_delay_seconds == 0.25
    assert settings.data_backend == "firestore"
    assert get_settings() is settings


@contextlib.contextmanager
def _preserved_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        yield root
    finally:
        root.handlers = handlers
        root.setLevel(level)


class TestConfigureRuntime:
    def test_invalid_configuration_is_rejected(self):
        settings = Settings(environment="production", data_backend="memory")

        with _preserved_root_logger(), pytest.raises(ValueError, match="Configuração inválida"):
            configure_runtime(settings)

    def test_valid_configuration_installs_handler(self):
        settings = Settings(environment="test", log_level="DEBUG", log_format="text")

        with _preserved_root_logger() as root:
            assert configure_runtime(settings) is settings
            assert len(root.handlers) == 1
            assert root.level == logging.DEBUG
