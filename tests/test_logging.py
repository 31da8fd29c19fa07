"""Tests for structlog configuration."""

import logging

import structlog

from travelguide import logging as tg_logging


class TestConfigureLogging:
    def test_console_renderer_in_development(self, monkeypatch) -> None:
        monkeypatch.setattr(tg_logging.settings, "ENV", "development")
        tg_logging.configure_logging()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_json_renderer_outside_development(self, monkeypatch) -> None:
        monkeypatch.setattr(tg_logging.settings, "ENV", "production")
        tg_logging.configure_logging()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_pyttsx3_logger_is_quietened(self) -> None:
        tg_logging.configure_logging()
        assert logging.getLogger("pyttsx3").level == logging.WARNING

    def teardown_method(self) -> None:
        structlog.reset_defaults()
