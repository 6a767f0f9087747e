"""Tests for settings and logging setup."""

import logging

import pytest
from fastapi.testclient import TestClient

import main
from core.config import DEFAULT_HMAC_SECRET, DEFAULT_TOKEN_VALIDITY_SECONDS, Settings
from core.logger import get_logger, level_name, setup_logging


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in ["HMAC_SECRET", "ALLOW_DEFAULT_SECRET", "TOKEN_VALIDITY_SECONDS", "ORIGIN_URL"]:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.hmac_secret is None
    assert settings.token_validity_seconds == DEFAULT_TOKEN_VALIDITY_SECONDS
    assert settings.function_id_param == "function_id"
    assert settings.login_function_id == "APPS_LOGIN_DEFAULT"
    assert settings.token_param == "oait"
    assert settings.token_layout == "auto"
    assert settings.access_cookie_name == "CF_Authorization"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("HMAC_SECRET", "from-env")
    monkeypatch.setenv("TOKEN_VALIDITY_SECONDS", "12.5")
    monkeypatch.setenv("ORIGIN_URL", "http://backend:9000")

    settings = Settings(_env_file=None)

    assert settings.resolve_secret() == "from-env"
    assert settings.token_validity_seconds == 12.5
    assert settings.origin_url == "http://backend:9000"


def test_unparseable_validity_falls_back_to_default(monkeypatch) -> None:
    monkeypatch.setenv("TOKEN_VALIDITY_SECONDS", "five minutes")

    assert Settings(_env_file=None).token_validity_seconds == DEFAULT_TOKEN_VALIDITY_SECONDS


@pytest.mark.parametrize("value", ["nan", "inf", "-inf", "Infinity"])
def test_non_finite_validity_falls_back_to_default(monkeypatch, caplog, value: str) -> None:
    caplog.set_level(logging.WARNING, logger="core.config")
    monkeypatch.setenv("TOKEN_VALIDITY_SECONDS", value)

    settings = Settings(_env_file=None)

    assert settings.token_validity_seconds == DEFAULT_TOKEN_VALIDITY_SECONDS
    assert "Invalid TOKEN_VALIDITY_SECONDS" in caplog.text


def test_non_finite_validity_passed_directly_falls_back() -> None:
    assert Settings(_env_file=None, token_validity_seconds=float("inf")).token_validity_seconds == (
        DEFAULT_TOKEN_VALIDITY_SECONDS
    )


def test_resolve_secret_fails_closed() -> None:
    assert Settings(_env_file=None).resolve_secret() == ""
    assert Settings(_env_file=None, hmac_secret="").resolve_secret() == ""
    assert Settings(_env_file=None, hmac_secret="", allow_default_secret=True).resolve_secret() == ""


def test_resolve_secret_default_only_when_allowed(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="core.config")

    settings = Settings(_env_file=None, allow_default_secret=True)

    assert settings.resolve_secret() == DEFAULT_HMAC_SECRET
    assert "No HMAC_SECRET set" in caplog.text


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    previous_level = root.level
    previous_handlers = root.handlers[:]
    yield root
    root.handlers[:] = previous_handlers
    root.setLevel(previous_level)


def test_setup_logging_levels(restore_root_logger) -> None:
    root = restore_root_logger

    assert setup_logging("debug") == logging.DEBUG
    assert root.level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING

    assert setup_logging("bogus") == logging.INFO
    assert root.level == logging.INFO


def test_level_name() -> None:
    assert level_name(True) == "DEBUG"
    assert level_name(False) == "INFO"


def test_startup_applies_debug_setting(monkeypatch, restore_root_logger) -> None:
    monkeypatch.setattr(main, "get_settings", lambda: Settings(_env_file=None, hmac_secret="s", debug=True))

    with TestClient(main.app):
        assert restore_root_logger.level == logging.DEBUG


def test_get_logger_returns_named_logger() -> None:
    assert get_logger("gatekeeper.test").name == "gatekeeper.test"
