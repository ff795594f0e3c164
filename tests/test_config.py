import json
import logging
import sys

import pytest
import structlog

from config import DEFAULT_DATABASE_URL, Settings
from logger import build_formatter, setup_logging


ENV_VARS = (
    "DATABASE_URL", "DB_ECHO", "SERVER_HOST", "SERVER_PORT",
    "LOG_LEVEL", "LOG_FORMAT", "TX_TIMEOUT", "BULK_TX_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so monkeypatch restores whatever load_dotenv writes
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path / "missing.env"


def test_defaults(clean_env):
    settings = Settings.from_env(str(clean_env))

    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.server_port == 8080
    assert settings.tx_timeout == 5.0
    assert settings.bulk_tx_timeout == 10.0
    assert settings.log_format == "text"
    assert not settings.is_sqlite


def test_reads_environment(clean_env, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./local.db")
    monkeypatch.setenv("SERVER_PORT", "9000")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "JSON")
    monkeypatch.setenv("TX_TIMEOUT", "2.5")
    monkeypatch.setenv("DB_ECHO", "true")

    settings = Settings.from_env(str(clean_env))

    assert settings.is_sqlite
    assert settings.server_port == 9000
    assert settings.log_level == "DEBUG"
    assert settings.log_format == "json"
    assert settings.tx_timeout == 2.5
    assert settings.db_echo is True


def test_reads_dotenv_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("SERVER_PORT=8181\nBULK_TX_TIMEOUT=30\n")

    settings = Settings.from_env(str(env_file))

    assert settings.server_port == 8181
    assert settings.bulk_tx_timeout == 30.0


@pytest.mark.parametrize("name,value", [
    ("SERVER_PORT", "0"),
    ("LOG_FORMAT", "xml"),
    ("TX_TIMEOUT", "0"),
    ("BULK_TX_TIMEOUT", "-1"),
])
def test_rejects_invalid_values(clean_env, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        Settings.from_env(str(clean_env))


def test_formatters_include_extra_fields():
    record = logging.LogRecord("svc", logging.INFO, __file__, 1, "PR merged", (), None)
    record.pr_id = "pr-1"

    payload = json.loads(build_formatter("json").format(record))
    assert payload["event"] == "PR merged"
    assert payload["pr_id"] == "pr-1"
    assert payload["level"] == "info"
    assert payload["logger"] == "svc"

    line = build_formatter("text").format(record)
    assert "PR merged" in line
    assert "pr_id=pr-1" in line


def test_json_formatter_renders_exceptions():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord("svc", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    payload = json.loads(build_formatter("json").format(record))
    assert "RuntimeError: boom" in payload["exception"]


def test_setup_logging_replaces_handlers():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("DEBUG", "json")
        setup_logging("DEBUG", "json")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        structlog.reset_defaults()
