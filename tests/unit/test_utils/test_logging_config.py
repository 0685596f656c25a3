"""Tests for logging configuration."""

from authgate.config import Settings
from authgate.utils.logging import get_logging_config


def make_settings(**overrides):
    values = {"jwt_access_secret": "a-secret", "jwt_refresh_secret": "r-secret"}
    values.update(overrides)
    return Settings(**values)


def test_console_only_without_log_file():
    config = get_logging_config(make_settings(log_file=None))

    assert set(config["handlers"]) == {"console"}
    assert config["loggers"]["authgate"]["handlers"] == ["console"]


def test_rotating_files_with_log_file(tmp_path):
    log_file = tmp_path / "logs" / "authgate.log"

    config = get_logging_config(make_settings(log_file=str(log_file)))

    assert config["handlers"]["file"]["filename"] == str(log_file)
    assert config["handlers"]["file"]["maxBytes"] == 10 * 1024 * 1024
    assert config["handlers"]["celery_file"]["filename"] == str(tmp_path / "logs" / "celery.log")
    assert config["loggers"]["celery"]["handlers"] == ["console", "celery_file"]


def test_formatter_follows_log_format():
    json_config = get_logging_config(make_settings(log_file=None, log_format="json"))
    text_config = get_logging_config(make_settings(log_file=None, log_format="text"))

    assert json_config["handlers"]["console"]["formatter"] == "json"
    assert json_config["formatters"]["json"]["class"] == "pythonjsonlogger.json.JsonFormatter"
    assert text_config["handlers"]["console"]["formatter"] == "standard"
    assert json_config["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
