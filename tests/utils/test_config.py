"""Tests for configuration loading."""

import pytest

from kaska.utils.config import Config, get_config, reset_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("KASKA_HOST", "KASKA_PORT", "KASKA_SERVICE_NAME",
                 "KASKA_REQUEST_TIMEOUT_MS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


class TestConfig:
    """Test Config."""

    def test_defaults(self):
        config = Config()

        assert config.get("broker.service_name") == "KaskaSrv"
        assert config.get("broker.port") == 1099
        assert config.get("client.request_timeout_ms") == 30000
        assert config.get("logging.format") == "json"

    def test_missing_key(self):
        config = Config()

        assert config.get("broker.nothing") is None
        assert config.get("broker.nothing", 5) == 5
        assert config.get("broker.port.deeper") is None

    def test_file_overrides_defaults(self, tmp_path):
        config_file = tmp_path / "broker.yaml"
        config_file.write_text("broker:\n  port: 2000\nlogging:\n  level: DEBUG\n")

        config = Config(str(config_file))

        assert config.get("broker.port") == 2000
        assert config.get("broker.host") == "localhost"
        assert config.get("logging.level") == "DEBUG"

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert Config(str(config_file)).get("broker.port") == 1099

    def test_env_overrides(self, monkeypatch, tmp_path):
        config_file = tmp_path / "broker.yaml"
        config_file.write_text("broker:\n  port: 2000\n")
        monkeypatch.setenv("KASKA_PORT", "3000")
        monkeypatch.setenv("KASKA_HOST", "0.0.0.0")
        monkeypatch.setenv("KASKA_SERVICE_NAME", "Other")
        monkeypatch.setenv("KASKA_REQUEST_TIMEOUT_MS", "750")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        config = Config(str(config_file))

        assert config.get("broker.port") == 3000
        assert config.get("broker.host") == "0.0.0.0"
        assert config.get("broker.service_name") == "Other"
        assert config.get("client.request_timeout_ms") == 750
        assert config.get("logging.level") == "WARNING"

    def test_set(self):
        config = Config()

        config.set("client.extra.flag", True)

        assert config.get("client.extra.flag") is True
        assert config.get("client.request_timeout_ms") == 30000

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            Config(str(tmp_path / "nope.yaml"))

    def test_global_instance(self):
        assert get_config() is get_config()

        reset_config()

        assert get_config() is not None
