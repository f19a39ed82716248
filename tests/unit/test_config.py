"""
Unit tests for client configuration.
"""

import pytest

from httpkit.config import ClientConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TIMEOUT", "CONNECT_TIMEOUT", "VERIFY_PEER", "USER_AGENT", "BASE_URI",
                 "ALLOW_SELF_SIGNED", "FOLLOW_LOCATION", "MAX_REDIRECTS", "HTTP_VERSION",
                 "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(f"HTTPKIT_{name}", raising=False)


class TestClientConfig:
    """Tests for ClientConfig."""

    def test_defaults(self):
        config = ClientConfig()
        assert config.user_agent == "httpkit/1.0"
        assert config.timeout == 30.0
        assert config.verify_peer is True
        assert config.log_level == "INFO"
        config.validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("HTTPKIT_TIMEOUT", "5")
        monkeypatch.setenv("HTTPKIT_VERIFY_PEER", "false")
        monkeypatch.setenv("HTTPKIT_HTTP_VERSION", "2")
        monkeypatch.setenv("HTTPKIT_LOG_LEVEL", "debug")
        monkeypatch.setenv("HTTPKIT_BASE_URI", "https://api.example.com")

        config = ClientConfig.from_env()
        assert config.timeout == 5.0
        assert config.verify_peer is False
        assert config.http_version == "2"
        assert config.log_level == "DEBUG"
        assert config.base_uri == "https://api.example.com"
        config.validate()

    def test_from_env_defaults(self):
        assert ClientConfig.from_env() == ClientConfig()

    @pytest.mark.parametrize("changes", [
        {"timeout": 0},
        {"connect_timeout": -1},
        {"max_redirects": -1},
        {"http_version": "3"},
        {"log_level": "LOUD"},
        {"log_format": "xml"},
        {"base_uri": "ftp://example.com"},
    ])
    def test_validate_rejects(self, changes):
        with pytest.raises(ValueError):
            ClientConfig(**changes).validate()

    def test_to_client_options(self):
        options = ClientConfig(timeout=None, http_version="1.1").to_client_options()
        assert options["user_agent"] == "httpkit/1.0"
        assert options["http_version"] == "1.1"
        assert options["log_format"] == "text"
        assert "timeout" not in options
        assert "base_uri" not in options
