"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from jecnaproxy.config import ProxyConfig

_ENV_VARS = (
    "PORT",
    "BIND_HOST",
    "BASE_URL",
    "DISABLE_WARNING",
    "MODE",
    "UPSTREAM_TIMEOUT",
    "LOG_LEVEL",
    "LOG_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_defaults(self):
        config = ProxyConfig()
        assert config.port == 3000
        assert config.bind_host == "0.0.0.0"
        assert config.base_url is None
        assert config.disable_warning is False
        assert config.banner_enabled is True
        assert config.mode == ""
        assert config.upstream_timeout is None


class TestEnvironment:
    def test_bind_host_from_env(self, monkeypatch):
        monkeypatch.setenv("BIND_HOST", "127.0.0.1")
        assert ProxyConfig().bind_host == "127.0.0.1"

    def test_port_from_env(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert ProxyConfig().port == 8080

    def test_invalid_port_rejected(self, monkeypatch):
        monkeypatch.setenv("PORT", "not-a-port")
        with pytest.raises(ValidationError):
            ProxyConfig()

    def test_out_of_range_port_rejected(self, monkeypatch):
        monkeypatch.setenv("PORT", "70000")
        with pytest.raises(ValidationError):
            ProxyConfig()

    def test_base_url_from_env(self, monkeypatch):
        monkeypatch.setenv("BASE_URL", "https://mirror.example/")
        assert ProxyConfig().base_url == "https://mirror.example/"

    def test_empty_base_url_is_unset(self, monkeypatch):
        monkeypatch.setenv("BASE_URL", "")
        assert ProxyConfig().base_url is None

    def test_mode_from_env(self, monkeypatch):
        monkeypatch.setenv("MODE", "jidelna")
        assert ProxyConfig().mode == "jidelna"

    def test_upstream_timeout(self, monkeypatch):
        monkeypatch.setenv("UPSTREAM_TIMEOUT", "12.5")
        assert ProxyConfig().upstream_timeout == 12.5

    def test_empty_upstream_timeout_is_unset(self, monkeypatch):
        monkeypatch.setenv("UPSTREAM_TIMEOUT", "")
        assert ProxyConfig().upstream_timeout is None

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert ProxyConfig().log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        with pytest.raises(ValidationError):
            ProxyConfig()


class TestDisableWarning:
    @pytest.mark.parametrize("value", ["true", "1"])
    def test_enabling_values(self, monkeypatch, value):
        monkeypatch.setenv("DISABLE_WARNING", value)
        config = ProxyConfig()
        assert config.disable_warning is True
        assert config.banner_enabled is False

    @pytest.mark.parametrize("value", ["false", "0", "yes", "TRUE", ""])
    def test_other_values_keep_banner(self, monkeypatch, value):
        monkeypatch.setenv("DISABLE_WARNING", value)
        assert ProxyConfig().disable_warning is False


class TestImmutability:
    def test_frozen(self):
        config = ProxyConfig()
        with pytest.raises(ValidationError):
            config.port = 9999

    def test_init_overrides_env(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert ProxyConfig(port=9090).port == 9090
