"""Tests for Settings and load_settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from bootstrap_server.config import Settings, load_settings
from bootstrap_server.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("PORT", "NODE_ENV", "RATE_LIMIT_MAX", "BODY_LIMIT_BYTES"):
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the way
    monkeypatch.chdir(tmp_path)


class TestSettings:
    def test_reads_port_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "5000")
        assert load_settings().port == 5000

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "5000")
        settings = load_settings()
        assert settings.node_env == "production"
        assert settings.rate_limit_window_seconds == 900
        assert settings.rate_limit_max == 100
        assert settings.body_limit_bytes == 10240
        assert settings.cors_origin == "*"
        assert settings.trust_proxy_header is None

    def test_development_is_diagnostic(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "5000")
        monkeypatch.setenv("NODE_ENV", "development")
        settings = load_settings()
        assert settings.diagnostic is True
        assert settings.mode == "development"

    @pytest.mark.parametrize("env", ["production", "test", "staging", ""])
    def test_other_modes_are_not_diagnostic(self, env: str) -> None:
        assert Settings(port=1, node_env=env, _env_file=None).diagnostic is False

    def test_reads_dotenv_file(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("PORT=7000\nRATE_LIMIT_MAX=5\n")
        settings = load_settings()
        assert settings.port == 7000
        assert settings.rate_limit_max == 5


class TestLoadSettingsErrors:
    def test_missing_port(self) -> None:
        with pytest.raises(ConfigurationError, match="Missing PORT"):
            load_settings()

    @pytest.mark.parametrize("value", ["abc", "0", "70000", "-1"])
    def test_invalid_port(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("PORT", value)
        with pytest.raises(ConfigurationError, match="Invalid PORT"):
            load_settings()

    def test_invalid_other_setting(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "5000")
        monkeypatch.setenv("BODY_LIMIT_BYTES", "0")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_settings()
