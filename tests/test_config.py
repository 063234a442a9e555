"""Tests for environment-driven client settings."""

import pytest

from vortex_client import Vortex, VortexSettings
from vortex_client.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT


API_KEY = "VRTX.AAAAAAAAAAAAAAAAAAAAAA.secret123"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("VORTEX_API_KEY", "VORTEX_BASE_URL", "VORTEX_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


class TestVortexSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VORTEX_API_KEY", API_KEY)
        settings = VortexSettings()
        assert settings.api_key == API_KEY
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.timeout == DEFAULT_TIMEOUT

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VORTEX_API_KEY", API_KEY)
        monkeypatch.setenv("VORTEX_BASE_URL", "https://staging.api.test/api/v1")
        monkeypatch.setenv("VORTEX_TIMEOUT", "2.5")
        settings = VortexSettings()
        assert settings.base_url == "https://staging.api.test/api/v1"
        assert settings.timeout == 2.5

    def test_dotenv_file(self, tmp_path) -> None:
        (tmp_path / ".env").write_text(f"VORTEX_API_KEY={API_KEY}\n")
        assert VortexSettings().api_key == API_KEY

    def test_api_key_required(self) -> None:
        with pytest.raises(ValueError):
            VortexSettings()

    def test_client_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VORTEX_API_KEY", API_KEY)
        monkeypatch.setenv("VORTEX_BASE_URL", "https://staging.api.test/api/v1/")
        client = Vortex.from_settings()
        assert client.base_url == "https://staging.api.test/api/v1"
