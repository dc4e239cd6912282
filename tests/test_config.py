"""
Tests for the configuration snapshot.
"""

from config import DEFAULT_GEMINI_MODEL, DEFAULT_OPENROUTER_MODEL, _parse_origins, load_settings

ENV_VARS = [
    "OPENROUTER_API_KEY", "OPENROUTER_MODEL", "GEMINI_API_KEY", "GEMINI_MODEL",
    "HF_TOKEN", "HF_MODEL", "HF_BASE_URL", "LIBRETRANSLATE_URL", "JWT_SECRET",
]


def _clear(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:

    def test_defaults(self, monkeypatch):
        _clear(monkeypatch)
        settings = load_settings()
        assert settings.openrouter.api_key == ""
        assert settings.openrouter.model == DEFAULT_OPENROUTER_MODEL
        assert settings.gemini.model == DEFAULT_GEMINI_MODEL
        assert settings.translation_timeout == 15.0

    def test_reads_environment_once(self, monkeypatch):
        _clear(monkeypatch)
        monkeypatch.setenv("GEMINI_API_KEY", "  gm-key  ")
        settings = load_settings()
        monkeypatch.setenv("GEMINI_API_KEY", "changed")
        assert settings.gemini.api_key == "gm-key"

    def test_cors_origins_come_from_module_setting(self, monkeypatch):
        _clear(monkeypatch)
        assert _parse_origins(" https://a.test , ,https://b.test ") == ["https://a.test", "https://b.test"]
        assert _parse_origins("") == ["*"]
        assert not hasattr(load_settings(), "cors_origins")
