import pytest
from pydantic import ValidationError

from companion_core.config.settings import CompanionSettings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for var in ("GEMINI_API_KEY", "API_KEY", "DEFAULT_PROVIDER", "CONTEXT_WINDOW_MESSAGES", "COMPANION_CONFIG_FILE", "HTTP_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    s = CompanionSettings()
    assert s.default_provider == "gemini"
    assert s.default_model == "companion-chat"
    assert s.context_window_messages == 5
    assert s.http_timeout == 30.0


def test_api_key_from_env_alias(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "k-0123456789")
    assert CompanionSettings().gemini_api_key == "k-0123456789"


def test_short_api_key_rejected():
    with pytest.raises(ValidationError):
        CompanionSettings(gemini_api_key="short")


def test_yaml_config_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CONTEXT_WINDOW_MESSAGES", raising=False)
    cfg = tmp_path / "companion.yaml"
    cfg.write_text("context_window_messages: 3\nlog_redact_content: true\n", encoding="utf-8")
    monkeypatch.setenv("COMPANION_CONFIG_FILE", str(cfg))
    s = CompanionSettings()
    assert s.context_window_messages == 3
    assert s.log_redact_content is True


def test_env_overrides_yaml(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    cfg = tmp_path / "config.yaml"
    cfg.write_text("http_timeout: 12\n", encoding="utf-8")
    monkeypatch.delenv("COMPANION_CONFIG_FILE", raising=False)
    monkeypatch.setenv("HTTP_TIMEOUT", "45")
    assert CompanionSettings().http_timeout == 45.0
