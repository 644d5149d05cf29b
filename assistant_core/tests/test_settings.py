import pytest

from assistant_core.config.settings import AISettings, EmailSettings, Settings, load_config


def test_defaults():
    cfg = Settings(ai=AISettings(provider="anthropic"))
    assert cfg.ai.max_tokens == 4096
    assert cfg.ai.temperature == 0.7
    assert cfg.ai.system_prompt == "You are a helpful AI assistant."
    assert cfg.max_context_messages == 20
    assert cfg.max_tool_rounds == 10


def test_tools_enabled_follows_email_unless_overridden():
    assert Settings(email=EmailSettings(enabled=True)).tools_enabled() is True
    assert Settings(email=EmailSettings(enabled=False)).tools_enabled() is False
    assert Settings(email=EmailSettings(enabled=False), tools_enabled=True).tools_enabled() is True
    assert Settings(email=EmailSettings(enabled=True), tools_enabled=False).tools_enabled() is False


def test_resolve_api_key_prefers_active_key():
    cfg = Settings(ai=AISettings(provider="openrouter", api_key="sk-or-0123456789"), api_keys={"openrouter": "sk-other"})
    assert cfg.resolve_api_key("openrouter") == "sk-or-0123456789"
    cfg.ai.api_key = None
    assert cfg.resolve_api_key("openrouter") == "sk-other"
    assert cfg.resolve_api_key("anthropic") is None


def test_short_api_key_rejected():
    with pytest.raises(ValueError):
        AISettings(provider="anthropic", api_key="short")


def test_yaml_config_file(monkeypatch, tmp_path):
    path = tmp_path / "assistant.yaml"
    path.write_text(
        "ai:\n  provider: openrouter\n  model: some/model\nemail:\n  enabled: true\nmax_tool_rounds: 3\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ASSISTANT_CONFIG_FILE", str(path))
    monkeypatch.delenv("AI__PROVIDER", raising=False)
    monkeypatch.delenv("MAX_TOOL_ROUNDS", raising=False)

    cfg = load_config()
    assert cfg.ai.provider == "openrouter"
    assert cfg.ai.model == "some/model"
    assert cfg.tools_enabled() is True
    assert cfg.max_tool_rounds == 3


def test_env_overrides_yaml(monkeypatch, tmp_path):
    path = tmp_path / "assistant.yaml"
    path.write_text("max_context_messages: 30\n", encoding="utf-8")
    monkeypatch.setenv("ASSISTANT_CONFIG_FILE", str(path))
    monkeypatch.setenv("MAX_CONTEXT_MESSAGES", "12")
    assert load_config().max_context_messages == 12
