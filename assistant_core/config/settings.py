"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。

嵌套字段使用双下划线分隔的环境变量覆盖，例如：
- AI__PROVIDER=anthropic
- AI__API_KEY=sk-...
- EMAIL__ENABLED=true
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("ASSISTANT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class AISettings(BaseModel):
    """当前启用的 LLM Provider 配置。"""

    provider: Optional[str] = Field(default=None, description="anthropic 或 openrouter")
    api_key: Optional[str] = Field(default=None, description="当前 Provider 的 API 密钥")
    model: str = Field(default="claude-sonnet-4-5", description="厂商模型 ID")
    max_tokens: int = Field(default=4096, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, description="基础系统提示词")

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v


class EmailSettings(BaseModel):
    enabled: bool = False


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    ai: AISettings = Field(default_factory=AISettings)
    # 各 Provider 的备用密钥，ai.api_key 为空时按 provider 名称查找
    api_keys: Dict[str, str] = Field(default_factory=dict)
    email: EmailSettings = Field(default_factory=EmailSettings)
    tools_enabled_override: Optional[bool] = Field(
        default=None,
        alias="tools_enabled",
        description="显式开关工具调用；为空时沿用 email.enabled",
    )

    max_context_messages: int = Field(default=20, ge=1, le=200, description="每个会话保留的最大消息数")
    max_tool_rounds: int = Field(default=10, ge=1, le=50, description="单轮对话内工具调用最大轮数")
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP 超时时间（秒）")

    anthropic_base_url: str = Field(default="https://api.anthropic.com/v1")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1")
    openrouter_referer: Optional[str] = Field(default=None, description="OpenRouter HTTP-Referer 头")
    openrouter_title: Optional[str] = Field(default=None, description="OpenRouter X-Title 头")

    memory_dir: Optional[str] = Field(default=None, description="soul.md / user.md / tools.md 所在目录")
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )

    def tools_enabled(self) -> bool:
        """是否向模型暴露工具。

        未显式配置 tools_enabled 时沿用旧行为：只有 email.enabled 为 True 才开启。
        """
        if self.tools_enabled_override is not None:
            return self.tools_enabled_override
        return self.email.enabled is True

    def resolve_api_key(self, provider: str) -> Optional[str]:
        return self.ai.api_key or self.api_keys.get(provider)


def load_config(**overrides: Any) -> Settings:
    """重新读取全部配置源并返回新的 Settings 实例。"""
    return Settings(**overrides)


settings = load_config()
