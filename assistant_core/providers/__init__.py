"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 端点配置 (registry)。
- 提供各厂商的具体实现 (anthropic_client、openrouter_client)。
"""

from typing import Optional

from assistant_core.config.settings import Settings, settings
from assistant_core.domain.exceptions import ConfigurationError
from assistant_core.providers.base import ProviderClient
from assistant_core.providers.anthropic_client import AnthropicClient
from assistant_core.providers.openrouter_client import OpenRouterClient
from assistant_core.providers.registry import get_provider_config


def create_provider(cfg: Optional[Settings] = None) -> ProviderClient:
    """根据 cfg.ai.provider 创建 Provider 实例，未配置或无法识别时抛出 ConfigurationError。"""

    cfg = cfg or settings
    try:
        provider_cfg = get_provider_config(cfg.ai.provider or "")
    except KeyError:
        raise ConfigurationError(provider=cfg.ai.provider) from None
    if provider_cfg.name == "anthropic":
        return AnthropicClient(cfg)
    return OpenRouterClient(cfg)