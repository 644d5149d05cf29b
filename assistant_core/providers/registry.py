"""Provider 端点配置。

每个 Provider 的名称、错误信息中使用的显示名、默认 base_url 与请求路径集中在这里，
base_url 可以通过 Settings 覆盖（例如指向本地代理或测试服务器）。
"""

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    label: str
    base_url: str
    endpoint: str


ANTHROPIC_CONFIG = ProviderConfig(
    name="anthropic",
    label="Anthropic",
    base_url="https://api.anthropic.com/v1",
    endpoint="/messages",
)

OPENROUTER_CONFIG = ProviderConfig(
    name="openrouter",
    label="OpenRouter",
    base_url="https://openrouter.ai/api/v1",
    endpoint="/chat/completions",
)

ANTHROPIC_VERSION = "2023-06-01"


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "anthropic": ANTHROPIC_CONFIG,
    "openrouter": OPENROUTER_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = (name or "").lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
