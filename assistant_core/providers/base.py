"""Provider 抽象接口。

上层 ChatAgent 不直接依赖具体厂商的请求/响应结构，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（AnthropicClient、OpenRouterClient）。
- send: 将会话历史转成具体 API 请求并发出一次 HTTP POST，返回原始响应 JSON。
- normalize: 把原始响应解析为 TerminalText 或 ToolInvocations。
- tool_result_messages: 按厂商格式把工具结果包装成历史消息。

这样可以在不改 Agent 代码的前提下接入更多厂商。
"""

from typing import Any, Callable, Dict, List, Optional, Protocol

import httpx

from assistant_core.domain.exceptions import ApiError, InvalidResponseError, NetworkError
from assistant_core.domain.models import ChatMessage, Content, ImageAttachment, ProviderResponse
from assistant_core.tools.definitions import ToolResult


IsRegistered = Callable[[str], bool]


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。"""

    name: str

    def format_user_content(self, text: str, image: Optional[ImageAttachment] = None) -> Content:
        ...

    async def send(
        self,
        messages: List[ChatMessage],
        system_prompt: str,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        ...

    def normalize(self, data: Dict[str, Any], is_registered: IsRegistered) -> ProviderResponse:
        ...

    def tool_result_messages(self, results: List[ToolResult]) -> List[ChatMessage]:
        ...


async def post_json(
    label: str,
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
) -> Dict[str, Any]:
    """发送一次 JSON POST 请求，非 2xx 统一包装为 ApiError，不做重试。"""

    try:
        async with httpx.AsyncClient(timeout=timeout, trust_env=False) as client:
            resp = await client.post(url, json=payload, headers=headers)
    except httpx.RequestError as e:
        # 网络错误：DNS 失败、连接超时等
        raise NetworkError(code="NETWORK_ERROR", message=f"{label} request failed: {e}", provider=label) from e
    if not 200 <= resp.status_code < 300:
        raise ApiError(label, resp.status_code, resp.text)
    try:
        data = resp.json()
    except ValueError as e:
        raise InvalidResponseError(message="Invalid API response: body is not JSON", provider=label) from e
    if not isinstance(data, dict):
        raise InvalidResponseError(message="Invalid API response: expected a JSON object", provider=label)
    return data
