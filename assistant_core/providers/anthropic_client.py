"""Anthropic Messages API 适配器（内容块风格）。

- URL: {base_url}/messages
- 认证: x-api-key: <api_key>，并固定 anthropic-version 头。

响应的 content 是类型化块列表（text / tool_use）。任意一个指向已注册工具的
tool_use 块即视为工具调用；工具结果以 tool_result 块的形式放在 user 消息里回传。
"""

from typing import Any, Dict, List, Optional

from assistant_core.config.settings import Settings, settings
from assistant_core.domain.exceptions import ValidationError
from assistant_core.domain.models import (
    ChatMessage,
    Content,
    ImageAttachment,
    ProviderResponse,
    TerminalText,
    ToolInvocations,
)
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.providers.base import IsRegistered, post_json
from assistant_core.providers.registry import ANTHROPIC_CONFIG, ANTHROPIC_VERSION
from assistant_core.tools.definitions import ToolCall, ToolResult


class AnthropicClient:
    """Anthropic Provider 客户端实现。"""

    name = "anthropic"

    def __init__(self, cfg: Settings = settings):
        self._settings = cfg

    def format_user_content(self, text: str, image: Optional[ImageAttachment] = None) -> Content:
        if image is None:
            return text or ""
        blocks: List[Dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.mime_type,
                    "data": image.base64,
                },
            }
        ]
        if text:
            blocks.append({"type": "text", "text": text})
        return blocks

    async def send(
        self,
        messages: List[ChatMessage],
        system_prompt: str,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        api_key = self._settings.resolve_api_key(self.name)
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message="Anthropic API key not set")
        payload = self._build_payload(messages, system_prompt, tools)
        base = self._settings.anthropic_base_url or ANTHROPIC_CONFIG.base_url
        return await post_json(
            ANTHROPIC_CONFIG.label,
            f"{base}{ANTHROPIC_CONFIG.endpoint}",
            payload,
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            },
            timeout=self._settings.http_timeout,
        )

    def normalize(self, data: Dict[str, Any], is_registered: IsRegistered) -> ProviderResponse:
        content = data.get("content") or []
        kept: List[Dict[str, Any]] = []
        calls: List[ToolCall] = []
        for block in content:
            if block.get("type") == "tool_use":
                name = block.get("name") or ""
                if not is_registered(name):
                    # 未注册的工具无法执行，连同 tool_use 块一起丢弃，避免历史中出现无结果的调用
                    logger.warning("Dropped unknown tool_use", extra={"extra": {"tool_name": name}})
                    continue
                calls.append(
                    ToolCall(
                        id=block.get("id") or f"tool_use_{len(calls)}",
                        name=name,
                        arguments=block.get("input") or {},
                    )
                )
            kept.append(block)

        if not calls:
            text = next((b.get("text") or "" for b in content if b.get("type") == "text"), "")
            return TerminalText(text=text)
        return ToolInvocations(
            assistant_message=ChatMessage(role="assistant", content=kept),
            calls=calls,
        )

    def tool_result_messages(self, results: List[ToolResult]) -> List[ChatMessage]:
        blocks = [
            {
                "type": "tool_result",
                "tool_use_id": result.call_id,
                "content": result.content,
            }
            for result in results
        ]
        return [ChatMessage(role="user", content=blocks)]

    def _build_payload(
        self,
        messages: List[ChatMessage],
        system_prompt: str,
        tools: Optional[List[Dict[str, Any]]],
    ) -> Dict[str, Any]:
        ai = self._settings.ai
        payload: Dict[str, Any] = {
            "model": ai.model,
            "max_tokens": ai.max_tokens,
            "system": system_prompt,
            "messages": [self._message_to_payload(m) for m in messages],
        }
        if tools:
            payload["tools"] = tools
        return payload

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        return {"role": message.role, "content": message.content}
