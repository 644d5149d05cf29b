"""OpenRouter Provider 适配器（Chat Completions 风格）。

接口与 OpenAI 一致：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

工具调用优先读取 message.tool_calls；没有原生调用时，再尝试从正文中解析
文本形式的调用（部分模型只会这样输出），解析成功后正文会去掉调用语法再写入历史。
"""

import json
from typing import Any, Dict, List, Optional

from assistant_core.config.settings import Settings, settings
from assistant_core.domain.exceptions import InvalidResponseError, ValidationError
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
from assistant_core.providers.registry import OPENROUTER_CONFIG
from assistant_core.tools.definitions import ToolCall, ToolResult
from assistant_core.tools.text_calls import extract_text_tool_calls, strip_text_tool_calls


class OpenRouterClient:
    """OpenRouter 提供方客户端实现。"""

    name = "openrouter"

    def __init__(self, cfg: Settings = settings):
        # Settings 里包含 base_url、api_key、超时等配置
        self._settings = cfg

    def format_user_content(self, text: str, image: Optional[ImageAttachment] = None) -> Content:
        if image is None:
            return text or ""
        blocks: List[Dict[str, Any]] = [
            {
                "type": "image_url",
                "image_url": {"url": f"data:{image.mime_type};base64,{image.base64}"},
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
            raise ValidationError(code="MISSING_API_KEY", message="OpenRouter API key not set")
        payload = self._build_payload(messages, system_prompt, tools)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        if self._settings.openrouter_referer:
            headers["HTTP-Referer"] = self._settings.openrouter_referer
        if self._settings.openrouter_title:
            headers["X-Title"] = self._settings.openrouter_title
        base = self._settings.openrouter_base_url or OPENROUTER_CONFIG.base_url
        return await post_json(
            OPENROUTER_CONFIG.label,
            f"{base}{OPENROUTER_CONFIG.endpoint}",
            payload,
            headers=headers,
            timeout=self._settings.http_timeout,
        )

    def normalize(self, data: Dict[str, Any], is_registered: IsRegistered) -> ProviderResponse:
        """将 OpenRouter 的原始响应 JSON 解析为 TerminalText 或 ToolInvocations。"""

        choices = data.get("choices")
        if not choices:
            raise InvalidResponseError(provider=self.name)
        message = choices[0].get("message") or {}
        content = self._content_text(message.get("content"))

        calls: List[ToolCall] = []
        for idx, raw_call in enumerate(message.get("tool_calls") or []):
            call = self._build_tool_call(raw_call, idx)
            if not is_registered(call.name):
                logger.warning("Dropped unknown tool call", extra={"extra": {"tool_name": call.name}})
                continue
            calls.append(call)
        if calls:
            return ToolInvocations(
                assistant_message=ChatMessage(role="assistant", content=content, tool_calls=calls),
                calls=calls,
            )

        text_calls = extract_text_tool_calls(content, is_registered)
        if text_calls:
            clean = strip_text_tool_calls(content, is_registered)
            return ToolInvocations(
                assistant_message=ChatMessage(
                    role="assistant",
                    content=clean,
                    tool_calls=text_calls,
                    meta={"text_tool_calls": True},
                ),
                calls=text_calls,
            )

        return TerminalText(text=content)

    def tool_result_messages(self, results: List[ToolResult]) -> List[ChatMessage]:
        # OpenAI 风格要求每个工具结果单独一条 tool 消息
        return [
            ChatMessage(role="tool", content=result.content, tool_call_id=result.call_id)
            for result in results
        ]

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
            "temperature": ai.temperature,
            "messages": [{"role": "system", "content": system_prompt}]
            + [self._message_to_payload(m) for m in messages],
        }
        if tools:
            payload["tools"] = tools
        return payload

    @staticmethod
    def _build_tool_call(raw_call: Dict[str, Any], idx: int) -> ToolCall:
        func = raw_call.get("function") or {}
        call = ToolCall(
            id=raw_call.get("id") or f"tool_call_{idx}",
            name=func.get("name") or "",
            arguments={},
        )
        raw = func.get("arguments")
        if isinstance(raw, dict):
            call.arguments = raw
            return call
        call.raw_arguments = raw if isinstance(raw, str) else None
        if not call.raw_arguments or not call.raw_arguments.strip():
            return call
        try:
            parsed = json.loads(call.raw_arguments)
        except json.JSONDecodeError as exc:
            call.parse_error = f"Invalid tool arguments: {exc}"
            return call
        if not isinstance(parsed, dict):
            call.parse_error = "Invalid tool arguments: expected a JSON object"
            return call
        call.arguments = parsed
        return call

    @staticmethod
    def _content_text(raw: Any) -> str:
        if isinstance(raw, str):
            return raw
        if isinstance(raw, list):
            return "".join(
                str(part.get("text") or "")
                for part in raw
                if isinstance(part, dict) and part.get("type") == "text"
            )
        return ""

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": message.role, "content": message.content}
        if message.tool_calls:
            serialized_calls = []
            for call in message.tool_calls:
                arguments = call.raw_arguments
                if arguments is None:
                    arguments = json.dumps(call.arguments, ensure_ascii=False)
                serialized_calls.append(
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": arguments},
                    }
                )
            payload["tool_calls"] = serialized_calls
        if message.tool_call_id:
            payload["tool_call_id"] = message.tool_call_id
        return payload
