"""统一的对话与结果数据模型。

本模块定义了 Agent 内部在不同 Provider 之间共享的标准数据结构：

- ChatMessage: 一条对话消息（user/assistant/tool）。
- ImageAttachment: 随用户消息一起发送的图片。
- TerminalText / ToolInvocations: Provider 响应归一化后的两种结果。

所有 Provider 适配器（AnthropicClient、OpenRouterClient）都必须只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。ChatAgent 只根据结果类型分支，
不关心具体厂商的响应结构。
"""

from dataclasses import dataclass, field
from typing import Literal, Optional, Any, Dict, List, Union, TYPE_CHECKING

if TYPE_CHECKING:
    # 仅在类型检查时导入，避免运行时循环依赖
    from assistant_core.tools.definitions import ToolCall


# LLM 消息角色类型（与 Anthropic / OpenAI 的 role 字段对应）
Role = Literal["user", "assistant", "tool"]

# 纯文本，或 Anthropic / OpenAI 的内容块列表（图片、tool_use、tool_result 等）
Content = Union[str, List[Dict[str, Any]]]


@dataclass
class ChatMessage:
    """一条对话消息，保存在会话历史中并原样回放给 Provider。

    - role: 消息角色。
    - content: 纯文本或内容块列表。
    - tool_calls: Chat-Completion 风格下，assistant 消息发起的工具调用。
    - tool_call_id: role 为 "tool" 时，关联的工具调用 ID。
    - meta: 附加元数据，不发给 Provider，仅用于日志。
    """

    role: Role
    content: Content
    tool_calls: Optional[List["ToolCall"]] = None
    tool_call_id: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def is_tool_result(self) -> bool:
        """是否为工具结果消息（tool 角色，或携带 tool_result 块的 user 消息）。"""

        if self.role == "tool":
            return True
        if self.role == "user" and isinstance(self.content, list):
            return any(
                isinstance(block, dict) and block.get("type") == "tool_result"
                for block in self.content
            )
        return False

    def text(self) -> str:
        """提取消息中的纯文本部分，用于估算 token 和日志预览。"""

        if isinstance(self.content, str):
            return self.content
        parts: List[str] = []
        for block in self.content:
            if not isinstance(block, dict):
                continue
            if block.get("type") == "text":
                parts.append(str(block.get("text") or ""))
            elif block.get("type") == "tool_result" and isinstance(block.get("content"), str):
                parts.append(block["content"])
        return "\n".join(parts)


@dataclass
class ImageAttachment:
    """用户随消息附带的图片（base64 编码）。"""

    base64: str
    mime_type: str = "image/jpeg"


@dataclass
class TerminalText:
    """Provider 给出了最终文本回答，本轮对话结束。"""

    text: str


@dataclass
class ToolInvocations:
    """Provider 请求执行工具。

    assistant_message 需原样写入历史，紧随其后写入每个调用对应的工具结果。
    """

    assistant_message: ChatMessage
    calls: List["ToolCall"]


ProviderResponse = Union[TerminalText, ToolInvocations]
