"""对外 API 服务模块。

提供简化的函数接口供上层应用（聊天机器人、CLI 等）调用。
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from assistant_core.agents.chat_agent import ChatAgent
from assistant_core.config.settings import Settings, settings
from assistant_core.domain.conversation import ChatId
from assistant_core.domain.models import ImageAttachment
from assistant_core.infrastructure.storage.memory_store import InMemoryConversationStore
from assistant_core.tools.registry import ToolRegistry


_store: Optional[InMemoryConversationStore] = None
_tools: Optional[ToolRegistry] = None
_agent: Optional[ChatAgent] = None


def get_store() -> InMemoryConversationStore:
    global _store
    if _store is None:
        _store = InMemoryConversationStore()
    return _store


def get_tool_registry() -> ToolRegistry:
    """获取进程级工具注册表，上层在启动时向其注册具体工具。"""
    global _tools
    if _tools is None:
        _tools = ToolRegistry()
    return _tools


def get_default_agent() -> ChatAgent:
    """获取默认的 ChatAgent 实例（单例）。"""
    global _agent
    if _agent is None:
        _agent = ChatAgent(store=get_store(), tools=get_tool_registry())
    return _agent


def _coerce_image(image: Union[ImageAttachment, Mapping[str, Any], None]) -> Optional[ImageAttachment]:
    if image is None or isinstance(image, ImageAttachment):
        return image
    mime_type = image.get("mime_type") or image.get("mimeType") or "image/jpeg"
    return ImageAttachment(base64=image["base64"], mime_type=mime_type)


async def get_ai_response(
    config: Optional[Settings],
    chat_id: ChatId,
    user_message: str,
    image: Union[ImageAttachment, Mapping[str, Any], None] = None,
) -> str:
    """处理一条用户消息，返回最终回复。

    Args:
        config: 配置对象，为空时使用模块级 settings
        chat_id: 会话ID
        user_message: 用户输入内容
        image: 可选图片，ImageAttachment 或 {"base64": ..., "mimeType": ...}

    Returns:
        不含工具调用语法的助手回复

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    agent = get_default_agent()
    return await agent.get_ai_response(config or settings, chat_id, user_message, _coerce_image(image))


def get_conversation_messages(chat_id: ChatId) -> List[Dict[str, Any]]:
    """获取会话的所有消息。"""
    msgs = get_store().snapshot(chat_id)
    return [
        {
            "role": m.role,
            "content": m.content,
            "tool_calls": [
                {"id": c.id, "name": c.name, "arguments": c.arguments} for c in (m.tool_calls or [])
            ],
            "tool_call_id": m.tool_call_id,
        }
        for m in msgs
    ]


def clear_conversation(chat_id: ChatId) -> None:
    get_store().clear(chat_id)


def get_token_count() -> int:
    return get_store().token_count()
