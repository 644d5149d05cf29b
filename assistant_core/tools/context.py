"""工具执行上下文。

工具需要知道是哪个会话触发了调用。ChatAgent 会把 ToolContext 显式传给
ToolRegistry.execute_tool；对于只想隐式读取会话 ID 的工具，这里还提供一个
ContextVar。asyncio 的每个 Task 拥有独立的上下文副本，并发会话之间不会互相覆盖。
"""

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


ChatId = Union[int, str]

_current_chat_id: ContextVar[Optional[ChatId]] = ContextVar("current_chat_id", default=None)


@dataclass(frozen=True)
class ToolContext:
    chat_id: Optional[ChatId]
    extra: Dict[str, Any] = field(default_factory=dict)


def set_current_chat_id(chat_id: Optional[ChatId]) -> None:
    _current_chat_id.set(chat_id)


def get_current_chat_id() -> Optional[ChatId]:
    return _current_chat_id.get()
