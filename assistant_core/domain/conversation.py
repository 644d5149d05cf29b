from typing import List, Protocol, Union

from .models import ChatMessage


ChatId = Union[int, str]

DEFAULT_MAX_MESSAGES = 20


def find_trim_boundary(messages: List[ChatMessage], max_messages: int = DEFAULT_MAX_MESSAGES) -> int:
    """返回裁剪后保留窗口的起始下标，0 表示无需裁剪。

    从朴素切点 len - max 开始向后查找，跳过工具结果消息，保证保留窗口
    不会以孤立的工具结果开头。找不到安全边界时返回 0（不裁剪）。
    """

    if len(messages) <= max_messages:
        return 0
    cut = len(messages) - max_messages
    while cut < len(messages) and messages[cut].is_tool_result():
        cut += 1
    if cut >= len(messages):
        return 0
    return cut


def trim_history(messages: List[ChatMessage], max_messages: int = DEFAULT_MAX_MESSAGES) -> List[ChatMessage]:
    return messages[find_trim_boundary(messages, max_messages):]


class ConversationStore(Protocol):
    def get_or_create(self, chat_id: ChatId) -> List[ChatMessage]:
        ...

    def append(self, chat_id: ChatId, message: ChatMessage) -> None:
        ...

    def extend(self, chat_id: ChatId, messages: List[ChatMessage]) -> None:
        ...

    def trim(self, chat_id: ChatId, max_messages: int = DEFAULT_MAX_MESSAGES) -> int:
        ...

    def snapshot(self, chat_id: ChatId) -> List[ChatMessage]:
        ...

    def replay(self, chat_id: ChatId, snapshot: List[ChatMessage], base_length: int) -> None:
        ...

    def clear(self, chat_id: ChatId) -> None:
        ...

    def chat_ids(self) -> List[ChatId]:
        ...
