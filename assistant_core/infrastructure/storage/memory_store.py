from typing import Dict, List

from assistant_core.domain.conversation import ChatId, ConversationStore, DEFAULT_MAX_MESSAGES, find_trim_boundary
from assistant_core.domain.models import ChatMessage


class InMemoryConversationStore(ConversationStore):
    """进程内会话存储，按 chat_id 保存有序消息列表。

    进程重启后历史即丢失；会话在首次访问时惰性创建。
    """

    def __init__(self) -> None:
        self._conversations: Dict[ChatId, List[ChatMessage]] = {}

    def get_or_create(self, chat_id: ChatId) -> List[ChatMessage]:
        return self._conversations.setdefault(chat_id, [])

    def append(self, chat_id: ChatId, message: ChatMessage) -> None:
        self.get_or_create(chat_id).append(message)

    def extend(self, chat_id: ChatId, messages: List[ChatMessage]) -> None:
        self.get_or_create(chat_id).extend(messages)

    def trim(self, chat_id: ChatId, max_messages: int = DEFAULT_MAX_MESSAGES) -> int:
        history = self.get_or_create(chat_id)
        cut = find_trim_boundary(history, max_messages)
        if cut:
            # 原地删除，保证其他持有该列表引用的调用方看到同一份数据
            del history[:cut]
        return cut

    def snapshot(self, chat_id: ChatId) -> List[ChatMessage]:
        return list(self.get_or_create(chat_id))

    def replay(self, chat_id: ChatId, snapshot: List[ChatMessage], base_length: int) -> None:
        self.extend(chat_id, snapshot[base_length:])

    def clear(self, chat_id: ChatId) -> None:
        self._conversations.pop(chat_id, None)

    def clear_all(self) -> None:
        self._conversations.clear()

    def chat_ids(self) -> List[ChatId]:
        return list(self._conversations)

    def token_count(self) -> int:
        """粗略估算所有会话的 token 数（按 4 个字符约 1 个 token）。"""

        total_chars = 0
        for history in self._conversations.values():
            for msg in history:
                total_chars += len(msg.text())
        return round(total_chars / 4)
