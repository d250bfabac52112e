from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from .models import Message, Role


# 标题尚未推导出来时显示的占位文本
PLACEHOLDER_TITLE = "New Chat"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Conversation:
    id: str
    title: str = PLACEHOLDER_TITLE
    timestamp: datetime = field(default_factory=utcnow)
    messages: List[Message] = field(default_factory=list)
    titled: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.messages

    def user_messages(self) -> List[Message]:
        return [m for m in self.messages if m.role is Role.USER]

    def first_user_message(self) -> Optional[Message]:
        users = self.user_messages()
        return users[0] if users else None


class BlobStore(Protocol):
    """持久化协作者：按固定 key 整体读写一段文本。"""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str) -> None:
        ...
