import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.conversation import PLACEHOLDER_TITLE, BlobStore, Conversation, utcnow
from chat_core.domain.exceptions import BusinessError, NotFoundError, PersistenceCorruptError
from chat_core.domain.models import Message
from chat_core.infrastructure.logging.logger import log_event


def format_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(raw: Any) -> datetime:
    if not isinstance(raw, str):
        raise ValueError(f"timestamp must be a string, got {type(raw).__name__}")
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def conversation_to_dict(conv: Conversation) -> Dict[str, Any]:
    return {
        "id": conv.id,
        "title": conv.title,
        "timestamp": format_timestamp(conv.timestamp),
        "messages": [m.to_dict() for m in conv.messages],
        "titled": conv.titled,
    }


def conversation_from_dict(data: Any) -> Conversation:
    if not isinstance(data, dict):
        raise ValueError("conversation record must be an object")
    cid = data.get("id")
    if not isinstance(cid, str) or not cid:
        raise ValueError("conversation id must be a non-empty string")
    title = data.get("title")
    if title is None:
        title = PLACEHOLDER_TITLE
    if not isinstance(title, str):
        raise ValueError("conversation title must be a string")
    # 旧数据没有 titled 字段：非占位标题视为已命名
    titled = data.get("titled", title != PLACEHOLDER_TITLE)
    if not isinstance(titled, bool):
        raise ValueError("conversation titled flag must be a boolean")
    raw_messages = data.get("messages") or []
    if not isinstance(raw_messages, list):
        raise ValueError("conversation messages must be a list")
    return Conversation(
        id=cid,
        title=title,
        timestamp=parse_timestamp(data.get("timestamp")),
        messages=[Message.from_dict(m) for m in raw_messages],
        titled=titled,
    )


class ConversationStore:
    """内存中的会话集合，每次变更后整体序列化写回 BlobStore。

    迭代顺序为创建时间倒序（新建会话插在最前面）。
    所有变更在同一把可重入锁内完成，读者不会看到半完成的修改。
    持久化失败只记录日志，不向调用方抛出。
    """

    def __init__(self, blob_store: BlobStore, key: Optional[str] = None):
        self._blob_store = blob_store
        self._key = key or settings.storage_key
        self._conversations: Dict[str, Conversation] = {}
        self._lock = threading.RLock()

    # ---- 读取 ----

    def list(self) -> List[Conversation]:
        with self._lock:
            return list(self._conversations.values())

    def get(self, conversation_id: str) -> Conversation:
        conv = self.find(conversation_id)
        if conv is None:
            raise NotFoundError(conversation_id)
        return conv

    def find(self, conversation_id: Optional[str]) -> Optional[Conversation]:
        if conversation_id is None:
            return None
        with self._lock:
            return self._conversations.get(conversation_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        with self._lock:
            return conversation_id in self._conversations

    # ---- 变更 ----

    def create(self) -> Conversation:
        with self._lock:
            cid = f"c-{uuid4().hex}"
            while cid in self._conversations:
                cid = f"c-{uuid4().hex}"
            conv = Conversation(id=cid, title=PLACEHOLDER_TITLE, timestamp=utcnow(), messages=[])
            self._conversations = {cid: conv, **self._conversations}
            self.save()
        log_event(logging.INFO, "Created conversation", {"conversation_id": cid})
        return conv

    def append(self, conversation_id: str, message: Message) -> Conversation:
        with self._lock:
            conv = self.get(conversation_id)
            conv.messages.append(message)
            conv.timestamp = utcnow()
            self.save()
            return conv

    def rename(self, conversation_id: str, title: str) -> Conversation:
        with self._lock:
            conv = self.get(conversation_id)
            conv.title = title
            conv.titled = True
            self.save()
            return conv

    def delete(self, conversation_id: str) -> bool:
        with self._lock:
            if self._conversations.pop(conversation_id, None) is None:
                return False
            self.save()
        log_event(logging.INFO, "Deleted conversation", {"conversation_id": conversation_id})
        return True

    def prune_empty(self, except_id: Optional[str] = None) -> List[str]:
        with self._lock:
            removed = [
                cid for cid, conv in self._conversations.items()
                if conv.is_empty and cid != except_id
            ]
            if not removed:
                return []
            for cid in removed:
                del self._conversations[cid]
            self.save()
        log_event(logging.INFO, "Pruned empty conversations", {"removed": removed})
        return removed

    # ---- 持久化 ----

    def load(self) -> "ConversationStore":
        """从 BlobStore 恢复全部会话；数据缺失或损坏时以空存储启动。"""

        try:
            conversations = self._read()
        except PersistenceCorruptError as e:
            log_event(logging.WARNING, "Discarding corrupt conversation store", {"key": self._key, "error": e.message})
            conversations = []
        except BusinessError as e:
            log_event(logging.ERROR, "Failed to read conversation store", {"key": self._key, "error": e.message})
            conversations = []
        with self._lock:
            self._conversations = {c.id: c for c in conversations}
        return self

    def save(self) -> None:
        with self._lock:
            blob = json.dumps(
                [conversation_to_dict(c) for c in self._conversations.values()],
                ensure_ascii=False,
            )
            try:
                self._blob_store.put(self._key, blob)
            except BusinessError as e:
                log_event(logging.ERROR, "Failed to persist conversations", {"key": self._key, "error": e.message})

    def _read(self) -> List[Conversation]:
        try:
            raw = self._blob_store.get(self._key)
            if raw is None:
                return []
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("stored conversations must be a list")
            conversations = [conversation_from_dict(item) for item in data]
        except (ValueError, RecursionError) as e:
            # json.JSONDecodeError / UnicodeDecodeError 都是 ValueError；嵌套过深时 json 抛 RecursionError
            raise PersistenceCorruptError(str(e), key=self._key)
        ids = [c.id for c in conversations]
        if len(set(ids)) != len(ids):
            raise PersistenceCorruptError("duplicate conversation ids", key=self._key)
        return conversations
