"""对外 API 服务模块。

提供简化的函数接口供上层应用（CLI、脚本）调用。
"""

from typing import Any, Dict, List, Optional

from chat_core.config.settings import settings
from chat_core.infrastructure.storage.blob_store import FileBlobStore
from chat_core.infrastructure.storage.conversation_store import ConversationStore, format_timestamp
from chat_core.providers import create_provider
from chat_core.relay.client import HttpRelayClient, LocalRelayClient, RelayClient
from chat_core.relay.service import ChatRelay
from chat_core.session.controller import SessionController


_store: Optional[ConversationStore] = None


def get_default_store() -> ConversationStore:
    """获取默认的会话存储实例（单例，首次获取时从磁盘加载）。"""
    global _store
    if _store is None:
        _store = ConversationStore(FileBlobStore(root=settings.storage_root), key=settings.storage_key).load()
    return _store


def build_controller(remote: bool = False, store: Optional[ConversationStore] = None) -> SessionController:
    """构造会话控制器。

    Args:
        remote: True 时通过 HTTP 访问 settings.relay_url，否则在进程内调用 Gemini
        store: 会话存储（可选，默认使用磁盘存储）

    Returns:
        已完成 hydrate 的 SessionController
    """
    client: RelayClient
    if remote:
        client = HttpRelayClient(cfg=settings)
    else:
        client = LocalRelayClient(ChatRelay(create_provider()))
    return SessionController(store or get_default_store(), client).hydrate()


def list_conversations(store: Optional[ConversationStore] = None) -> List[Dict[str, Any]]:
    """列出所有会话。

    Returns:
        会话列表，每项包含 id, title, timestamp, message_count
    """
    store = store or get_default_store()
    return [
        {
            "id": c.id,
            "title": c.title,
            "timestamp": format_timestamp(c.timestamp),
            "message_count": len(c.messages),
        }
        for c in store.list()
    ]


def get_conversation_messages(conversation_id: str, store: Optional[ConversationStore] = None) -> List[Dict[str, str]]:
    """获取会话的所有消息，会话不存在时抛出 NotFoundError。"""
    store = store or get_default_store()
    return [m.to_dict() for m in store.get(conversation_id).messages]
