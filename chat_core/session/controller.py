"""会话控制器。

串联 用户输入 → Relay 调用 → 会话存储更新 → UI 刷新，
持有当前会话指针 (active_id) 与加载/错误状态。

状态机只有两个状态：

    IDLE --submit(text)--> AWAITING_RESPONSE
    AWAITING_RESPONSE --resolve(message)--> IDLE
    AWAITING_RESPONSE --fail(error)--> IDLE

submit() 在等待 Relay 时阻塞；期间 UI 线程仍可切换/新建会话，
回复总是追加到提交时捕获的会话 id 上。
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple
from uuid import uuid4

from chat_core.domain.conversation import PLACEHOLDER_TITLE, Conversation
from chat_core.domain.exceptions import (
    BusinessError,
    BusyError,
    EmptyInputError,
    NotFoundError,
    UpstreamError,
)
from chat_core.domain.models import Message, Role
from chat_core.domain.titles import derive_title
from chat_core.infrastructure.logging.logger import log_event
from chat_core.infrastructure.storage.conversation_store import ConversationStore
from chat_core.relay.client import RelayClient

Listener = Callable[["SessionController"], None]


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


@dataclass(frozen=True)
class PendingExchange:
    """一次已提交、尚未返回的请求。"""

    trace_id: str
    conversation_id: str
    history: Tuple[Message, ...]

    @property
    def user_message(self) -> Message:
        return self.history[-1]


class SessionController:
    def __init__(self, store: ConversationStore, relay_client: RelayClient):
        self._store = store
        self._relay_client = relay_client
        self._active_id: Optional[str] = None
        self._state = SessionState.IDLE
        self._last_error: Optional[BusinessError] = None
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()
        # 输入框缓冲区，提交成功后清空
        self.draft = ""

    # ---- 生命周期 ----

    def hydrate(self) -> "SessionController":
        """会话开始时从持久化数据恢复会话列表，并清理遗留的空会话。"""

        with self._lock:
            self._store.load()
            if self._active_id not in self._store:
                self._active_id = None
            self._store.prune_empty(except_id=self._active_id)
        self._notify()
        return self

    def persist(self) -> None:
        self._store.save()

    # ---- 只读状态 ----

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state is SessionState.AWAITING_RESPONSE

    @property
    def last_error(self) -> Optional[BusinessError]:
        return self._last_error

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def active_conversation(self) -> Optional[Conversation]:
        return self._store.find(self._active_id)

    @property
    def conversations(self) -> List[Conversation]:
        return self._store.list()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册状态变化回调，返回取消订阅函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- 提交消息 ----

    def submit(self, text: Optional[str] = None) -> bool:
        """提交一条用户消息并等待回复。

        text 为 None 时使用 draft。空白输入或已有请求在途时返回 False，不做任何修改。
        Relay 的任何失败都会转换为一条 assistant 错误消息，不会向外抛出。
        """

        try:
            pending = self.begin(self.draft if text is None else text)
        except (EmptyInputError, BusyError):
            return False

        try:
            reply = self._relay_client.send(pending.history)
        except Exception as e:
            self.fail(pending, e)
        else:
            self.resolve(pending, reply)
        return True

    def begin(self, text: str) -> PendingExchange:
        """IDLE → AWAITING_RESPONSE：记录用户消息并捕获目标会话 id。"""

        with self._lock:
            if self._state is SessionState.AWAITING_RESPONSE:
                raise BusyError()
            if not text or not text.strip():
                raise EmptyInputError()

            conv = self.active_conversation
            if conv is None:
                conv = self._store.create()
                self._active_id = conv.id
            conv = self._store.append(conv.id, Message.user(text))
            self.draft = ""
            self._state = SessionState.AWAITING_RESPONSE
            self._last_error = None
            pending = PendingExchange(
                trace_id=f"tr-{uuid4().hex}",
                conversation_id=conv.id,
                history=tuple(conv.messages),
            )
        log_event(
            logging.INFO,
            "Submitted user message",
            self._log_ctx(pending),
            history_len=len(pending.history),
        )
        self._notify()
        return pending

    def resolve(self, pending: PendingExchange, message: Message) -> None:
        """AWAITING_RESPONSE → IDLE：追加 assistant 回复，首轮对话时生成标题。"""

        if message.role is not Role.ASSISTANT:
            self.fail(pending, UpstreamError(message="Unexpected reply role", code="MALFORMED_RESPONSE"))
            return

        with self._lock:
            try:
                conv = self._store.append(pending.conversation_id, message)
                if not conv.titled:
                    self._derive_title(conv)
            except NotFoundError:
                log_event(logging.WARNING, "Conversation removed before reply arrived", self._log_ctx(pending))
            finally:
                self._state = SessionState.IDLE
        log_event(logging.INFO, "Stored assistant reply", self._log_ctx(pending), reply_chars=len(message.content))
        self._notify()

    def fail(self, pending: PendingExchange, error: Exception) -> None:
        """AWAITING_RESPONSE → IDLE：把错误转换为一条 assistant 消息，保留完整对话记录。"""

        if isinstance(error, BusinessError):
            business_error = error
        else:
            business_error = UpstreamError(message="API request failed", code="CLIENT_ERROR")
        log_event(
            logging.ERROR,
            "Chat request failed",
            self._log_ctx(pending),
            exc_info=not isinstance(error, BusinessError),
            code=business_error.code,
            error=str(error),
        )

        with self._lock:
            self._last_error = business_error
            try:
                self._store.append(
                    pending.conversation_id,
                    Message.assistant(f"Error: {business_error.message}"),
                )
            except NotFoundError:
                log_event(logging.WARNING, "Conversation removed before error arrived", self._log_ctx(pending))
            finally:
                self._state = SessionState.IDLE
        self._notify()

    # ---- 会话切换与管理 ----

    def select_conversation(self, conversation_id: str) -> bool:
        with self._lock:
            if conversation_id not in self._store:
                log_event(logging.WARNING, "Ignoring selection of unknown conversation", {"conversation_id": conversation_id})
                return False
            self._active_id = conversation_id
            self._store.prune_empty(except_id=conversation_id)
        self._notify()
        return True

    def new_chat(self) -> Conversation:
        """新建会话；当前会话本身为空时直接复用，避免重复的空会话。"""

        with self._lock:
            current = self.active_conversation
            if current is not None and current.is_empty:
                return current
            conv = self._store.create()
            self._active_id = conv.id
            self._store.prune_empty(except_id=conv.id)
        self._notify()
        return conv

    def delete_conversation(self, conversation_id: str) -> bool:
        with self._lock:
            removed = self._store.delete(conversation_id)
            if conversation_id == self._active_id:
                self._active_id = None
        self._notify()
        return removed

    def rename_conversation(self, conversation_id: str, title: str) -> bool:
        try:
            self._store.rename(conversation_id, title)
        except NotFoundError:
            log_event(logging.WARNING, "Ignoring rename of unknown conversation", {"conversation_id": conversation_id})
            return False
        self._notify()
        return True

    # ---- 辅助方法 ----

    def _derive_title(self, conv: Conversation) -> None:
        first = conv.first_user_message()
        if first is None:
            return
        # 即使标题未变也要经过 rename，使 titled 置位，之后不再重新生成
        self._store.rename(conv.id, derive_title(first.content) or PLACEHOLDER_TITLE)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                log_event(logging.ERROR, "Session listener failed", {"error": str(e)}, exc_info=True)

    @staticmethod
    def _log_ctx(pending: PendingExchange) -> dict:
        return {"trace_id": pending.trace_id, "conversation_id": pending.conversation_id}
