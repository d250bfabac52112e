"""Relay 端点的核心逻辑（与传输层无关）。

- relay(history): 前 N-1 条作为历史初始化外部会话，最后一条作为本轮输入发送，
  等待完整回复后返回一条 assistant 消息。
- handle(payload): 校验 {messages: [...]} 请求体并调用 relay，
  总是返回 (status, body)，不会把异常抛给传输层。
"""

import logging
import time
from typing import Any, Dict, List, Sequence, Tuple
from uuid import uuid4

from chat_core.domain.exceptions import (
    BusinessError,
    ContentBlockedError,
    UpstreamError,
    ValidationError,
)
from chat_core.domain.models import Message, Role
from chat_core.infrastructure.logging.logger import log_event
from chat_core.providers.base import CompletionService
from chat_core.providers.registry import GEMINI_CONFIG


def parse_history(payload: Any) -> List[Message]:
    """把 HTTP 请求体解析为消息列表，形状不符时抛出 ValidationError。"""

    if not isinstance(payload, dict):
        raise ValidationError(code="INVALID_REQUEST", message="Request body must be a JSON object")
    raw_messages = payload.get("messages")
    if not isinstance(raw_messages, list):
        raise ValidationError(code="INVALID_REQUEST", message="'messages' must be a list")
    history: List[Message] = []
    for i, raw in enumerate(raw_messages):
        try:
            history.append(Message.from_dict(raw))
        except ValueError as e:
            raise ValidationError(code="INVALID_REQUEST", message=f"Invalid message at index {i}: {e}")
    return history


class ChatRelay:
    def __init__(self, provider: CompletionService, block_marker: str = GEMINI_CONFIG.block_marker):
        self._provider = provider
        self._block_marker = block_marker

    @property
    def provider(self) -> CompletionService:
        return self._provider

    def relay(self, history: Sequence[Message]) -> Message:
        if not history:
            raise ValidationError(code="EMPTY_HISTORY", message="'messages' must not be empty")
        last = history[-1]
        if last.role is not Role.USER:
            raise ValidationError(code="INVALID_REQUEST", message="The last message must come from the user")

        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "provider": getattr(self._provider, "name", "unknown"),
            "history_len": len(history) - 1,
        }
        start_time = time.time()
        try:
            session = self._provider.start_session(list(history[:-1]))
            text = session.send(last.content)
        except Exception as e:
            error = self.translate_error(e)
            log_event(
                logging.ERROR,
                "Provider call failed",
                log_ctx,
                code=error.code,
                error=str(e),
            )
            raise error from e

        if not isinstance(text, str):
            log_event(logging.ERROR, "Provider returned non-text reply", log_ctx, reply_type=type(text).__name__)
            raise UpstreamError(code="MALFORMED_RESPONSE")

        log_event(
            logging.INFO,
            "Relayed message",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            reply_chars=len(text),
        )
        return Message.assistant(text)

    def handle(self, payload: Any) -> Tuple[int, Dict[str, str]]:
        try:
            reply = self.relay(parse_history(payload))
        except BusinessError as e:
            return e.http_status, {"error": e.message}
        except Exception as e:
            log_event(logging.ERROR, "Unexpected relay failure", {"error": str(e)}, exc_info=True)
            return 500, {"error": UpstreamError().message}
        return 200, reply.to_dict()

    def translate_error(self, error: Exception) -> BusinessError:
        """把 Provider 异常转换为 ContentBlockedError 或 UpstreamError。"""

        if isinstance(error, ContentBlockedError):
            return error
        text = str(getattr(error, "message", None) or error)
        if self._block_marker in text:
            prefix = f"{self._block_marker}: "
            reason = text.split(prefix)[1].strip() if prefix in text else ""
            return ContentBlockedError(reason or "unknown")
        return UpstreamError()
