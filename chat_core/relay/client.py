"""会话控制器一侧的 Relay 客户端。

- LocalRelayClient: 进程内直接调用 ChatRelay。
- HttpRelayClient: 通过 HTTP POST 调用 /api/chat，并校验返回的 {role, content} 形状。
"""

from typing import Any, Optional, Protocol, Sequence

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import NetworkError, UpstreamError
from chat_core.domain.models import Message, Role
from chat_core.relay.service import ChatRelay


class RelayClient(Protocol):
    def send(self, history: Sequence[Message]) -> Message:
        ...


class LocalRelayClient:
    def __init__(self, relay: ChatRelay):
        self._relay = relay

    def send(self, history: Sequence[Message]) -> Message:
        return self._relay.relay(history)


class HttpRelayClient:
    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None, cfg=settings):
        self._url = url or cfg.relay_url
        self._timeout = timeout or cfg.http_timeout

    @property
    def url(self) -> str:
        return self._url

    def send(self, history: Sequence[Message]) -> Message:
        payload = {"messages": [m.to_dict() for m in history]}
        try:
            with httpx.Client(timeout=self._timeout, trust_env=False) as client:
                resp = client.post(
                    self._url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.RequestError as e:
            raise NetworkError(str(e))
        if resp.status_code != 200:
            raise UpstreamError(
                message=self._error_text(resp),
                code="RELAY_ERROR",
                http_status=resp.status_code,
            )
        return self._parse_reply(resp)

    @staticmethod
    def _error_text(resp: Any) -> str:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("error"), str) and data["error"]:
            return data["error"]
        return "API request failed"

    @staticmethod
    def _parse_reply(resp: Any) -> Message:
        try:
            data = resp.json()
        except ValueError:
            raise UpstreamError(message="Malformed relay response", code="MALFORMED_RESPONSE")
        if not isinstance(data, dict) or data.get("role") != Role.ASSISTANT.value or not isinstance(data.get("content"), str):
            raise UpstreamError(message="Malformed relay response", code="MALFORMED_RESPONSE")
        return Message.assistant(data["content"])
