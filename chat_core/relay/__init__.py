"""Relay：把内部对话历史转换为外部补全服务调用，再把结果转换回来。"""

from chat_core.relay.client import HttpRelayClient, LocalRelayClient, RelayClient
from chat_core.relay.service import ChatRelay, parse_history

__all__ = ["ChatRelay", "HttpRelayClient", "LocalRelayClient", "RelayClient", "parse_history"]
