"""Chat Core 顶层包。

该包提供单页聊天客户端的核心实现，
包括配置加载、领域模型、会话持久化、标题生成、
Gemini Provider 适配、Relay 端点与会话控制器等能力。
"""

from chat_core.domain.models import Message, Role
from chat_core.domain.conversation import Conversation
from chat_core.domain.titles import derive_title

__all__ = ["Conversation", "Message", "Role", "derive_title"]
