"""LLM Provider 集成层。

该包下的模块负责：
- 定义补全服务抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供具体实现 (gemini_client)。
"""

from typing import Optional

from chat_core.config.settings import settings
from chat_core.providers.base import ChatSession, CompletionService
from chat_core.providers.gemini_client import GeminiClient


def create_provider(name: Optional[str] = None) -> CompletionService:
    """根据名称创建 Provider 实例，目前仅支持 gemini。"""

    provider_name = (name or "gemini").lower()
    if provider_name != GeminiClient.name:
        raise KeyError(f"Unknown provider: {name!r}")
    return GeminiClient(settings)


__all__ = ["ChatSession", "CompletionService", "GeminiClient", "create_provider"]
