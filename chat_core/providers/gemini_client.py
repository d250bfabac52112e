"""Google Gemini Provider 适配器。

使用官方 google-genai SDK 的有状态对话接口：
- client.chats.create(model=..., history=..., config=...) 以历史消息开启会话；
- chat.send_message(text) 发送本轮输入并等待完整回复。

Gemini 在内容安全拦截时不一定抛异常，而是返回空内容并在
prompt_feedback.block_reason 或 candidate.finish_reason 中给出原因，
这里统一转换为带 "block_reason: <原因>" 标记的 ProviderError。
"""

from typing import Any, List, Optional, Sequence

from google import genai
from google.genai import errors, types

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ProviderError, ValidationError
from chat_core.domain.models import Message
from chat_core.providers.registry import GEMINI_CONFIG, ModelConfig, model_config_from_settings

# 这些 finish_reason 表示回复被安全策略截断
_SAFETY_FINISH_REASONS = {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII"}


def _enum_name(value: Any) -> str:
    return str(getattr(value, "value", None) or getattr(value, "name", None) or value)


class GeminiChatSession:
    """包装 SDK 的 Chat 对象，只暴露 send(text) -> str。"""

    def __init__(self, chat: Any):
        self._chat = chat

    def send(self, text: str) -> str:
        try:
            response = self._chat.send_message(text)
        except errors.APIError as e:
            raise ProviderError(str(e), status=getattr(e, "code", None))
        return extract_text(response)


class GeminiClient:
    """Gemini Provider 客户端实现。"""

    name = GEMINI_CONFIG.name

    def __init__(self, cfg=settings, client: Optional[Any] = None):
        self._settings = cfg
        self._client = client
        self._model_cfg: ModelConfig = model_config_from_settings(cfg)

    @property
    def model(self) -> str:
        return self._model_cfg.provider_model

    def start_session(self, history: Sequence[Message]) -> GeminiChatSession:
        chat = self._get_client().chats.create(
            model=self._model_cfg.provider_model,
            history=self._convert_history(history),
            config=types.GenerateContentConfig(
                max_output_tokens=self._model_cfg.max_output_tokens,
                temperature=self._model_cfg.temperature,
            ),
        )
        return GeminiChatSession(chat)

    # ---- 辅助方法 ----

    def _get_client(self) -> Any:
        if self._client is None:
            api_key = getattr(self._settings, "gemini_api_key", None)
            if not api_key:
                raise ValidationError(code="MISSING_API_KEY", message="GEMINI_API_KEY not set", http_status=500)
            self._client = genai.Client(api_key=api_key)
        return self._client

    @staticmethod
    def _convert_history(history: Sequence[Message]) -> List[types.Content]:
        return [
            types.Content(
                role=GEMINI_CONFIG.role_map[msg.role],
                parts=[types.Part(text=msg.content)],
            )
            for msg in history
        ]


def extract_text(response: Any) -> str:
    """从 GenerateContentResponse 中取出完整文本，安全拦截时抛出 ProviderError。"""

    marker = GEMINI_CONFIG.block_marker
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback else None
    if block_reason:
        raise ProviderError(f"Prompt was blocked, {marker}: {_enum_name(block_reason)}")

    candidates = getattr(response, "candidates", None) or []
    if candidates:
        candidate = candidates[0]
        finish_reason = getattr(candidate, "finish_reason", None)
        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or []
        texts = [p.text for p in parts if isinstance(getattr(p, "text", None), str) and p.text]
        if texts:
            return "".join(texts)
        if finish_reason and _enum_name(finish_reason) in _SAFETY_FINISH_REASONS:
            raise ProviderError(f"Response was blocked, {marker}: {_enum_name(finish_reason)}")

    text = getattr(response, "text", None)
    if not isinstance(text, str):
        raise ProviderError("Gemini returned no text")
    return text
