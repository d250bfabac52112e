"""Provider 与模型配置。

生成参数（最大输出长度、采样温度）属于服务端配置，不由用户控制。
默认值可被 settings 中的 gemini_model / max_output_tokens / temperature 覆盖。
"""

from dataclasses import dataclass
from typing import Mapping

from chat_core.domain.models import Role


@dataclass(frozen=True)
class ModelConfig:
    """单个模型的生成配置。"""

    provider_model: str
    max_output_tokens: int
    temperature: float


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    default_model: ModelConfig
    role_map: Mapping[Role, str]
    block_marker: str = "block_reason"


GEMINI_CONFIG = ProviderConfig(
    name="gemini",
    default_model=ModelConfig(
        provider_model="gemini-1.5-flash",
        max_output_tokens=1000,
        temperature=0.9,
    ),
    # Gemini 用 "model" 表示助手角色
    role_map={Role.USER: "user", Role.ASSISTANT: "model"},
)


def model_config_from_settings(cfg) -> ModelConfig:
    base = GEMINI_CONFIG.default_model
    return ModelConfig(
        provider_model=getattr(cfg, "gemini_model", None) or base.provider_model,
        max_output_tokens=getattr(cfg, "max_output_tokens", None) or base.max_output_tokens,
        temperature=getattr(cfg, "temperature", base.temperature),
    )
