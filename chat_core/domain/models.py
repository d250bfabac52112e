"""统一的消息数据模型。

本模块定义了在 Relay、会话存储与会话控制器之间共享的标准数据结构：

- Role: 消息角色，封闭枚举，仅包含 user / assistant。
- Message: 一条对话消息，创建后不可变。

Provider 适配器（如 GeminiClient）负责在这些模型与厂商 SDK 结构之间做转换，
HTTP 层与持久化层负责在这些模型与 JSON 之间做转换。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class Role(str, Enum):
    """消息角色（与前端 JSON 中的 role 字段一一对应）。"""

    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """把外部传入的字符串转换为 Role，未知取值抛出 ValueError。"""

        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            raise ValueError(f"role must be a string, got {type(value).__name__}")
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown role: {value!r}") from None


@dataclass(frozen=True)
class Message:
    """一条对话消息，既可用于请求，也可用于响应。

    - role: 消息角色，user 或 assistant。
    - content: 纯文本（markdown）内容，渲染由 rendering 模块负责。
    """

    role: Role
    content: str

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def from_dict(cls, data: Any) -> "Message":
        """从 {role, content} 字典构造消息，形状不符时抛出 ValueError。"""

        if not isinstance(data, dict):
            raise ValueError("message must be an object")
        content = data.get("content")
        if not isinstance(content, str):
            raise ValueError("message content must be a string")
        return cls(role=Role.parse(data.get("role")), content=content)

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}
