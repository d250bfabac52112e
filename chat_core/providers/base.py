"""Provider 抽象接口。

Relay 不直接依赖具体厂商的 SDK，而是依赖此协议：

- start_session(history): 用已有的历史消息初始化一个有状态的对话会话。
- ChatSession.send(text): 发送新的一轮用户输入，等待完整回复文本。

失败时抛出 ProviderError；内容安全拦截的错误信息中包含 "block_reason: <原因>"。
"""

from typing import Protocol, Sequence

from chat_core.domain.models import Message


class ChatSession(Protocol):
    def send(self, text: str) -> str:
        ...


class CompletionService(Protocol):
    """文本补全服务协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - start_session(history): 以历史消息开启会话，history 中不含本轮输入。
    """

    name: str

    def start_session(self, history: Sequence[Message]) -> ChatSession:
        ...
