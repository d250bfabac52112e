"""会话控制器：持有当前会话指针并驱动 提交 → Relay → 存储 的状态机。"""

from chat_core.session.controller import PendingExchange, SessionController, SessionState

__all__ = ["PendingExchange", "SessionController", "SessionState"]
