"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 Relay 层、HTTP 层或会话控制器做统一捕获与用户提示。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 conversation_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数或请求体校验失败。"""


class EmptyInputError(ValidationError):
    """提交了空白输入，由会话控制器静默忽略。"""

    def __init__(self, message: str = "Input is empty"):
        super().__init__(code="EMPTY_INPUT", message=message)


class BusyError(ValidationError):
    """上一条请求尚未返回时再次提交。"""

    def __init__(self, message: str = "A request is already in flight"):
        super().__init__(code="BUSY", message=message, http_status=409)


class NotFoundError(BusinessError):
    """引用了不存在的会话 id。"""

    def __init__(self, conversation_id: str):
        super().__init__(
            code="CONVERSATION_NOT_FOUND",
            message=f"Conversation not found: {conversation_id}",
            http_status=404,
            conversation_id=conversation_id,
        )
        self.conversation_id = conversation_id


class UpstreamError(BusinessError):
    """Relay 或外部服务的通用失败（网络、配额、响应格式不符等）。"""

    def __init__(self, message: str = "API Error", code: str = "UPSTREAM_ERROR", http_status: int = 500, **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)


class NetworkError(UpstreamError):
    """网络层错误，例如连接失败、超时等。"""

    def __init__(self, message: str, **extra):
        super().__init__(message=message, code="NETWORK_ERROR", http_status=502, **extra)


class ProviderError(UpstreamError):
    """Provider SDK 抛出的原始错误，message 保留厂商错误文本。

    安全过滤拒绝时 message 中包含 "block_reason: <原因>" 标记，
    由 Relay 负责识别并转换为 ContentBlockedError。
    """

    def __init__(self, message: str, **extra):
        super().__init__(message=message, code="PROVIDER_ERROR", http_status=500, **extra)


class ContentBlockedError(BusinessError):
    """外部服务因内容安全策略拒绝生成。"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            code="CONTENT_BLOCKED",
            message=f"Content blocked: {reason}",
            http_status=500,
            reason=reason,
        )


class PersistenceCorruptError(BusinessError):
    """持久化数据无法解析；加载时丢弃并以空存储启动，不会暴露给用户。"""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(code="PERSISTENCE_CORRUPT", message=message, http_status=500, key=key)
