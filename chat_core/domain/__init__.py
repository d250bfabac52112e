"""领域层模型与协议。

包含：
- models: 统一的 Role / Message 模型。
- conversation: 会话模型及持久化协议。
- titles: 从首条消息推导会话标题。
- exceptions: 业务异常类型定义。
"""
