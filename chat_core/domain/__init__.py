"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage / ChatRequest / ChatResult 模型。
- conversation: 会话与消息的存储模型及 ConversationStore 抽象。
- context: 请求级的 trace_id / 截止时间 / 取消信号。
- exceptions: 业务异常类型定义。
"""
