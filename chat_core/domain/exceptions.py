"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 CLI 层或上层服务做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流错误，本层不做重试。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class InvalidArgument(ValidationError):
    """调用方传入的参数为空或不合法。"""

    def __init__(self, argument: str, message: str = ""):
        super().__init__(
            code="INVALID_ARGUMENT",
            message=message or f"{argument} is required",
            http_status=400,
            argument=argument,
        )


class NotFound(BusinessError):
    """会话不存在。"""

    def __init__(self, message: str):
        super().__init__(code="NOT_FOUND", message=message, http_status=404)


class ConflictError(BusinessError):
    """乐观并发校验失败，或重复创建同一 ID 的会话。"""

    def __init__(self, message: str):
        super().__init__(code="CONFLICT", message=message, http_status=409)


class StoreError(BusinessError):
    """持久化层读写失败。"""


class ToolNotFound(BusinessError):
    """模型请求了注册表中不存在的工具，属于基础设施缺陷。"""

    def __init__(self, name: str):
        super().__init__(
            code="TOOL_NOT_FOUND",
            message=f"tool not found: {name}",
            http_status=500,
            tool_name=name,
        )


class EmptyConversation(BusinessError):
    """会话中没有任何消息，无法生成回复。"""

    def __init__(self, message: str = "conversation has no messages"):
        super().__init__(code="EMPTY_CONVERSATION", message=message, http_status=400)


class NoModelOutput(BusinessError):
    """模型没有返回任何候选回答（或最终回答为空）。"""

    def __init__(self, message: str = "no choices returned by the model"):
        super().__init__(code="NO_MODEL_OUTPUT", message=message, http_status=502)


class TitleGenerationFailed(BusinessError):
    """标题生成失败；上层会降级为默认标题。"""

    def __init__(self, message: str):
        super().__init__(code="TITLE_GENERATION_FAILED", message=message, http_status=502)


class OperationCancelled(BusinessError):
    """调用方取消了请求或已超过截止时间。"""

    def __init__(self, message: str = "operation cancelled"):
        super().__init__(code="CANCELLED", message=message, http_status=499)
