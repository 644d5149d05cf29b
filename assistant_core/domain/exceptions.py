"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在传输层（聊天机器人、CLI 等）做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "API_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、body 等）。
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
    """Provider 返回非 2xx 状态码时抛出。

    消息格式固定为 "<Provider> API error: <status> - <body>"，不做重试。
    """

    def __init__(self, provider: str, status: int, body: str):
        super().__init__(
            code="API_ERROR",
            message=f"{provider} API error: {status} - {body}",
            http_status=status,
            provider=provider,
            body=body,
        )
        self.provider = provider
        self.status = status
        self.body = body


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class ConfigurationError(ValidationError):
    """未配置或无法识别的 AI Provider。"""

    def __init__(self, message: str = "No AI provider configured", **extra):
        super().__init__(code="NO_PROVIDER", message=message, **extra)


class InvalidResponseError(BusinessError):
    """Provider 返回了无法解析的响应结构。"""

    def __init__(self, message: str = "Invalid API response: no choices returned", **extra):
        super().__init__(code="INVALID_RESPONSE", message=message, http_status=502, **extra)


class ToolRoundLimitError(BusinessError):
    """模型在允许的轮数内始终请求工具，没有给出最终回答。"""

    def __init__(self, max_rounds: int, **extra):
        super().__init__(
            code="TOO_MANY_TOOL_ROUNDS",
            message=f"Too many tool rounds: model still requested tools after {max_rounds} rounds",
            http_status=500,
            max_rounds=max_rounds,
            **extra,
        )
        self.max_rounds = max_rounds
