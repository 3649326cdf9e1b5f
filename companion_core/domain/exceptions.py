"""统一业务异常模型。

Provider 层抛出的错误都继承自 BusinessError。
CompletionOrchestrator 会捕获这些异常并转换为兜底回复，
因此它们只会出现在运维日志里，不会出现在会话内容中。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、finish_reason 等）。
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
    """Provider 限流错误；核心不做重试，由调用方决定是否重发。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class MalformedResponseError(BusinessError):
    """Provider 返回 2xx，但响应里没有可用文本（被拦截、无候选、空内容）。"""
