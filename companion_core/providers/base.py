"""Provider 抽象接口。

CompletionOrchestrator 不直接依赖具体厂商的 HTTP 协议，而是依赖此协议：

- 每个厂商实现一个 CompletionProvider（如 GeminiClient）。
- 负责：把 prompt + GenerationConfig 转成具体 API 请求，并把响应 JSON 解析为 CompletionResult。
- 失败时抛出 domain.exceptions 中的 BusinessError 子类。
"""

from typing import Protocol

from companion_core.domain.models import CompletionResult, GenerationConfig


class CompletionProvider(Protocol):
    """补全 Provider 客户端协议。

    - name: Provider 名称，用于日志。
    - complete(prompt, config): 执行一次非流式补全调用，返回统一的 CompletionResult。
    """

    name: str

    async def complete(self, prompt: str, config: GenerationConfig) -> CompletionResult:
        ...
