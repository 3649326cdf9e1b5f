"""统一的消息与补全结果数据模型。

- Message: 会话中的一条消息（仅 user / assistant）。
- GenerationConfig: 发给补全 Provider 的固定生成参数。
- CompletionResult: 从 Provider 解析后的统一响应结果。

Provider 适配器只依赖这些模型，负责在各自的 API JSON 与它们之间转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional


# 会话里只会出现这两种角色；persona 指令不作为消息存储
Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    """一条会话消息，追加后不可修改。

    - role: "user" 或 "assistant"。
    - content: 纯文本内容；失败时 assistant 消息为固定兜底文案。
    """

    role: Role
    content: str


@dataclass(frozen=True)
class GenerationConfig:
    """补全生成参数。"""

    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 1000


@dataclass
class CompletionUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class CompletionResult:
    """一次补全调用的最终结果。

    - provider: 逻辑 Provider 名（如 "gemini"）。
    - model: 逻辑模型名（如 "companion-chat"）。
    - text: 模型回复的纯文本。
    - usage: 可选的 token 使用统计。
    - finish_reason: 候选结束原因（如 "STOP"）。
    - raw: 原始响应 JSON，用于调试。
    """

    provider: str
    model: str
    text: str
    usage: Optional[CompletionUsage] = None
    finish_reason: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)
