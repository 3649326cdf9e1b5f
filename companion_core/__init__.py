"""Companion Core 顶层包。

该包提供情绪支持聊天助手的核心实现：只追加的会话存储、
persona prompt 拼接、带单飞保护的补全编排，以及 Provider 适配与配置加载。
"""

from companion_core.agents.orchestrator import CompletionOrchestrator, OrchestratorConfig
from companion_core.domain.conversation import Conversation, InMemoryConversationStore

__all__ = [
    "CompletionOrchestrator",
    "OrchestratorConfig",
    "Conversation",
    "InMemoryConversationStore",
]
