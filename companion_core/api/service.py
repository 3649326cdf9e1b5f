"""对外 API 服务模块。

提供简化的函数接口供上层应用（展示层、脚本）调用。
"""

import asyncio
from typing import Any, Dict, Optional

from companion_core.agents.orchestrator import CompletionOrchestrator
from companion_core.domain.conversation import Conversation, ConversationStore, InMemoryConversationStore
from companion_core.providers import create_provider


_store: Optional[ConversationStore] = None
_orchestrator: Optional[CompletionOrchestrator] = None


def get_default_store() -> ConversationStore:
    global _store
    if _store is None:
        _store = InMemoryConversationStore()
    return _store


def get_default_orchestrator() -> CompletionOrchestrator:
    """获取默认的 CompletionOrchestrator 实例（单例）。"""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = CompletionOrchestrator(
            store=get_default_store(),
            provider_client=create_provider(),
        )
    return _orchestrator


def start_conversation() -> Conversation:
    """创建一段带问候语的新会话。"""
    return get_default_store().initialize()


def render_conversation(conversation: Conversation) -> Dict[str, Any]:
    return {
        "conversation_id": conversation.id,
        "messages": [{"role": m.role, "content": m.content} for m in conversation.messages],
    }


def run_companion_chat(
    user_text: str,
    conversation: Optional[Conversation] = None,
) -> Dict[str, Any]:
    """同步执行一次对话（内部使用 asyncio.run），供没有事件循环的调用方使用。

    Args:
        user_text: 用户输入内容
        conversation: 已有会话（可选，不提供则创建新会话）

    Returns:
        包含会话ID、pending 状态与按顺序排列的消息列表的字典
    """
    orchestrator = get_default_orchestrator()
    conv = conversation or start_conversation()
    asyncio.run(orchestrator.submit(conv, user_text))
    result = render_conversation(conv)
    result["pending"] = orchestrator.pending
    return result
