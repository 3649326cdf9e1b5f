"""补全编排核心模块。

实现一次用户输入的完整处理：校验输入、单飞(pending)保护、追加用户消息、
拼接 prompt、调用 provider、把成功/失败结果追加为助手消息、清除 pending。
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import uuid4

from companion_core.config.settings import settings
from companion_core.domain.conversation import Conversation, ConversationStore
from companion_core.domain.exceptions import BusinessError, MalformedResponseError
from companion_core.domain.models import GenerationConfig, Message
from companion_core.infrastructure.logging.logger import logger
from companion_core.prompts import build_prompt, load_persona
from companion_core.providers.base import CompletionProvider


FALLBACK_MESSAGE = "I'm sorry, I'm having trouble processing that right now. Could we try again?"


@dataclass
class OrchestratorConfig:
    provider: str
    model: str
    context_window: int = 5  # 拼进 prompt 的历史条数，不含本轮用户输入
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    fallback_message: str = FALLBACK_MESSAGE


class CompletionOrchestrator:
    def __init__(
        self,
        store: ConversationStore,
        provider_client: CompletionProvider,
        config: Optional[OrchestratorConfig] = None,
        persona: Optional[str] = None,
    ):
        self._store = store
        self._provider_client = provider_client
        self._config = config or OrchestratorConfig(
            provider=getattr(provider_client, "name", "unknown"),
            model=getattr(settings, "default_model", "companion-chat"),
            context_window=getattr(settings, "context_window_messages", 5),
        )
        self._persona = persona if persona is not None else load_persona()
        self._pending = False
        self._guard = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    async def submit(self, conversation: Conversation, user_text: str) -> Conversation:
        """处理一次用户输入。

        空输入或已有请求进行中时直接返回（不改状态、不调用 provider）。
        否则保证：用户消息 -> provider 调用 -> 助手消息 -> pending 清除，严格按此顺序，
        且每条用户消息之后一定追加恰好一条助手消息（成功回复或兜底文案）。

        Args:
            conversation: 由调用方持有的会话，本方法只追加不替换
            user_text: 用户原始输入

        Returns:
            同一个会话对象
        """
        text = (user_text or "").strip()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "conversation_id": conversation.id,
        }
        if not text:
            self._log(logging.DEBUG, "Ignored empty input", log_ctx)
            return conversation

        # pending 的检查与置位必须原子，且发生在第一个 await 之前
        with self._guard:
            if self._pending:
                self._log(logging.DEBUG, "Rejected submission while pending", log_ctx)
                return conversation
            self._pending = True

        start_time = time.time()
        try:
            # 窗口取自追加用户消息之前的历史
            window: List[Message] = list(
                self._store.recent_window(conversation, self._config.context_window)
            )
            self._store.append(conversation, Message(role="user", content=text))
            self._log(
                logging.INFO,
                "Stored user message",
                log_ctx,
                message_count=len(conversation),
            )

            prompt = build_prompt(self._persona, window, text)
            try:
                reply = await self._complete(prompt, window, log_ctx)
            except asyncio.CancelledError:
                self._log(logging.WARNING, "Provider call cancelled", log_ctx)
                self._store.append(
                    conversation, Message(role="assistant", content=self._config.fallback_message)
                )
                raise
            self._store.append(conversation, Message(role="assistant", content=reply))
            self._log(
                logging.INFO,
                "Stored assistant message",
                log_ctx,
                message_count=len(conversation),
                fallback=reply == self._config.fallback_message,
            )
        finally:
            self._pending = False
            self._log(
                logging.INFO,
                "Completed submission",
                log_ctx,
                elapsed_seconds=round(time.time() - start_time, 2),
            )
        return conversation

    async def _complete(self, prompt: str, window: List[Message], log_ctx: Dict[str, Any]) -> str:
        """调用 provider，任何异常都记录日志并返回兜底文案。"""

        self._log(
            logging.INFO,
            "Calling provider",
            log_ctx,
            provider=self._config.provider,
            model=self._config.model,
            window_size=len(window),
            prompt_chars=len(prompt),
        )
        try:
            result = await self._provider_client.complete(prompt, self._config.generation)
            text = getattr(result, "text", None)
            if not isinstance(text, str) or not text.strip():
                raise MalformedResponseError(code="EMPTY_RESPONSE", message="Provider returned no text")
        except BusinessError as e:
            self._log(
                logging.ERROR,
                "Provider call failed",
                log_ctx,
                error_code=e.code,
                http_status=e.http_status,
                error=e.message,
            )
            return self._config.fallback_message
        except Exception:
            logger.exception("Provider call failed", extra={"extra": dict(log_ctx)})
            return self._config.fallback_message

        if result.usage:
            self._log(
                logging.INFO,
                "Token usage",
                log_ctx,
                prompt_tokens=result.usage.prompt_tokens,
                completion_tokens=result.usage.completion_tokens,
                total_tokens=result.usage.total_tokens,
            )
        return text

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
