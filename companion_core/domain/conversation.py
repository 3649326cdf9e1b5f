"""会话模型与内存存储。

会话是只追加的消息序列：没有删除、编辑或重排操作。
展示层可以直接读取 ``Conversation.messages``，也可以通过
``subscribe`` 注册回调，在每次追加后收到通知。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import islice
from typing import Callable, Iterator, List, Protocol, Tuple
from uuid import uuid4

from companion_core.infrastructure.logging.logger import logger

from .models import Message


GREETING = "Hello! How are you feeling today?"

Listener = Callable[["Conversation", Message], None]


@dataclass
class Conversation:
    id: str
    created_at: datetime
    _messages: List[Message] = field(default_factory=list, repr=False)
    _listeners: List[Listener] = field(default_factory=list, repr=False)

    @property
    def messages(self) -> Tuple[Message, ...]:
        """只读快照，按追加顺序排列。"""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册追加通知回调，返回取消订阅函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


class ConversationStore(Protocol):
    def initialize(self) -> Conversation:
        ...

    def append(self, conversation: Conversation, message: Message) -> Conversation:
        ...

    def recent_window(self, conversation: Conversation, n: int) -> Iterator[Message]:
        ...


class InMemoryConversationStore:
    """单进程内存存储，不做持久化。"""

    def __init__(self, greeting: str = GREETING):
        self._greeting = greeting

    def initialize(self) -> Conversation:
        conv = Conversation(id=f"c-{uuid4().hex}", created_at=datetime.now(timezone.utc))
        conv._messages.append(Message(role="assistant", content=self._greeting))
        return conv

    def append(self, conversation: Conversation, message: Message) -> Conversation:
        # 不校验 user/assistant 交替，只保证追加顺序与调用顺序一致
        conversation._messages.append(message)
        for listener in list(conversation._listeners):
            # 回调失败只记日志，追加本身必须成功
            try:
                listener(conversation, message)
            except Exception:
                logger.exception(
                    "Listener failed",
                    extra={"extra": {"conversation_id": conversation.id, "role": message.role}},
                )
        return conversation

    def recent_window(self, conversation: Conversation, n: int) -> Iterator[Message]:
        """惰性返回最近 n 条消息（原顺序），不足 n 条时返回全部。"""

        if n <= 0:
            return iter(())
        snapshot = conversation.messages
        return islice(snapshot, max(len(snapshot) - n, 0), None)
