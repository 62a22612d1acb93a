from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Literal, Protocol
from uuid import uuid4


MessageRole = Literal["user", "assistant"]

ROLE_USER: MessageRole = "user"
ROLE_ASSISTANT: MessageRole = "assistant"

DEFAULT_TITLE = "Untitled conversation"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_conversation_id() -> str:
    return f"c-{uuid4().hex}"


def new_message_id() -> str:
    return f"m-{uuid4().hex}"


@dataclass
class Message:
    id: str
    role: MessageRole
    content: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(cls, role: MessageRole, content: str) -> "Message":
        now = utcnow()
        return cls(id=new_message_id(), role=role, content=content, created_at=now, updated_at=now)


@dataclass
class Conversation:
    """持久化的会话。

    messages 按时间顺序追加；工具调用的中间消息不会出现在这里。
    version 用于乐观并发控制：存储层每次成功 update 后加 1。
    """

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    messages: List[Message] = field(default_factory=list)
    version: int = 0

    @classmethod
    def start(cls, first_message: str, title: str = DEFAULT_TITLE) -> "Conversation":
        now = utcnow()
        return cls(
            id=new_conversation_id(),
            title=title,
            created_at=now,
            updated_at=now,
            messages=[Message.create(ROLE_USER, first_message)],
        )

    def append(self, role: MessageRole, content: str) -> Message:
        msg = Message.create(role, content)
        self.messages.append(msg)
        self.updated_at = msg.created_at
        return msg

    def summary(self) -> "Conversation":
        """返回不带消息体的副本，用于列表展示。"""
        return replace(self, messages=[])


class ConversationStore(Protocol):
    def create(self, conversation: Conversation) -> None:
        ...

    def update(self, conversation: Conversation) -> None:
        ...

    def describe(self, conversation_id: str) -> Conversation:
        ...

    def list(self) -> List[Conversation]:
        ...
