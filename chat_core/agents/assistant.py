"""对话助手：生成回复与会话标题。

回复走 flows.graph 中的 LangGraph 状态机（带工具调用循环），
标题是一次不带工具的模型调用。Assistant 构建后只读，可跨线程共享。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from chat_core.config.settings import settings
from chat_core.domain.context import RequestContext
from chat_core.domain.conversation import ROLE_ASSISTANT, ROLE_USER, Conversation
from chat_core.domain.exceptions import BusinessError, EmptyConversation, TitleGenerationFailed
from chat_core.domain.models import ChatMessage, ChatRequest
from chat_core.flows.graph import MAX_ITERATIONS_REPLY, build_reply_graph, recursion_limit
from chat_core.flows.state import AWAITING_MODEL, ReplyState
from chat_core.infrastructure.logging.logger import log_event
from chat_core.prompts import load_system_prompt
from chat_core.providers.base import ProviderClient
from chat_core.tools.registry import ToolRegistry

__all__ = [
    "Assistant",
    "AssistantConfig",
    "ReplyOutcome",
    "DEFAULT_EMPTY_TITLE",
    "MAX_ITERATIONS_REPLY",
    "MAX_TITLE_LENGTH",
]

DEFAULT_EMPTY_TITLE = "An empty conversation"
MAX_TITLE_LENGTH = 80
MAX_TOOL_ROUNDS = 15

_TITLE_STRIP = " \t\r\n-\"'"
_WHITESPACE = re.compile(r"\s+")


@dataclass
class AssistantConfig:
    reply_model: str = "chat"
    title_model: str = "title"
    max_tool_rounds: int = MAX_TOOL_ROUNDS  # 模型往返次数上限，最大 15
    allow_empty_reply: bool = False
    locale: str = "en"

    @classmethod
    def from_settings(cls, cfg=settings) -> "AssistantConfig":
        return cls(
            reply_model=cfg.default_model,
            title_model=cfg.title_model,
            max_tool_rounds=min(cfg.max_tool_rounds, MAX_TOOL_ROUNDS),
            allow_empty_reply=cfg.allow_empty_reply,
        )


@dataclass
class ReplyOutcome:
    """一次 reply 的结果及诊断信息。"""

    reply: str
    status: str
    rounds: int
    tool_calls: int = 0
    messages: List[ChatMessage] = field(default_factory=list)


def clean_title(raw: str) -> str:
    """标题清洗：换行转空格、去首尾引号/短横线、合并空白、截断到 80 字符。"""
    title = raw.replace("\r", " ").replace("\n", " ").strip(_TITLE_STRIP)
    title = _WHITESPACE.sub(" ", title)
    if len(title) > MAX_TITLE_LENGTH:
        title = title[:MAX_TITLE_LENGTH].strip(_TITLE_STRIP)
    return title


class Assistant:
    def __init__(
        self,
        provider_client: ProviderClient,
        registry: ToolRegistry,
        config: Optional[AssistantConfig] = None,
    ):
        self._provider_client = provider_client
        self._registry = registry
        self._config = config or AssistantConfig.from_settings()
        if not 1 <= self._config.max_tool_rounds <= MAX_TOOL_ROUNDS:
            raise ValueError(f"max_tool_rounds must be between 1 and {MAX_TOOL_ROUNDS}")
        self._graph = build_reply_graph(
            provider_client,
            registry,
            model=self._config.reply_model,
            max_rounds=self._config.max_tool_rounds,
            allow_empty_reply=self._config.allow_empty_reply,
        )

    @property
    def config(self) -> AssistantConfig:
        return self._config

    def reply(self, conversation: Conversation, ctx: Optional[RequestContext] = None) -> str:
        return self.reply_with_trace(conversation, ctx).reply

    def reply_with_trace(self, conversation: Conversation, ctx: Optional[RequestContext] = None) -> ReplyOutcome:
        """运行回复循环并返回带诊断信息的结果。

        模型错误、ToolNotFound 与取消都会原样抛出；达到轮次上限时
        返回固定致歉文本而不是报错。
        """
        if not conversation.messages:
            raise EmptyConversation()

        log_ctx = self._log_ctx(conversation, ctx)
        log_event(logging.INFO, "Generating reply for conversation", log_ctx, messages=len(conversation.messages))

        initial: ReplyState = {
            "messages": self._reply_context(conversation),
            "iterations": 0,
            "tool_calls": 0,
            "status": AWAITING_MODEL,
            "pending_calls": [],
            "reply": None,
            "ctx": ctx,
            "log_ctx": log_ctx,
        }
        final = self._graph.invoke(
            initial,
            config={"recursion_limit": recursion_limit(self._config.max_tool_rounds)},
        )

        outcome = ReplyOutcome(
            reply=final.get("reply") or "",
            status=final.get("status", ""),
            rounds=final.get("iterations", 0),
            tool_calls=final.get("tool_calls", 0),
            messages=list(final.get("messages", [])),
        )
        log_event(
            logging.INFO,
            "Completed reply",
            log_ctx,
            status=outcome.status,
            rounds=outcome.rounds,
            tool_calls=outcome.tool_calls,
        )
        return outcome

    def title(self, conversation: Conversation, ctx: Optional[RequestContext] = None) -> str:
        if not conversation.messages:
            return DEFAULT_EMPTY_TITLE

        log_ctx = self._log_ctx(conversation, ctx)
        log_event(logging.INFO, "Generating title for conversation", log_ctx)

        messages = [ChatMessage(role="system", content=load_system_prompt("title", self._config.locale))]
        messages.extend(
            ChatMessage(role="user", content=m.content) for m in conversation.messages if m.role == ROLE_USER
        )
        req = ChatRequest(
            provider=self._provider_client.name,
            model=self._config.title_model,
            messages=messages,
            tool_choice="none",
        )
        try:
            result = self._provider_client.chat(req, ctx)
        except BusinessError as e:
            raise TitleGenerationFailed(e.message) from e

        content = result.choices[0].message.content if result.choices else ""
        if not (content or "").strip():
            raise TitleGenerationFailed("empty response from the model for title generation")

        title = clean_title(content)
        if not title:
            raise TitleGenerationFailed("title is empty after cleanup")
        log_event(logging.INFO, "Generated title", log_ctx, title=title)
        return title

    def _reply_context(self, conversation: Conversation) -> List[ChatMessage]:
        messages = [ChatMessage(role="system", content=load_system_prompt("reply", self._config.locale))]
        for m in conversation.messages:
            if m.role in (ROLE_USER, ROLE_ASSISTANT):
                messages.append(ChatMessage(role=m.role, content=m.content))
        return messages

    def _log_ctx(self, conversation: Conversation, ctx: Optional[RequestContext]) -> Dict[str, Any]:
        log_ctx: Dict[str, Any] = {
            "conversation_id": conversation.id,
            "provider": self._provider_client.name,
        }
        if ctx is not None:
            log_ctx["trace_id"] = ctx.trace_id
        return log_ctx
