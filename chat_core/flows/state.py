"""State definition for the reply loop graph."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict

from chat_core.domain.context import RequestContext
from chat_core.domain.models import ChatMessage
from chat_core.tools.definitions import ToolCall

AWAITING_MODEL = "awaiting_model"
EXECUTING_TOOLS = "executing_tools"
DONE = "done"
EXHAUSTED = "exhausted"


class ReplyState(TypedDict, total=False):
    """State shared across LangGraph nodes.

    messages 是本次请求私有的上下文副本，不会回写到会话存储。
    """

    messages: List[ChatMessage]
    iterations: int
    status: str
    pending_calls: List[ToolCall]
    tool_calls: int
    reply: Optional[str]
    ctx: Optional[RequestContext]
    log_ctx: Dict[str, Any]
