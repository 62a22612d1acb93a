"""LangGraph construction and node implementations for the reply loop.

    awaiting_model --tool calls-->     executing_tools
    awaiting_model --no tool calls-->  END (done)
    executing_tools --rounds left-->   awaiting_model
    executing_tools --ceiling hit-->   exhausted --> END
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from chat_core.domain.exceptions import NoModelOutput, OperationCancelled, ToolNotFound
from chat_core.domain.models import ChatMessage, ChatRequest, ChatResult
from chat_core.flows.state import AWAITING_MODEL, DONE, EXECUTING_TOOLS, EXHAUSTED, ReplyState
from chat_core.infrastructure.logging.logger import log_event
from chat_core.providers.base import ProviderClient
from chat_core.tools.registry import ToolRegistry

MAX_ITERATIONS_REPLY = (
    "I'm sorry, I couldn't complete your request within the allowed number of steps. "
    "Please try rephrasing or simplifying your question."
)


def recursion_limit(max_rounds: int) -> int:
    """每轮 = 模型节点 + 工具节点，再加上 exhausted 与余量。"""
    return 2 * max_rounds + 3


def model_node(
    state: ReplyState,
    provider: ProviderClient,
    registry: ToolRegistry,
    model: str,
    allow_empty_reply: bool,
) -> Dict[str, Any]:
    ctx = state.get("ctx")
    log_ctx = state.get("log_ctx", {})
    if ctx is not None:
        ctx.check()

    iteration = state.get("iterations", 0) + 1
    messages = state["messages"]
    req = ChatRequest(
        provider=provider.name,
        model=model,
        messages=messages,
        tools=registry.definitions() or None,
        tool_choice="auto",
    )
    log_event(logging.INFO, "Calling provider", log_ctx, iteration=iteration, message_count=len(messages))
    result: ChatResult = provider.chat(req, ctx)
    if ctx is not None:
        ctx.check()

    if result.usage:
        log_event(
            logging.INFO,
            "Token usage",
            log_ctx,
            prompt_tokens=result.usage.prompt_tokens,
            completion_tokens=result.usage.completion_tokens,
            total_tokens=result.usage.total_tokens,
        )

    if not result.choices:
        raise NoModelOutput()

    message = result.choices[0].message
    if message.tool_calls:
        log_event(
            logging.INFO,
            "Model requested tools",
            log_ctx,
            iteration=iteration,
            tools=[call.name for call in message.tool_calls],
        )
        return {
            "messages": messages + [message],
            "pending_calls": list(message.tool_calls),
            "iterations": iteration,
            "status": EXECUTING_TOOLS,
        }

    content = message.content or ""
    if not content.strip() and not allow_empty_reply:
        raise NoModelOutput("model returned an empty reply")
    log_event(logging.INFO, "Model produced final answer", log_ctx, iteration=iteration)
    return {"reply": content, "iterations": iteration, "status": DONE, "pending_calls": []}


def tool_node(state: ReplyState, registry: ToolRegistry) -> Dict[str, Any]:
    ctx = state.get("ctx")
    log_ctx = state.get("log_ctx", {})
    messages: List[ChatMessage] = list(state["messages"])
    executed = state.get("tool_calls", 0)

    # 严格按模型给出的顺序逐个执行
    for call in state.get("pending_calls", []):
        log_event(logging.INFO, "Tool call received", log_ctx, tool=call.name, call_id=call.id, args=call.arguments[:200])
        try:
            content = registry.execute(call.name, call.arguments, ctx)
        except (ToolNotFound, OperationCancelled) as e:
            log_event(logging.ERROR, "Tool call aborted", log_ctx, tool=call.name, error=str(e))
            raise
        except Exception as e:
            log_event(logging.WARNING, "Tool call failed", log_ctx, tool=call.name, error=str(e))
            content = f"Error: {e}"
        executed += 1
        log_event(logging.INFO, "Tool call completed", log_ctx, tool=call.name, call_id=call.id, result=content[:120])
        messages.append(ChatMessage(role="tool", content=content, tool_call_id=call.id))

    return {
        "messages": messages,
        "pending_calls": [],
        "tool_calls": executed,
        "status": AWAITING_MODEL,
    }


def exhausted_node(state: ReplyState) -> Dict[str, Any]:
    log_event(logging.WARNING, "Reached max tool rounds", state.get("log_ctx", {}), iterations=state.get("iterations", 0))
    return {"reply": MAX_ITERATIONS_REPLY, "status": EXHAUSTED}


def model_router(state: ReplyState) -> str:
    if state.get("status") == EXECUTING_TOOLS:
        return EXECUTING_TOOLS
    return END


def build_reply_graph(
    provider: ProviderClient,
    registry: ToolRegistry,
    model: str,
    max_rounds: int,
    allow_empty_reply: bool = False,
) -> CompiledStateGraph:
    """构建回复循环状态机；max_rounds 为模型往返次数上限。"""

    def tool_router(state: ReplyState) -> str:
        if state.get("iterations", 0) >= max_rounds:
            return EXHAUSTED
        return AWAITING_MODEL

    graph = StateGraph(ReplyState)
    graph.add_node(AWAITING_MODEL, lambda s: model_node(s, provider, registry, model, allow_empty_reply))
    graph.add_node(EXECUTING_TOOLS, lambda s: tool_node(s, registry))
    graph.add_node(EXHAUSTED, exhausted_node)
    graph.set_entry_point(AWAITING_MODEL)
    graph.add_conditional_edges(AWAITING_MODEL, model_router, {EXECUTING_TOOLS: EXECUTING_TOOLS, END: END})
    graph.add_conditional_edges(
        EXECUTING_TOOLS, tool_router, {AWAITING_MODEL: AWAITING_MODEL, EXHAUSTED: EXHAUSTED}
    )
    graph.add_edge(EXHAUSTED, END)
    return graph.compile()
