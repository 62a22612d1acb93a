import threading
import time

import pytest

from chat_core.domain.context import RequestContext, call_in_context
from chat_core.domain.conversation import DEFAULT_TITLE, ROLE_ASSISTANT, Conversation
from chat_core.domain.exceptions import ApiError, OperationCancelled
from chat_core.domain.models import ChatMessage


def test_models_exist():
    cm = ChatMessage(role="user", content="hi")
    assert cm.role == "user"
    assert cm.tool_calls is None


def test_conversation_start_and_append():
    conv = Conversation.start("hello")
    assert conv.id.startswith("c-")
    assert conv.title == DEFAULT_TITLE
    assert conv.version == 0
    assert [m.role for m in conv.messages] == ["user"]

    msg = conv.append(ROLE_ASSISTANT, "hi")
    assert msg.id.startswith("m-")
    assert conv.updated_at == msg.created_at
    assert conv.updated_at >= conv.created_at


def test_conversation_summary_drops_messages():
    conv = Conversation.start("hello")
    summary = conv.summary()
    assert summary.messages == []
    assert summary.id == conv.id
    assert len(conv.messages) == 1


def test_request_context_cancel():
    ctx = RequestContext()
    ctx.check()
    ctx.cancel()
    assert ctx.cancelled
    with pytest.raises(OperationCancelled):
        ctx.check()


def test_request_context_deadline():
    ctx = RequestContext.with_timeout(0.01, trace_id="tr-test")
    assert ctx.trace_id == "tr-test"
    assert ctx.timeout(30.0) <= 0.01
    time.sleep(0.02)
    with pytest.raises(OperationCancelled):
        ctx.check()
    assert RequestContext().timeout(30.0) == 30.0


def test_request_context_run_returns_result_and_reraises():
    ctx = RequestContext()
    assert ctx.run(lambda a, b: a + b, 1, b=2) == 3

    def fail():
        raise ApiError(code="API_ERROR", message="bad")

    with pytest.raises(ApiError):
        ctx.run(fail)
    assert call_in_context(None, lambda: "direct") == "direct"


def test_request_context_run_stops_waiting_on_cancel():
    ctx = RequestContext()
    release = threading.Event()
    timer = threading.Timer(0.1, ctx.cancel)
    timer.start()

    started = time.monotonic()
    try:
        with pytest.raises(OperationCancelled):
            ctx.run(release.wait, 5)
        assert time.monotonic() - started < 2
    finally:
        release.set()
        timer.cancel()
