import threading

import pytest

from chat_core.api.service import ChatService
from chat_core.domain.conversation import DEFAULT_TITLE, Conversation
from chat_core.domain.exceptions import (
    ApiError,
    InvalidArgument,
    NotFound,
    TitleGenerationFailed,
)
from chat_core.infrastructure.storage.json_store import JsonConversationStore


class FakeAssistant:
    def __init__(self, reply="Hello!", title="Greeting", reply_error=None, title_error=None, barrier=None):
        self._reply = reply
        self._title = title
        self._reply_error = reply_error
        self._title_error = title_error
        self._barrier = barrier
        self.reply_calls = []
        self.title_calls = 0

    def reply(self, conversation, ctx=None):
        if self._barrier:
            self._barrier.wait()
        self.reply_calls.append([(m.role, m.content) for m in conversation.messages])
        if self._reply_error:
            raise self._reply_error
        return self._reply

    def title(self, conversation, ctx=None):
        if self._barrier:
            self._barrier.wait()
        self.title_calls += 1
        if self._title_error:
            raise self._title_error
        return self._title


class RecordingStore(JsonConversationStore):
    def __init__(self, root):
        super().__init__(root)
        self.created = 0
        self.updated = 0

    def create(self, conversation):
        self.created += 1
        super().create(conversation)

    def update(self, conversation):
        self.updated += 1
        super().update(conversation)


@pytest.fixture
def store(tmp_path):
    return RecordingStore(tmp_path / ".storage")


def test_start_conversation_persists_title_and_reply(store):
    service = ChatService(store, FakeAssistant())

    result = service.start_conversation("hi there")

    assert result.title == "Greeting"
    assert result.reply == "Hello!"
    assert store.created == 1
    conv = store.describe(result.conversation_id)
    assert conv.title == "Greeting"
    assert [(m.role, m.content) for m in conv.messages] == [("user", "hi there"), ("assistant", "Hello!")]


def test_start_conversation_runs_title_and_reply_concurrently(store):
    barrier = threading.Barrier(2, timeout=5)
    service = ChatService(store, FakeAssistant(barrier=barrier))

    result = service.start_conversation("hi")

    assert result.title == "Greeting"
    assert result.reply == "Hello!"


@pytest.mark.parametrize("message", ["", "   ", "\n\t"])
def test_start_conversation_rejects_blank_message(store, message):
    assistant = FakeAssistant()
    service = ChatService(store, assistant)

    with pytest.raises(InvalidArgument):
        service.start_conversation(message)
    assert store.created == 0
    assert assistant.reply_calls == []


def test_start_conversation_reply_failure_persists_nothing(store):
    error = ApiError(code="API_ERROR", message="model down", http_status=502)
    service = ChatService(store, FakeAssistant(reply_error=error))

    with pytest.raises(ApiError):
        service.start_conversation("hi")
    assert store.created == 0
    assert store.list() == []


def test_start_conversation_title_failure_keeps_default(store):
    service = ChatService(store, FakeAssistant(title_error=TitleGenerationFailed("nope")))

    result = service.start_conversation("hi")

    assert result.title == DEFAULT_TITLE
    assert result.reply == "Hello!"
    assert store.describe(result.conversation_id).title == DEFAULT_TITLE


def _seed(store):
    conv = Conversation.start("first")
    conv.append("assistant", "first answer")
    store.create(conv)
    return conv.id


def test_continue_conversation_appends_and_updates(store):
    conv_id = _seed(store)
    assistant = FakeAssistant(reply="second answer")
    service = ChatService(store, assistant)

    result = service.continue_conversation(conv_id, "second")

    assert result.reply == "second answer"
    assert assistant.reply_calls[0][-1] == ("user", "second")
    assert store.updated == 1
    conv = store.describe(conv_id)
    assert [m.content for m in conv.messages] == ["first", "first answer", "second", "second answer"]
    assert conv.version == 1


def test_continue_unknown_conversation_raises_not_found(store):
    assistant = FakeAssistant()
    service = ChatService(store, assistant)

    with pytest.raises(NotFound):
        service.continue_conversation("c-missing", "hello")
    assert store.updated == 0
    assert assistant.reply_calls == []


def test_continue_reply_failure_leaves_conversation_untouched(store):
    conv_id = _seed(store)
    error = ApiError(code="API_ERROR", message="model down", http_status=502)
    service = ChatService(store, FakeAssistant(reply_error=error))

    with pytest.raises(ApiError):
        service.continue_conversation(conv_id, "second")
    assert store.updated == 0
    assert len(store.describe(conv_id).messages) == 2


@pytest.mark.parametrize("conv_id,message", [("", "hi"), ("c-1", ""), ("  ", "  ")])
def test_continue_rejects_blank_arguments(store, conv_id, message):
    service = ChatService(store, FakeAssistant())

    with pytest.raises(InvalidArgument):
        service.continue_conversation(conv_id, message)


def test_describe_and_list(store):
    conv_id = _seed(store)
    service = ChatService(store, FakeAssistant())

    with pytest.raises(InvalidArgument):
        service.describe_conversation("")
    with pytest.raises(NotFound):
        service.describe_conversation("c-missing")

    assert len(service.describe_conversation(conv_id).messages) == 2
    listed = service.list_conversations()
    assert [c.id for c in listed] == [conv_id]
    assert listed[0].messages == []
