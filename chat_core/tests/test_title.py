import httpx
import pytest

from chat_core.agents.assistant import DEFAULT_EMPTY_TITLE, Assistant, AssistantConfig, clean_title
from chat_core.domain.conversation import ROLE_ASSISTANT, ROLE_USER, Conversation
from chat_core.domain.exceptions import ApiError, TitleGenerationFailed
from chat_core.domain.models import ChatChoice, ChatMessage, ChatResult
from chat_core.providers.chat_completions import ChatCompletionsClient
from chat_core.providers.registry import OPENAI_CONFIG
from chat_core.tools.registry import ToolRegistry


class TitleProvider:
    name = "fake"

    def __init__(self, content="Weather in Barcelona", error=None, choices=True):
        self._content = content
        self._error = error
        self._choices = choices
        self.requests = []

    def chat(self, req, ctx=None):
        self.requests.append(req)
        if self._error:
            raise self._error
        if not self._choices:
            return ChatResult(provider="fake", model=req.model, choices=[])
        msg = ChatMessage(role="assistant", content=self._content)
        return ChatResult(provider="fake", model=req.model, choices=[ChatChoice(index=0, message=msg)])


def _assistant(provider):
    return Assistant(provider, ToolRegistry(), AssistantConfig())


def test_empty_conversation_gets_default_title_without_model_call():
    provider = TitleProvider()
    conv = Conversation.start("hi")
    conv.messages = []

    assert _assistant(provider).title(conv) == DEFAULT_EMPTY_TITLE
    assert provider.requests == []


def test_title_uses_only_user_messages_and_title_model():
    provider = TitleProvider()
    conv = Conversation.start("What's the weather in Barcelona?")
    conv.append(ROLE_ASSISTANT, "Sunny, 24°C")
    conv.append(ROLE_USER, "And tomorrow?")

    title = _assistant(provider).title(conv)

    assert title == "Weather in Barcelona"
    req = provider.requests[0]
    assert req.model == "title"
    assert not req.tools
    assert [m.role for m in req.messages] == ["system", "user", "user"]
    assert req.messages[2].content == "And tomorrow?"
    assert "title generator" in req.messages[0].content


def test_title_is_cleaned():
    provider = TitleProvider(content='  "Weather in\nBarcelona"  ')
    assert _assistant(provider).title(Conversation.start("weather?")) == "Weather in Barcelona"


def test_title_is_truncated_to_80_characters():
    provider = TitleProvider(content="word " * 40)
    title = _assistant(provider).title(Conversation.start("long"))

    assert 0 < len(title) <= 80
    assert title.startswith("word word")
    assert not title.endswith(" ")


def test_clean_title_strips_dashes_and_collapses_spaces():
    assert clean_title("- Trip   planning -") == "Trip planning"
    assert clean_title("'Today's Date'") == "Today's Date"


@pytest.mark.parametrize(
    "provider",
    [
        TitleProvider(error=ApiError(code="API_ERROR", message="boom", http_status=500)),
        TitleProvider(content="   "),
        TitleProvider(content='""'),
        TitleProvider(choices=False),
    ],
)
def test_title_failures_raise(provider):
    with pytest.raises(TitleGenerationFailed):
        _assistant(provider).title(Conversation.start("hi"))


def test_non_json_model_response_raises_title_failure(monkeypatch):
    real_client = httpx.Client

    def html_page(request):
        return httpx.Response(200, text="<html>proxy login</html>", headers={"Content-Type": "text/html"})

    monkeypatch.setattr(
        "httpx.Client", lambda **kw: real_client(transport=httpx.MockTransport(html_page), **kw)
    )

    class SettingsStub:
        openai_api_key = "sk-test-123456"
        openai_base_url = "https://api.openai.test/v1"
        http_timeout = 1.0

    assistant = _assistant(ChatCompletionsClient(OPENAI_CONFIG, SettingsStub()))

    with pytest.raises(TitleGenerationFailed) as exc:
        assistant.title(Conversation.start("What's the weather in Barcelona?"))
    assert "invalid JSON" in exc.value.message
