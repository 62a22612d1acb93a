import pytest
from typer.testing import CliRunner

from chat_core.api.service import ChatService
from chat_core.cli import main as cli
from chat_core.domain.conversation import Conversation
from chat_core.infrastructure.storage.json_store import JsonConversationStore
from chat_core.providers.registry import get_provider_config

runner = CliRunner()


class FakeAssistant:
    def reply(self, conversation, ctx=None):
        return "Hi there"

    def title(self, conversation, ctx=None):
        return "Greeting"


@pytest.fixture
def store(tmp_path, monkeypatch):
    store = JsonConversationStore(tmp_path / ".storage")
    service = ChatService(store, FakeAssistant())
    monkeypatch.setattr(cli, "create_default_service", lambda cfg=None: service)
    return store


def test_cli_start_prints_reply(store):
    result = runner.invoke(cli.app, ["start", "hello"])

    assert result.exit_code == 0, result.output
    assert "Hi there" in result.output
    assert len(store.list()) == 1


def test_cli_continue_and_describe(store):
    conv = Conversation.start("hello", title="Greeting")
    conv.append("assistant", "first answer")
    store.create(conv)

    result = runner.invoke(cli.app, ["continue", conv.id, "again"])
    assert result.exit_code == 0, result.output
    assert "Hi there" in result.output

    result = runner.invoke(cli.app, ["describe", conv.id])
    assert result.exit_code == 0, result.output
    assert "first answer" in result.output
    assert "again" in result.output


def test_cli_list(store):
    store.create(Conversation.start("hello", title="Greeting"))

    result = runner.invoke(cli.app, ["list"])

    assert result.exit_code == 0, result.output
    assert "Greeting" in result.output


def test_cli_business_error_exits_with_code(store):
    result = runner.invoke(cli.app, ["continue", "c-missing", "hello"])

    assert result.exit_code == 1
    assert "NOT_FOUND" in result.output


def test_cli_blank_message(store):
    result = runner.invoke(cli.app, ["start", "   "])

    assert result.exit_code == 1
    assert "INVALID_ARGUMENT" in result.output


def test_cli_unknown_provider_reports_error(monkeypatch):
    def misconfigured(cfg=None):
        get_provider_config("kimi")

    monkeypatch.setattr(cli, "create_default_service", misconfigured)

    result = runner.invoke(cli.app, ["list"])

    assert result.exit_code == 1
    assert "UNKNOWN_PROVIDER" in result.output
