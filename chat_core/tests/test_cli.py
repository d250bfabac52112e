from click.testing import CliRunner

from chat_core import cli as cli_module
from chat_core.infrastructure.storage.blob_store import MemoryBlobStore
from chat_core.infrastructure.storage.conversation_store import ConversationStore
from chat_core.session.controller import SessionController

from fakes import FakeRelayClient


def make_controller():
    store = ConversationStore(MemoryBlobStore(), key="conversations")
    return SessionController(store, FakeRelayClient()).hydrate()


def test_chat_command_round_trip(monkeypatch):
    controller = make_controller()
    monkeypatch.setattr("chat_core.api.service.build_controller", lambda **kw: controller)
    result = CliRunner().invoke(cli_module.cli, ["chat"], input="Hi\n/list\n/quit\n")
    assert result.exit_code == 0, result.output
    assert "assistant> Hello!" in result.output
    assert "* " + controller.active_id in result.output
    assert controller.active_conversation.title == "Hi"


def test_chat_command_unknown_conversation(monkeypatch):
    monkeypatch.setattr("chat_core.api.service.build_controller", lambda **kw: make_controller())
    result = CliRunner().invoke(cli_module.cli, ["chat", "--conversation", "missing"])
    assert result.exit_code != 0
    assert "Unknown conversation" in result.output


def test_list_command(monkeypatch):
    monkeypatch.setattr(
        "chat_core.api.service.list_conversations",
        lambda: [{"id": "c-1", "title": "Hi", "timestamp": "2024-01-01T00:00:00Z", "message_count": 2}],
    )
    result = CliRunner().invoke(cli_module.cli, ["list"])
    assert result.exit_code == 0
    assert "c-1" in result.output
    assert "Hi" in result.output
