import pytest

from chat_core.domain.exceptions import ContentBlockedError, ProviderError, UpstreamError, ValidationError
from chat_core.domain.models import Message, Role
from chat_core.relay.service import ChatRelay, parse_history

from fakes import FakeProvider

BLOCKED = ProviderError("[GoogleGenerativeAI Error]: Candidate was blocked, block_reason: toxicity")


def test_relay_seeds_history_and_sends_last_turn():
    provider = FakeProvider(reply="Fine, thanks.")
    relay = ChatRelay(provider)
    history = [Message.user("Hi"), Message.assistant("Hello!"), Message.user("How are you?")]
    reply = relay.relay(history)
    assert reply == Message(role=Role.ASSISTANT, content="Fine, thanks.")
    assert provider.histories == [history[:2]]
    assert provider.sent == ["How are you?"]


def test_relay_rejects_empty_history():
    with pytest.raises(ValidationError):
        ChatRelay(FakeProvider()).relay([])


def test_relay_rejects_history_ending_with_assistant():
    with pytest.raises(ValidationError):
        ChatRelay(FakeProvider()).relay([Message.user("Hi"), Message.assistant("Hello")])


def test_relay_translates_safety_rejection():
    with pytest.raises(ContentBlockedError) as exc:
        ChatRelay(FakeProvider(error=BLOCKED)).relay([Message.user("bad")])
    assert exc.value.reason == "toxicity"
    assert exc.value.message == "Content blocked: toxicity"


def test_relay_translates_generic_failure():
    with pytest.raises(UpstreamError) as exc:
        ChatRelay(FakeProvider(error=RuntimeError("quota exceeded"))).relay([Message.user("hi")])
    assert exc.value.message == "API Error"


def test_relay_rejects_non_text_reply():
    with pytest.raises(UpstreamError):
        ChatRelay(FakeProvider(reply=None)).relay([Message.user("hi")])


def test_parse_history_validates_body():
    assert parse_history({"messages": [{"role": "user", "content": "a"}]}) == [Message.user("a")]
    for bad in (None, [], {"messages": "x"}, {"messages": [{"role": "model", "content": "a"}]}):
        with pytest.raises(ValidationError):
            parse_history(bad)


def test_handle_success():
    status, body = ChatRelay(FakeProvider()).handle({"messages": [{"role": "user", "content": "Hi"}]})
    assert status == 200
    assert body == {"role": "assistant", "content": "Hello!"}


def test_handle_blocked():
    status, body = ChatRelay(FakeProvider(error=BLOCKED)).handle({"messages": [{"role": "user", "content": "x"}]})
    assert status == 500
    assert body == {"error": "Content blocked: toxicity"}


def test_handle_bad_request():
    status, body = ChatRelay(FakeProvider()).handle({"messages": []})
    assert status == 400
    assert isinstance(body["error"], str)


@pytest.mark.parametrize(
    "provider",
    [FakeProvider(), FakeProvider(error=BLOCKED), FakeProvider(error=ValueError("boom")), FakeProvider(reply=42)],
)
@pytest.mark.parametrize(
    "history",
    [
        [{"role": "user", "content": "Hi"}],
        [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Yo"}, {"role": "user", "content": "?"}],
    ],
)
def test_handle_never_returns_malformed_payload(provider, history):
    status, body = ChatRelay(provider).handle({"messages": history})
    if status == 200:
        assert body["role"] == "assistant"
        assert isinstance(body["content"], str)
    else:
        assert set(body) == {"error"}
        assert isinstance(body["error"], str)
