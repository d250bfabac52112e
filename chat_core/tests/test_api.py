from fastapi.testclient import TestClient

from chat_core.api.app import create_app
from chat_core.domain.exceptions import ProviderError
from chat_core.relay.service import ChatRelay

from fakes import FakeProvider


def make_client(provider=None):
    return TestClient(create_app(relay=ChatRelay(provider or FakeProvider())))


def test_chat_endpoint_success():
    client = make_client()
    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]})
    assert resp.status_code == 200
    assert resp.json() == {"role": "assistant", "content": "Hello!"}


def test_chat_endpoint_content_blocked():
    client = make_client(FakeProvider(error=ProviderError("blocked, block_reason: toxicity")))
    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "x"}]})
    assert resp.status_code != 200
    assert resp.json() == {"error": "Content blocked: toxicity"}


def test_chat_endpoint_upstream_error():
    client = make_client(FakeProvider(error=TimeoutError("deadline exceeded")))
    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "x"}]})
    assert resp.status_code == 500
    assert resp.json() == {"error": "API Error"}


def test_chat_endpoint_invalid_json():
    client = make_client()
    resp = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_chat_endpoint_empty_messages():
    client = make_client()
    resp = client.post("/api/chat", json={"messages": []})
    assert resp.status_code == 400
    assert set(resp.json()) == {"error"}


def test_render_endpoint():
    client = make_client()
    resp = client.post("/api/render", json={"markdown": "**hi**"})
    assert resp.status_code == 200
    assert "<strong>hi</strong>" in resp.json()["html"]
    assert client.post("/api/render", json={"markdown": 1}).status_code == 400


def test_health_endpoint():
    resp = make_client().get("/api/health")
    assert resp.json() == {"status": "ok", "model": "fake-model"}
