import pytest
from fastapi.testclient import TestClient

from groqchat.errors import RemoteApiError
from groqchat.main import create_app

from .conftest import make_client


@pytest.fixture
def llm():
    return make_client("Hi! I'm **here**.")


@pytest.fixture
def api(tmp_path, llm):
    app = create_app(data_dir=tmp_path / "data", client=llm)
    with TestClient(app) as client:
        yield client


def _save_key(api, key="gsk_api_test_abcdef"):
    resp = api.put("/api/credential", json={"api_key": key})
    assert resp.status_code == 200
    return resp.json()


def test_health(api):
    assert api.get("/api/health").json()["status"] == "ok"


def test_credential_flow(api):
    assert api.get("/api/credential").json() == {"configured": False, "masked": ""}
    assert api.put("/api/credential", json={"api_key": "  "}).status_code == 400
    status = _save_key(api)
    assert status == {"configured": True, "masked": "gsk_****cdef"}
    assert "gsk_api_test_abcdef" not in api.get("/api/credential").text


def test_send_without_credential(api, llm):
    resp = api.post("/api/chat/send", json={"message": "hi"})
    assert resp.status_code == 401
    llm.complete.assert_not_awaited()


def test_send_blank_message(api):
    _save_key(api)
    assert api.post("/api/chat/send", json={"message": "  "}).status_code == 400


def test_send_and_history(api):
    _save_key(api)
    resp = api.post("/api/chat/send", json={"message": "hello"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["reply"]["content"] == "Hi! I'm **here**."
    assert body["reply"]["html"] == "Hi! I'm <strong>here</strong>."
    assert body["status"] == "idle"
    assert [t["role"] for t in body["turns"]] == ["user", "assistant"]

    history = api.get("/api/history").json()["conversations"]
    assert len(history) == 1
    assert history[0]["title"] == "hello"
    assert history[0]["turn_count"] == 2
    assert history[0]["when"] == "Just now"


def test_remote_failure(api, llm):
    _save_key(api)
    llm.complete.side_effect = RemoteApiError("Invalid API Key", status_code=401)
    resp = api.post("/api/chat/send", json={"message": "hello"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Invalid API Key"
    session = api.get("/api/chat/session").json()
    assert [t["role"] for t in session["turns"]] == ["user"]
    assert api.get("/api/history").json()["conversations"] == []


def test_export(api):
    assert api.get("/api/chat/export").status_code == 400
    _save_key(api)
    api.post("/api/chat/send", json={"message": "hello"})
    resp = api.get("/api/chat/export")
    assert resp.status_code == 200
    assert resp.text == "You: hello\n\nAI: Hi! I'm **here**.\n\n"
    assert resp.headers["content-type"].startswith("text/plain")
    assert "groqchat-chat-" in resp.headers["content-disposition"]


def test_new_chat_and_load(api):
    _save_key(api)
    api.post("/api/chat/send", json={"message": "hello"})
    record_id = api.get("/api/history").json()["conversations"][0]["id"]

    assert api.post("/api/chat/new").json()["turns"] == []

    loaded = api.post(f"/api/history/{record_id}/load").json()
    assert [t["content"] for t in loaded["turns"]] == ["hello", "Hi! I'm **here**."]
    assert api.post("/api/history/123/load").status_code == 404
    assert api.get(f"/api/history/{record_id}").status_code in (404, 405)


def test_clear_history(api):
    _save_key(api)
    api.post("/api/chat/send", json={"message": "hello"})
    assert api.delete("/api/history").json() == {"status": "cleared"}
    assert api.get("/api/history").json()["conversations"] == []


def test_settings_roundtrip(api):
    settings = api.get("/api/settings").json()
    assert settings["maxTokens"] == 1024

    updated = {**settings, "model": "llama-3.1-8b-instant", "temperature": 0.1, "darkMode": False}
    resp = api.put("/api/settings", json=updated)
    assert resp.status_code == 200
    assert api.get("/api/settings").json() == updated

    bad = {**updated, "temperature": 5}
    assert api.put("/api/settings", json=bad).status_code == 422

    models = api.get("/api/settings/models").json()
    assert models["current"] == "llama-3.1-8b-instant"
    assert "llama-3.3-70b-versatile" in models["models"]
