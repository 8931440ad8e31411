"""API integration tests (FastAPI TestClient, scheduler disabled)"""

from __future__ import annotations

import pytest
from conftest import CYCLE_DATE, RecordingSleep, RecordingTransport, StaticProvider
from fastapi.testclient import TestClient

from devdigest.api.app import create_app
from devdigest.api.middleware.auth import APIKeyAuth
from devdigest.delivery.dispatcher import Dispatcher
from devdigest.digest.renderer import Renderer
from devdigest.pipeline import Pipeline
from devdigest.storage.archive import Archiver

ADMIN_KEY = "test-admin-key"


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(store, transport, tmp_path):
    pipeline = Pipeline(
        store=store,
        dispatcher=Dispatcher(transport, attempt_timeout=None, sleep=RecordingSleep()),
        providers=[
            StaticProvider("news", "## Technology News\n\nheadline", name="news"),
            StaticProvider("body", "## Main Article\n\ntext", name="ai_body"),
        ],
        renderer=Renderer(clock=lambda: CYCLE_DATE),
        archiver=Archiver(tmp_path / "archive"),
        clock=lambda: CYCLE_DATE,
    )
    app = create_app(pipeline=pipeline, auth=APIKeyAuth(api_key=ADMIN_KEY), enable_scheduler=False)
    return TestClient(app)


def test_home_serves_subscribe_form(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "<form" in response.text
    assert 'action="/subscribe"' in response.text


def test_subscribe_json_created_then_idempotent(client, store):
    first = client.post("/subscribe", json={"email": "Alice@Example.com"})
    second = client.post("/subscribe", json={"email": "alice@example.com"})

    assert first.status_code == 201
    assert first.json() == {"email": "alice@example.com", "status": "subscribed"}
    assert second.status_code == 200
    assert second.json()["status"] == "already_subscribed"


def test_subscribe_form_returns_confirmation_page(client):
    response = client.post("/subscribe", data={"email": "bob@example.com"})

    assert response.status_code == 200
    assert "Thank you for subscribing" in response.text
    assert "bob@example.com" in response.text


@pytest.mark.parametrize(
    "body, detail",
    [
        ({"email": "not-an-email"}, "Invalid email address format"),
        ({}, "Email is required"),
        ({"email": "   "}, "Email is required"),
    ],
)
def test_subscribe_rejects_bad_email(client, body, detail):
    response = client.post("/subscribe", json=body)

    assert response.status_code == 400
    assert response.json()["detail"] == detail


def test_subscribe_rejects_malformed_json(client):
    response = client.post(
        "/subscribe", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400


def test_unsubscribe_flow(client):
    client.post("/subscribe", json={"email": "carol@example.com"})

    first = client.post("/unsubscribe", json={"email": "carol@example.com"})
    second = client.post("/unsubscribe", json={"email": "carol@example.com"})

    assert first.json()["status"] == "unsubscribed"
    assert second.json()["status"] == "not_subscribed"
    assert client.get("/unsubscribe").status_code == 200


def test_unsubscribe_form_returns_page(client):
    response = client.post("/unsubscribe", data={"email": "dave@example.com"})

    assert response.status_code == 200
    assert "dave@example.com" in response.text


def test_send_newsletter_requires_admin_key(client):
    assert client.post("/send-newsletter").status_code == 401
    assert client.post("/send-newsletter", json={"admin_key": "wrong"}).status_code == 403


@pytest.mark.parametrize("body", [{"adminKey": 123}, {"admin_key": []}, {"admin_key": {"k": "v"}}])
def test_send_newsletter_rejects_non_string_key(client, transport, body):
    response = client.post("/send-newsletter", json=body)

    assert response.status_code == 401
    assert response.json()["detail"] == "Unauthorized"
    assert transport.calls == []


def test_send_newsletter_empty_body_key_falls_back_to_header(client):
    response = client.post(
        "/send-newsletter",
        json={"admin_key": ""},
        headers={"Authorization": f"Bearer {ADMIN_KEY}"},
    )

    assert response.status_code == 200


def test_send_newsletter_with_bearer_key(client, transport):
    client.post("/subscribe", json={"email": "a@x.com"})
    client.post("/subscribe", json={"email": "b@x.com"})

    response = client.post("/send-newsletter", headers={"Authorization": f"Bearer {ADMIN_KEY}"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["detail"] == "Newsletter sent successfully"
    assert payload["report"]["delivered"] == 2
    assert payload["report"]["failed"] == 0
    assert sorted(r for r, _ in transport.sent) == ["a@x.com", "b@x.com"]


def test_send_newsletter_with_body_key(client):
    response = client.post("/send-newsletter", json={"adminKey": ADMIN_KEY})

    assert response.status_code == 200
    assert response.json()["report"]["archived"] is True


def test_send_newsletter_reports_store_failure(client, store_path):
    store_path.write_text("{broken")

    response = client.post("/send-newsletter", json={"admin_key": ADMIN_KEY})

    assert response.status_code == 500
    assert response.json()["detail"] == "Error sending newsletter"


def test_subscribe_with_broken_store_returns_500(client, store_path):
    store_path.write_text("{broken")

    response = client.post("/subscribe", json={"email": "a@x.com"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Error processing subscription"}


def test_health(client):
    client.post("/subscribe", json={"email": "a@x.com"})

    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "healthy"
    assert payload["store"] == {"status": "ok", "subscribers": 1}
    assert payload["schedule"] is None


def test_production_requires_admin_key(monkeypatch, store):
    monkeypatch.setattr("devdigest.api.app.is_production", lambda: True)
    monkeypatch.delenv("DEVDIGEST_ADMIN_API_KEY", raising=False)
    monkeypatch.delenv("ADMIN_KEY", raising=False)

    with pytest.raises(RuntimeError, match="Security misconfiguration"):
        create_app(store=store, auth=APIKeyAuth(), enable_scheduler=False)
