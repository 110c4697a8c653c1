import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from journal.app.core.config import settings
from journal.app.db.async_session import get_db
from journal.app.db.crud import get_user_by_id
from journal.app.main import create_app
from journal.app.providers.factory import get_inference_provider
from journal.app.providers.stripe_client import PaymentGateway, get_payment_gateway

BOOK_BODY = {"bookTitle": "Horská vesnice", "author": "Jan Novák"}


class StubGateway(PaymentGateway):
    def __init__(self, subscription=None, webhook_secret=""):
        super().__init__(api_key="sk_test", webhook_secret=webhook_secret)
        self.subscription = subscription

    async def retrieve_subscription(self, subscription_id):
        return self.subscription


@pytest.fixture
def provider_responses():
    return []


@pytest.fixture
def gateway():
    return StubGateway()


@pytest.fixture
def app(session_maker, scripted_provider, provider_responses, gateway):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    provider = scripted_provider(provider_responses)
    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_inference_provider] = lambda: provider
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.state.provider = provider
    return app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


def user_headers(user_id="user-1"):
    return {"X-User-Id": user_id}


def credits_left(session_maker, user_id="user-1"):
    async def _load():
        async with session_maker() as session:
            return (await get_user_by_id(session, user_id)).ai_credits_remaining

    return asyncio.run(_load())


def test_generate_requires_identity(client):
    resp = client.post("/api/generate-summary", json=BOOK_BODY)
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthenticated"


def test_generate_unknown_user(client):
    resp = client.post("/api/generate-summary", json=BOOK_BODY, headers=user_headers("ghost"))
    assert resp.status_code == 404
    assert resp.json()["error"] == "user_not_found"


def test_generate_summary(client, add_user, provider_responses, complete_cs, session_maker):
    asyncio.run(add_user())
    provider_responses.append(complete_cs)

    resp = client.post("/api/generate-summary", json=BOOK_BODY, headers=user_headers())

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["summary"] == complete_cs
    assert data["fromCache"] is False
    assert data["creditsRemaining"] == 2
    assert data["creditsTotal"] == 3
    assert data["attempts"] == 1
    assert data["incomplete"] is False
    assert resp.headers["X-Request-ID"]
    assert credits_left(session_maker) == 2


def test_repeat_request_served_from_cache(client, add_user, provider_responses, complete_cs, app):
    asyncio.run(add_user())
    provider_responses.append(complete_cs)

    client.post("/api/generate-summary", json=BOOK_BODY, headers=user_headers())
    resp = client.post("/api/generate-summary", json=BOOK_BODY, headers=user_headers())

    assert resp.json()["fromCache"] is True
    assert resp.json()["creditsRemaining"] == 2
    assert len(app.state.provider.calls) == 1


def test_camel_case_preferences(client, add_user, provider_responses, study_guide_cs, app):
    asyncio.run(add_user(tier="premium", remaining=100, total=100))
    provider_responses.append(study_guide_cs)

    body = dict(BOOK_BODY, preferences={"studyGuide": True, "examFocus": True, "length": "long"})
    resp = client.post("/api/generate-summary", json=body, headers=user_headers())

    assert resp.status_code == 200, resp.text
    prompt = app.state.provider.calls[0]["messages"][1]["content"]
    assert "# Horská vesnice" in prompt
    assert "## Možné otázky k maturitě" in prompt


def test_invalid_preference_rejected(client, add_user):
    asyncio.run(add_user())
    body = dict(BOOK_BODY, preferences={"style": "poetic"})
    resp = client.post("/api/generate-summary", json=body, headers=user_headers())
    assert resp.status_code == 422


def test_generate_with_no_credits(client, add_user, app):
    asyncio.run(add_user(remaining=0))

    resp = client.post("/api/generate-summary", json=BOOK_BODY, headers=user_headers())

    assert resp.status_code == 429
    assert resp.json()["creditsRemaining"] == 0
    assert app.state.provider.calls == []


def test_upstream_failure_is_bad_gateway(client, add_user, provider_responses, session_maker):
    asyncio.run(add_user())
    provider_responses.extend(["", "", ""])

    resp = client.post("/api/generate-summary", json=BOOK_BODY, headers=user_headers())

    assert resp.status_code == 502
    assert resp.json()["attempts"] == 3
    assert credits_left(session_maker) == 3


def test_author_summary_needs_upgrade(client, add_user):
    asyncio.run(add_user())

    resp = client.post(
        "/api/generate-author-summary", json={"author": "Karel Čapek"}, headers=user_headers()
    )

    assert resp.status_code == 403
    data = resp.json()
    assert data["required_tier"] == "basic"
    assert data["actions"][0]["url"] == "/subscription"


def test_author_summary(client, add_user, provider_responses, complete_cs):
    asyncio.run(add_user(tier="basic", remaining=50, total=50))
    provider_responses.append(complete_cs)

    resp = client.post(
        "/api/generate-author-summary",
        json={"author": "Karel Čapek", "preferences": {"includeTimeline": True, "language": "en"}},
        headers=user_headers(),
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["creditsRemaining"] == 49


def test_get_subscription(client, add_user):
    asyncio.run(add_user(tier="basic", remaining=12, total=50))

    resp = client.get("/api/subscription", headers=user_headers())

    assert resp.status_code == 200
    data = resp.json()
    assert data["tier"] == "basic"
    assert data["aiCreditsRemaining"] == 12
    assert data["aiCreditsTotal"] == 50
    assert data["maxBooks"] == 50
    assert "ai_author_summary" in data["features"]
    assert data["cancelAtPeriodEnd"] is False


def test_use_credit(client, add_user):
    asyncio.run(add_user(remaining=1))

    first = client.post("/api/subscription/use-credit", headers=user_headers())
    second = client.post("/api/subscription/use-credit", headers=user_headers())

    assert first.status_code == 200
    assert first.json() == {"creditsRemaining": 0, "creditsTotal": 3}
    assert second.status_code == 429


def test_cron_reset_requires_configured_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "")
    assert client.get("/api/cron/reset-credits/anything").status_code == 500


def test_cron_reset_rejects_wrong_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")
    assert client.get("/api/cron/reset-credits/wrong").status_code == 401


def test_cron_reset(client, add_user, monkeypatch, session_maker):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")
    asyncio.run(add_user("basic-user", tier="basic", remaining=4, total=50))
    asyncio.run(add_user("free-user", remaining=0))

    resp = client.get("/api/cron/reset-credits/s3cret")

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "matched": 1, "modified": 1}
    assert credits_left(session_maker, "basic-user") == 50
    assert credits_left(session_maker, "free-user") == 0


@pytest.fixture
def priced(monkeypatch):
    monkeypatch.setattr(settings, "stripe_price_basic_monthly", "price_basic_m")


def test_webhook_checkout(client, add_user, gateway, priced, session_maker):
    asyncio.run(add_user())
    gateway.subscription = {
        "id": "sub_1",
        "customer": "cus_1",
        "current_period_start": 1_800_000_000,
        "current_period_end": 1_802_592_000,
        "items": {"data": [{"price": {"id": "price_basic_m", "recurring": {"interval": "month"}}}]},
    }
    event = {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": {"metadata": {"user_id": "user-1"}, "subscription": "sub_1"}},
    }

    resp = client.post("/api/webhook", content=json.dumps(event))

    assert resp.status_code == 200, resp.text
    assert resp.json() == {"received": True, "action": "subscription_activated"}
    assert credits_left(session_maker) == 50


def test_webhook_validation_error_is_bad_request(client):
    event = {"id": "evt_2", "type": "customer.subscription.updated", "data": {"object": {"id": "sub_1"}}}

    resp = client.post("/api/webhook", content=json.dumps(event))

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_webhook_payload"


def test_webhook_rejects_undecodable_body(client):
    assert client.post("/api/webhook", content=b"not json").status_code == 400


@pytest.mark.parametrize("signature", [None, "t=1,v1=deadbeef"])
def test_webhook_rejects_bad_signature(app, signature):
    app.dependency_overrides[get_payment_gateway] = lambda: StubGateway(webhook_secret="whsec_test")
    client = TestClient(app, raise_server_exceptions=False)
    headers = {"Stripe-Signature": signature} if signature else {}

    resp = client.post("/api/webhook", content=b'{"id": "evt_3"}', headers=headers)

    assert resp.status_code == 400
