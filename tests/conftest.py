"""Pytest configuration and shared fixtures.

Every test gets its own SQLite file under ``tmp_path`` and an
application built with ``create_app``.  Payment intents go to a fake
gateway; webhook signatures are checked by the real Stripe verification
code, so tests sign their payloads the way Stripe does.
"""

import hashlib
import hmac
import json
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from eventhub_api.app.core.config import Settings
from eventhub_api.app.core.db import Database
from eventhub_api.app.main import create_app
from eventhub_api.app.services.payment_gateway import StripeGateway


SECRET_KEY = "test-secret-key"
WEBHOOK_SECRET = "whsec_test_secret"


class FakeStripeGateway(StripeGateway):
    """Stripe gateway that records intents instead of calling the API."""

    def __init__(self) -> None:
        super().__init__(api_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET)
        self.intents: List[Dict[str, Any]] = []
        self.threads: List[threading.Thread] = []

    def create_payment_intent(self, amount, currency, metadata):
        self.threads.append(threading.current_thread())
        intent_id = f"pi_test_{len(self.intents) + 1}"
        self.intents.append(
            {"id": intent_id, "amount": amount, "currency": currency, "metadata": metadata}
        )
        return intent_id, f"{intent_id}_secret_abc"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=str(tmp_path / "test.db"),
        secret_key=SECRET_KEY,
        stripe_secret_key="sk_test_fake",
        stripe_webhook_secret=WEBHOOK_SECRET,
        payment_currency="xof",
        upload_dir=str(tmp_path / "uploads"),
        max_upload_size=1024,
    )


@pytest.fixture
def gateway() -> FakeStripeGateway:
    return FakeStripeGateway()


@pytest.fixture
def app(settings, gateway):
    return create_app(settings, gateway)


@pytest.fixture
def client(app) -> TestClient:
    # Entering the context runs the startup hook, which applies migrations.
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(client, app) -> Database:
    return app.state.db


@pytest.fixture
def make_user(client) -> Callable[..., Tuple[int, Dict[str, str]]]:
    """Sign up and log in; return ``(user_id, auth_headers)``."""

    def _make_user(
        email: str,
        password: str = "password123",
        first_name: str = "Test",
        last_name: str = "User",
    ) -> Tuple[int, Dict[str, str]]:
        response = client.post(
            "/api/auth/signup",
            json={"prenom": first_name, "nom": last_name, "email": email, "mot_de_passe": password},
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["user"]["id"]
        response = client.post("/api/auth/login", json={"email": email, "mot_de_passe": password})
        assert response.status_code == 200, response.text
        return user_id, {"Authorization": f"Bearer {response.json()['token']}"}

    return _make_user


@pytest.fixture
def alice(make_user) -> Tuple[int, Dict[str, str]]:
    return make_user("alice@example.com", first_name="Alice")


@pytest.fixture
def bob(make_user) -> Tuple[int, Dict[str, str]]:
    return make_user("bob@example.com", first_name="Bob")


@pytest.fixture
def make_event(client) -> Callable[..., Dict[str, Any]]:
    """Create an event as the owner of ``headers``; return its JSON."""

    def _make_event(headers: Dict[str, str], **fields: Any) -> Dict[str, Any]:
        body = {
            "nom": "Concert au parc",
            "description": "Open-air concert",
            "date": "2026-06-21T18:00:00Z",
            "lieu": "Dakar",
            "est_gratuit": True,
        }
        body.update(fields)
        response = client.post("/api/events", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_event


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a ``Stripe-Signature`` header for ``payload``."""
    timestamp = timestamp if timestamp is not None else int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def webhook_payload(
    event_id: Any,
    user_id: Any,
    event_type: str = "payment_intent.succeeded",
    delivery_id: str = "evt_test_1",
) -> bytes:
    return json.dumps(
        {
            "id": delivery_id,
            "object": "event",
            "type": event_type,
            "data": {
                "object": {
                    "id": "pi_test_1",
                    "object": "payment_intent",
                    "amount": 5000,
                    "currency": "xof",
                    "metadata": {
                        "eventId": str(event_id),
                        "userId": str(user_id),
                        "eventName": "Concert au parc",
                    },
                }
            },
        }
    ).encode("utf-8")


@pytest.fixture
def send_webhook(client) -> Callable[..., Any]:
    """POST a payload to the webhook, signed correctly unless told otherwise."""

    def _send_webhook(payload: bytes, signature: Optional[str] = "valid"):
        headers = {"Content-Type": "application/json"}
        if signature == "valid":
            headers["Stripe-Signature"] = sign_payload(payload)
        elif signature is not None:
            headers["Stripe-Signature"] = signature
        return client.post("/api/payments/webhook", content=payload, headers=headers)

    return _send_webhook


@pytest.fixture
def count_registrations(db) -> Callable[[int, int], int]:
    def _count(event_id: int, user_id: int) -> int:
        with db.cursor() as cursor:
            row = cursor.execute(
                "SELECT COUNT(*) AS n FROM registrations WHERE event_id = ? AND user_id = ?",
                (event_id, user_id),
            ).fetchone()
        return row["n"]

    return _count
