"""Tests for payment intents and the Stripe webhook."""

import asyncio
import threading
import time
from types import SimpleNamespace

import pytest
import stripe

from eventhub_api.app.core.errors import InvalidSignatureError, UnclassifiedError, ValidationError
from eventhub_api.app.services.payment_gateway import StripeGateway
from eventhub_api.app.services.payment_service import PaymentService, to_minor_units
from eventhub_api.app.services.registration_service import RegistrationService

from .conftest import WEBHOOK_SECRET, sign_payload, webhook_payload


class TestCreatePaymentIntent:
    def test_intent_for_paid_event(self, client, gateway, alice, bob, make_event):
        _, alice_headers = alice
        bob_id, bob_headers = bob
        event = make_event(alice_headers, est_gratuit=False, prix=5000)

        response = client.post(
            "/api/payments/create-payment-intent", json={"eventId": event["id"]}, headers=bob_headers
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Payment intent created", "clientSecret": "pi_test_1_secret_abc"}
        assert gateway.intents == [
            {
                "id": "pi_test_1",
                "amount": 5000,
                "currency": "xof",
                "metadata": {"eventId": str(event["id"]), "userId": str(bob_id), "eventName": event["nom"]},
            }
        ]

    def test_amount_is_rounded_half_up(self, client, gateway, alice, make_event):
        _, headers = alice
        event = make_event(headers, est_gratuit=False, prix=2500.5)
        client.post("/api/payments/create-payment-intent", json={"eventId": event["id"]}, headers=headers)
        assert gateway.intents[0]["amount"] == 2501

    def test_event_without_price(self, client, gateway, alice, make_event):
        _, headers = alice
        event = make_event(headers)
        response = client.post(
            "/api/payments/create-payment-intent", json={"eventId": event["id"]}, headers=headers
        )
        assert response.status_code == 400
        assert gateway.intents == []

    def test_unknown_event(self, client, alice):
        _, headers = alice
        response = client.post("/api/payments/create-payment-intent", json={"eventId": 999}, headers=headers)
        assert response.status_code == 404

    def test_missing_event_id(self, client, alice):
        _, headers = alice
        response = client.post("/api/payments/create-payment-intent", json={}, headers=headers)
        assert response.status_code == 400

    def test_requires_authentication(self, client):
        response = client.post("/api/payments/create-payment-intent", json={"eventId": 1})
        assert response.status_code == 401

    @pytest.mark.parametrize("stored_price", [1e30, float("inf"), 0.4])
    def test_unpayable_stored_price(self, client, db, gateway, alice, make_event, stored_price):
        _, headers = alice
        event = make_event(headers, est_gratuit=False, prix=5000)
        with db.transaction() as cursor:
            cursor.execute("UPDATE events SET price = ? WHERE id = ?", (stored_price, event["id"]))

        response = client.post(
            "/api/payments/create-payment-intent", json={"eventId": event["id"]}, headers=headers
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid amount for this paid event"
        assert gateway.intents == []

    def test_gateway_is_called_off_the_event_loop_thread(self, db, gateway, alice, make_event):
        user_id, headers = alice
        event = make_event(headers, est_gratuit=False, prix=5000)
        service = PaymentService(db, gateway, RegistrationService(db))

        result = asyncio.run(service.create_payment_intent(event["id"], user_id))
        assert result.client_secret == "pi_test_1_secret_abc"
        assert gateway.threads[0] is not threading.main_thread()


class TestWebhook:
    def test_succeeded_payment_registers_attendee(
        self, alice, bob, make_event, send_webhook, count_registrations
    ):
        _, alice_headers = alice
        bob_id, _ = bob
        event = make_event(alice_headers, est_gratuit=False, prix=5000)

        response = send_webhook(webhook_payload(event["id"], bob_id))
        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert count_registrations(event["id"], bob_id) == 1

    def test_redelivery_is_idempotent(self, alice, bob, make_event, send_webhook, count_registrations):
        _, alice_headers = alice
        bob_id, _ = bob
        event = make_event(alice_headers, est_gratuit=False, prix=5000)
        payload = webhook_payload(event["id"], bob_id)

        for _ in range(3):
            assert send_webhook(payload).status_code == 200
        assert count_registrations(event["id"], bob_id) == 1

    def test_bad_signature_is_rejected(self, alice, bob, make_event, send_webhook, count_registrations):
        _, alice_headers = alice
        bob_id, _ = bob
        event = make_event(alice_headers, est_gratuit=False, prix=5000)
        payload = webhook_payload(event["id"], bob_id)

        response = send_webhook(payload, signature=sign_payload(payload, secret="whsec_wrong"))
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SIGNATURE"
        assert count_registrations(event["id"], bob_id) == 0

    def test_missing_signature_is_rejected(self, alice, bob, make_event, send_webhook, count_registrations):
        _, alice_headers = alice
        bob_id, _ = bob
        event = make_event(alice_headers, est_gratuit=False, prix=5000)

        response = send_webhook(webhook_payload(event["id"], bob_id), signature=None)
        assert response.status_code == 400
        assert count_registrations(event["id"], bob_id) == 0

    def test_modified_body_is_rejected(self, alice, bob, make_event, send_webhook, count_registrations):
        _, alice_headers = alice
        bob_id, _ = bob
        event = make_event(alice_headers, est_gratuit=False, prix=5000)
        signature = sign_payload(webhook_payload(event["id"], 12345))

        response = send_webhook(webhook_payload(event["id"], bob_id), signature=signature)
        assert response.status_code == 400
        assert count_registrations(event["id"], bob_id) == 0

    def test_stale_timestamp_is_rejected(self, alice, bob, make_event, send_webhook):
        _, alice_headers = alice
        bob_id, _ = bob
        event = make_event(alice_headers, est_gratuit=False, prix=5000)
        payload = webhook_payload(event["id"], bob_id)

        signature = sign_payload(payload, timestamp=int(time.time()) - 3600)
        assert send_webhook(payload, signature=signature).status_code == 400

    def test_other_event_types_are_acknowledged(
        self, alice, bob, make_event, send_webhook, count_registrations
    ):
        _, alice_headers = alice
        bob_id, _ = bob
        event = make_event(alice_headers, est_gratuit=False, prix=5000)

        response = send_webhook(webhook_payload(event["id"], bob_id, event_type="payment_intent.payment_failed"))
        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert count_registrations(event["id"], bob_id) == 0

    @pytest.mark.parametrize("event_id, user_id", [("abc", "1"), ("999", "999"), ("None", "None")])
    def test_unusable_metadata_is_acknowledged(self, alice, make_event, send_webhook, event_id, user_id):
        _, headers = alice
        make_event(headers, est_gratuit=False, prix=5000)
        response = send_webhook(webhook_payload(event_id, user_id))
        assert response.status_code == 200

    def test_paid_flow_end_to_end(self, client, gateway, alice, bob, make_event, send_webhook):
        _, alice_headers = alice
        bob_id, bob_headers = bob
        event = make_event(alice_headers, est_gratuit=False, prix=5000)

        assert client.post(f"/api/events/{event['id']}/inscriptions", headers=bob_headers).status_code == 402
        client.post("/api/payments/create-payment-intent", json={"eventId": event["id"]}, headers=bob_headers)
        metadata = gateway.intents[0]["metadata"]

        send_webhook(webhook_payload(metadata["eventId"], metadata["userId"]))
        attendees = client.get(f"/api/events/{event['id']}/inscriptions", headers=alice_headers).json()
        assert [a["utilisateur_id"] for a in attendees] == [bob_id]


class TestStripeGateway:
    def test_construct_event_returns_parsed_payload(self):
        gateway = StripeGateway(api_key="sk_test", webhook_secret=WEBHOOK_SECRET)
        payload = webhook_payload(1, 2)
        event = gateway.construct_event(payload, sign_payload(payload))
        assert event["type"] == "payment_intent.succeeded"
        assert event["data"]["object"]["metadata"]["userId"] == "2"

    def test_unconfigured_secret_rejects_everything(self):
        gateway = StripeGateway(api_key="sk_test", webhook_secret="")
        payload = webhook_payload(1, 2)
        with pytest.raises(InvalidSignatureError):
            gateway.construct_event(payload, sign_payload(payload))

    def test_non_object_payload_is_rejected(self):
        gateway = StripeGateway(api_key="sk_test", webhook_secret=WEBHOOK_SECRET)
        payload = b"[1, 2, 3]"
        with pytest.raises(InvalidSignatureError):
            gateway.construct_event(payload, sign_payload(payload))

    def test_create_payment_intent_passes_key_per_request(self, monkeypatch):
        calls = []

        def fake_create(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(id="pi_123", client_secret="pi_123_secret_xyz")

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
        gateway = StripeGateway(api_key="sk_test_key", webhook_secret=WEBHOOK_SECRET)
        result = gateway.create_payment_intent(5000, "xof", {"eventId": "1", "userId": "2", "eventName": "X"})
        assert result == ("pi_123", "pi_123_secret_xyz")
        assert calls[0]["api_key"] == "sk_test_key"
        assert calls[0]["amount"] == 5000
        assert calls[0]["currency"] == "xof"

    def test_stripe_errors_become_unclassified(self, monkeypatch):
        def failing_create(**kwargs):
            raise stripe.StripeError("card network down")

        monkeypatch.setattr(stripe.PaymentIntent, "create", failing_create)
        gateway = StripeGateway(api_key="sk_test_key", webhook_secret=WEBHOOK_SECRET)
        with pytest.raises(UnclassifiedError):
            gateway.create_payment_intent(5000, "xof", {})


@pytest.mark.parametrize(
    "price, expected",
    [(5000, 5000), (5000.0, 5000), (2500.5, 2501), (2500.49, 2500), (0.5, 1)],
)
def test_to_minor_units(price, expected):
    assert to_minor_units(price) == expected


@pytest.mark.parametrize("price", [1e30, float("inf"), float("-inf"), float("nan")])
def test_to_minor_units_rejects_unrepresentable_prices(price):
    with pytest.raises(ValidationError):
        to_minor_units(price)
