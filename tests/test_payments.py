import json

import pytest

from annapurna.core.config import settings
from annapurna.models.payment import Payment


@pytest.fixture
def booking(client, retreat, hotels):
    r = client.post("/api/retreat-bookings", json={
        "programId": retreat.id, "name": "John", "email": "john@example.com", "numberOfPeople": 2,
        "accommodationChoice": "partner_hotel", "partnerHotelId": hotels[0].id, "accommodationNights": 2,
    })
    return r.json()["data"]


def _ledger(db, booking):
    db.expire_all()
    return db.query(Payment).filter_by(booking_id=booking["id"], booking_type="retreat").all()


def test_checkout_creates_single_line_item_session(client, db, booking, gateway):
    r = client.post("/api/payments/stripe/checkout", json={"bookingId": booking["id"], "type": "retreat"})
    assert r.status_code == 200, r.text
    assert r.json()["success"] is True
    assert r.json()["url"] == "https://checkout.stripe.test/cs_test_1"

    session = gateway.sessions[0]
    assert session["amount_cents"] == 46000
    assert session["currency"] == "USD"
    assert session["booking_id"] == booking["id"]
    assert session["success_url"].startswith("https://annapurna.test/payment-success?booking=")

    rows = _ledger(db, booking)
    assert len(rows) == 1
    assert rows[0].status == "pending"
    assert rows[0].gateway == "stripe"
    assert rows[0].provider_ref == "cs_test_1"


def test_checkout_validates_input(client, booking):
    r = client.post("/api/payments/stripe/checkout", json={"bookingId": booking["id"]})
    assert r.status_code == 400
    assert r.json()["message"] == "bookingId and type are required"

    r = client.post("/api/payments/stripe/checkout", json={"bookingId": booking["id"], "type": "spa"})
    assert r.json()["message"] == "Invalid type"

    r = client.post("/api/payments/stripe/checkout", json={"bookingId": "nope", "type": "retreat"})
    assert r.status_code == 404


def test_checkout_charges_admin_forced_total(client, admin_headers, booking, gateway):
    r = client.put(f"/api/retreat-bookings/{booking['id']}?force=true", json={"totalAmount": 400}, headers=admin_headers)
    assert r.json()["data"]["totalAmount"] == 400
    client.post("/api/payments/stripe/checkout", json={"bookingId": booking["id"], "type": "retreat"})
    assert gateway.sessions[0]["amount_cents"] == 40000


def test_mark_paid_moves_booking_and_ledger_together(client, db, booking, notifier):
    client.post("/api/payments/stripe/checkout", json={"bookingId": booking["id"], "type": "retreat"})
    r = client.post("/api/payments/mark-status", json={"bookingId": booking["id"], "type": "retreat", "status": "paid"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["status"] == "confirmed"
    assert data["paymentStatus"] == "paid"
    assert data["paymentGateway"] == "stripe"

    rows = _ledger(db, booking)
    assert len(rows) == 1
    assert rows[0].status == "paid"
    assert notifier.sent[-1][1]["event"] == "payment"


def test_repeated_updates_keep_one_ledger_row(client, db, booking):
    for status in ("failed", "cancelled", "failed", "paid", "paid"):
        client.post("/api/payments/mark-status", json={"bookingId": booking["id"], "type": "retreat", "status": status})
    rows = _ledger(db, booking)
    assert len(rows) == 1
    assert rows[0].status == "paid"


def test_failed_and_cancelled_outcomes(client, db, booking):
    r = client.post("/api/payments/mark-status", json={"bookingId": booking["id"], "type": "retreat", "status": "failed"})
    assert r.json()["data"]["status"] == "pending"
    assert r.json()["data"]["paymentStatus"] == "failed"
    assert _ledger(db, booking)[0].status == "pending"

    r = client.post("/api/payments/mark-status", json={"bookingId": booking["id"], "type": "retreat", "status": "cancelled"})
    assert r.json()["data"]["paymentStatus"] == "cancelled"
    assert _ledger(db, booking)[0].status == "cancelled"


def test_paid_booking_ignores_late_failure(client, booking):
    client.post("/api/payments/mark-status", json={"bookingId": booking["id"], "type": "retreat", "status": "paid"})
    r = client.post("/api/payments/mark-status", json={"bookingId": booking["id"], "type": "retreat", "status": "failed"})
    assert r.json()["data"]["paymentStatus"] == "paid"

    r = client.post("/api/payments/stripe/checkout", json={"bookingId": booking["id"], "type": "retreat"})
    assert r.json()["message"] == "Booking is already paid"


def test_mark_status_rejects_unknown_status(client, booking):
    r = client.post("/api/payments/mark-status", json={"bookingId": booking["id"], "type": "retreat", "status": "refunded"})
    assert r.status_code == 400


def test_client_confirmation_can_be_disabled(client, booking, monkeypatch):
    monkeypatch.setattr(settings, "TRUST_CLIENT_PAYMENT_CONFIRMATION", False)
    r = client.post("/api/payments/mark-status", json={"bookingId": booking["id"], "type": "retreat", "status": "paid"})
    assert r.status_code == 403
    assert r.json()["success"] is False


def _event(booking, event_type="checkout.session.completed", payment_status="paid"):
    return json.dumps({
        "id": "evt_1",
        "type": event_type,
        "data": {"object": {
            "id": "cs_test_9",
            "payment_status": payment_status,
            "metadata": {"bookingId": booking["id"], "type": "retreat"},
        }},
    })


def test_webhook_marks_paid(client, db, booking, monkeypatch):
    monkeypatch.setattr(settings, "TRUST_CLIENT_PAYMENT_CONFIRMATION", False)
    r = client.post("/api/payments/stripe/webhook", content=_event(booking), headers={"Stripe-Signature": "good"})
    assert r.status_code == 200
    assert r.json() == {"received": True, "handled": True}
    rows = _ledger(db, booking)
    assert rows[0].status == "paid"
    assert rows[0].provider_ref == "cs_test_9"


def test_webhook_rejects_bad_signature(client, db, booking):
    r = client.post("/api/payments/stripe/webhook", content=_event(booking), headers={"Stripe-Signature": "forged"})
    assert r.status_code == 400
    assert _ledger(db, booking)[0].status == "pending"


def test_webhook_expired_session_cancels_payment(client, db, booking):
    r = client.post("/api/payments/stripe/webhook",
                    content=_event(booking, "checkout.session.expired", "unpaid"),
                    headers={"Stripe-Signature": "good"})
    assert r.json()["handled"] is True
    assert _ledger(db, booking)[0].status == "cancelled"


def test_webhook_ignores_other_events(client, booking):
    r = client.post("/api/payments/stripe/webhook", content=_event(booking, "payment_intent.created"),
                    headers={"Stripe-Signature": "good"})
    assert r.json() == {"received": True, "handled": False}


def test_unconfigured_stripe_gateway_reports_it(client, booking):
    from annapurna.api.deps import get_payment_gateway
    from annapurna.main import app
    from annapurna.services.stripe_gateway import StripeGateway

    app.dependency_overrides[get_payment_gateway] = lambda: StripeGateway(secret_key="")
    r = client.post("/api/payments/stripe/checkout", json={"bookingId": booking["id"], "type": "retreat"})
    assert r.status_code == 500
    assert r.json()["message"] == "Stripe not configured"
