import pytest

from annapurna.models.booking import Booking
from annapurna.models.payment import Payment


def _book(client, package, email, **extra):
    body = {"packageId": package.id, "name": "Guest", "phone": "123", "email": email, "pricePerPerson": 100}
    body.update(extra)
    return client.post("/api/package-bookings", json=body).json()["data"]


@pytest.fixture
def payments(client, db, package):
    paid = _book(client, package, "paid@example.com")
    client.post("/api/payments/mark-status", json={"bookingId": paid["id"], "type": "package", "status": "paid"})
    pending = _book(client, package, "pending@example.com", quantity=2)
    cancelled = _book(client, package, "gone@example.com")
    client.post("/api/payments/mark-status", json={"bookingId": cancelled["id"], "type": "package", "status": "cancelled"})
    return {"paid": paid, "pending": pending, "cancelled": cancelled}


def _payment_id(db, booking):
    return db.query(Payment).filter_by(booking_id=booking["id"]).one().id


def test_list_hides_cancelled_by_default(client, payments, admin_headers):
    r = client.get("/api/admin/payments", headers=admin_headers)
    assert r.status_code == 200
    emails = {p["userEmail"] for p in r.json()["data"]}
    assert emails == {"paid@example.com", "pending@example.com"}
    assert r.json()["totals"] == {"paidAmount": 100.0, "pendingAmount": 200.0, "count": 2}

    r = client.get("/api/admin/payments", params={"status": "all"}, headers=admin_headers)
    assert r.json()["totals"]["count"] == 3

    r = client.get("/api/admin/payments", params={"status": "cancelled"}, headers=admin_headers)
    assert [p["userEmail"] for p in r.json()["data"]] == ["gone@example.com"]


def test_list_filters_by_email_and_type(client, payments, admin_headers):
    r = client.get("/api/admin/payments", params={"email": "PAID@"}, headers=admin_headers)
    assert [p["userEmail"] for p in r.json()["data"]] == ["paid@example.com"]

    r = client.get("/api/admin/payments", params={"bookingType": "retreat"}, headers=admin_headers)
    assert r.json()["data"] == []


def test_list_rejects_bad_dates(client, payments, admin_headers):
    r = client.get("/api/admin/payments", params={"startDate": "yesterday"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "startDate must be a date (YYYY-MM-DD)"


def test_list_is_admin_only(client, payments, user_headers):
    assert client.get("/api/admin/payments", headers=user_headers).status_code == 403


def test_detail_includes_booking(client, db, payments, admin_headers):
    r = client.get(f"/api/admin/payments/{_payment_id(db, payments['paid'])}", headers=admin_headers)
    data = r.json()["data"]
    assert data["status"] == "paid"
    assert data["booking"]["id"] == payments["paid"]["id"]
    assert data["metadata"]["productTitle"] == "Detox Package"

    assert client.get("/api/admin/payments/missing", headers=admin_headers).status_code == 404


def test_cancel_then_mark_paid(client, db, payments, admin_headers, admin_user, notifier):
    booking = payments["paid"]
    payment_id = _payment_id(db, booking)

    r = client.patch(f"/api/admin/payments/{payment_id}/cancel", headers=admin_headers)
    data = r.json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancelledBy"] == admin_user.id
    assert data["cancelledAt"] is not None

    db.expire_all()
    row = db.get(Booking, booking["id"])
    assert row.status == "cancelled"
    assert row.payment_status == "pending"
    assert row.admin_message.startswith("Payment cancelled by admin at ")

    r = client.patch(f"/api/admin/payments/{payment_id}/mark-paid", headers=admin_headers)
    data = r.json()["data"]
    assert data["status"] == "paid"
    assert data["cancelledAt"] is None

    db.expire_all()
    row = db.get(Booking, booking["id"])
    assert row.status == "confirmed"
    assert row.payment_status == "paid"
    assert " | Payment marked paid by admin at " in row.admin_message
    assert notifier.sent[-1][1]["event"] == "payment"


def test_raw_status_update_mirrors_booking(client, db, payments, admin_headers):
    payment_id = _payment_id(db, payments["pending"])
    r = client.patch(f"/api/admin/payments/{payment_id}/status", json={"status": "failed"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid status"

    r = client.patch(f"/api/admin/payments/{payment_id}/status", json={"status": "refunded"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "refunded"
    db.expire_all()
    assert db.get(Booking, payments["pending"]["id"]).payment_status == "refunded"

    r = client.patch(f"/api/admin/payments/{payment_id}/status", json={"status": "pending"}, headers=admin_headers)
    assert r.json()["data"]["status"] == "pending"
    db.expire_all()
    assert db.get(Booking, payments["pending"]["id"]).payment_status == "pending"


def test_booking_edits_keep_admin_cancellation(client, db, payments, admin_headers):
    booking = payments["pending"]
    payment_id = _payment_id(db, booking)
    client.patch(f"/api/admin/payments/{payment_id}/cancel", headers=admin_headers)

    r = client.patch(f"/api/package-bookings/{booking['id']}/status",
                     json={"status": "cancelled", "adminMessage": "note", "notes": "called customer"},
                     headers=admin_headers)
    assert r.status_code == 200, r.text
    r = client.put(f"/api/package-bookings/{booking['id']}", json={"country": "Nepal"}, headers=admin_headers)
    assert r.status_code == 200, r.text

    db.expire_all()
    row = db.get(Payment, payment_id)
    assert row.status == "cancelled"
    assert row.cancelled_at is not None
    assert row.cancelled_by is not None


def test_csv_export(client, payments, admin_headers):
    r = client.get("/api/admin/payments/export/csv", headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment" in r.headers["content-disposition"]
    lines = r.text.strip().splitlines()
    assert lines[0] == "Payment ID,Type,Name,Email,Amount,Currency,Status,Gateway,Date"
    assert len(lines) == 3
    assert any(",200.00,USD,pending," in line for line in lines)


def test_pdf_export(client, payments, admin_headers):
    r = client.get("/api/admin/payments/export/pdf", params={"status": "all"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")
