from annapurna.models.booking import Booking
from annapurna.models.payment import Payment


def _payload(package, **extra):
    body = {
        "packageId": package.id,
        "name": "Sita Sharma",
        "phone": "+977-9800000000",
        "email": "Sita@Example.com",
        "pricePerPerson": 100,
        "peopleCount": 2,
        "accommodationMode": "none",
    }
    body.update(extra)
    return body


def test_package_booking_without_accommodation(client, db, package, notifier):
    r = client.post("/api/package-bookings", json=_payload(package))
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["totalAmount"] == 200
    assert data["status"] == "pending"
    assert data["paymentStatus"] == "pending"
    assert data["email"] == "sita@example.com"

    payment = db.query(Payment).filter_by(booking_id=data["id"], booking_type="package").one()
    assert payment.status == "pending"
    assert payment.gateway == "manual"
    assert float(payment.amount) == 200

    assert notifier.sent[0][0] == "sita@example.com"
    assert notifier.sent[0][1]["event"] == "created"


def test_total_mismatch_creates_nothing(client, db, package):
    r = client.post("/api/package-bookings", json=_payload(package, totalAmount=999))
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Total amount mismatch. Please refresh and try again."}
    assert db.query(Booking).count() == 0
    assert db.query(Payment).count() == 0


def test_matching_client_total_is_accepted(client, package):
    r = client.post("/api/package-bookings", json=_payload(package, totalAmount="200.00"))
    assert r.status_code == 201


def test_quantity_boundary(client, package):
    r = client.post("/api/package-bookings", json=_payload(package, peopleCount=0))
    assert r.status_code == 400
    assert r.json()["message"] == "Number of persons must be at least 1"

    r = client.post("/api/package-bookings", json=_payload(package, peopleCount=1))
    assert r.status_code == 201
    assert r.json()["data"]["totalAmount"] == 100


def test_catalog_price_is_used_when_none_supplied(client, package):
    body = _payload(package)
    del body["pricePerPerson"]
    r = client.post("/api/package-bookings", json=body)
    assert r.status_code == 201
    assert r.json()["data"]["pricePerPerson"] == 120


def test_non_numeric_price_is_rejected(client, package):
    r = client.post("/api/package-bookings", json=_payload(package, pricePerPerson="abc"))
    assert r.status_code == 400


def test_package_requires_name_and_phone(client, package):
    r = client.post("/api/package-bookings", json=_payload(package, phone=""))
    assert r.status_code == 400
    assert r.json()["message"] == "Name and phone are required"


def test_unknown_package_is_404(client, package):
    r = client.post("/api/package-bookings", json=_payload(package, packageId="missing"))
    assert r.status_code == 404
    assert r.json()["message"] == "Package not found"


def test_package_can_be_booked_by_slug(client, package):
    r = client.post("/api/package-bookings", json=_payload(package, packageId=package.slug))
    assert r.status_code == 201
    assert r.json()["data"]["productTitle"] == "Detox Package"


def test_package_hotel_cost_is_per_room(client, package, hotels):
    r = client.post("/api/package-bookings", json=_payload(
        package, accommodationMode="location", location="Pokhara", accommodationNights=2,
    ))
    data = r.json()["data"]
    assert data["accommodationSelected"] is True
    assert data["accommodationTotalCost"] == 80
    assert data["totalAmount"] == 280


def test_public_form_cannot_set_nightly_rate(client, package, hotels):
    r = client.post("/api/package-bookings", json=_payload(
        package, accommodationMode="location", location="Pokhara", accommodationNights=2,
        accommodationPricePerNight=1,
    ))
    assert r.json()["data"]["accommodationPricePerNight"] == 40


def test_admin_routes_need_admin(client, package, user_headers):
    assert client.get("/api/package-bookings").status_code == 401
    r = client.get("/api/package-bookings", headers=user_headers)
    assert r.status_code == 403
    assert r.json()["success"] is False


def test_admin_create_defaults_to_confirmed_and_paid(client, db, package, admin_headers, notifier):
    r = client.post("/api/package-bookings/admin", json=_payload(package, source="phone"), headers=admin_headers)
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["status"] == "confirmed"
    assert data["paymentStatus"] == "paid"
    assert data["createdBy"] == "admin"
    assert data["source"] == "phone"
    assert db.query(Payment).filter_by(booking_id=data["id"]).one().status == "paid"
    assert notifier.sent == []


def test_admin_create_notifies_on_request(client, package, admin_headers, notifier):
    body = _payload(package, status="pending", notifyCustomer=True)
    r = client.post("/api/package-bookings/admin", json=body, headers=admin_headers)
    assert r.json()["data"]["paymentStatus"] == "pending"
    assert len(notifier.sent) == 1


def test_admin_list_and_get(client, package, admin_headers):
    created = client.post("/api/package-bookings", json=_payload(package)).json()["data"]
    client.post("/api/package-bookings", json=_payload(package, name="Ram", phone="123", email="ram@example.com"))

    r = client.get("/api/package-bookings", params={"q": "sita"}, headers=admin_headers)
    assert r.json()["count"] == 1

    r = client.get(f"/api/package-bookings/{created['id']}", headers=admin_headers)
    assert r.json()["data"]["id"] == created["id"]

    r = client.get("/api/retreat-bookings/" + created["id"], headers=admin_headers)
    assert r.status_code == 404


def test_inactive_package_is_hidden_from_public_booking(client, db, package, admin_headers):
    package.is_active = False
    db.commit()

    r = client.post("/api/package-bookings", json=_payload(package))
    assert r.status_code == 404
    assert r.json()["message"] == "Package not found"

    r = client.post("/api/package-bookings/admin", json=_payload(package), headers=admin_headers)
    assert r.status_code == 201
