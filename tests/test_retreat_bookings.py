def _payload(retreat, **extra):
    body = {
        "programId": retreat.id,
        "fullName": "John Doe",
        "email": "john@example.com",
        "numberOfPeople": 2,
    }
    body.update(extra)
    return body


def test_retreat_with_partner_hotel(client, retreat, hotels):
    lakeside = hotels[0]
    r = client.post("/api/retreat-bookings", json=_payload(
        retreat, accommodationChoice="partner_hotel", partnerHotelId=lakeside.id, accommodationNights=2,
    ))
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["subtotal"] == 300
    assert data["accommodationTotalCost"] == 160
    assert data["totalAmount"] == 460
    assert data["name"] == "John Doe"
    assert data["partnerHotelId"] == lakeside.id


def test_retreat_nights_default_to_program_duration(client, retreat, hotels):
    r = client.post("/api/retreat-bookings", json=_payload(
        retreat, accommodationMode="location", location="Pokhara", totalAmountUSD=460,
    ))
    assert r.status_code == 201, r.text
    assert r.json()["data"]["accommodationNights"] == 2


def test_no_matching_hotel_still_books(client, retreat, hotels):
    r = client.post("/api/retreat-bookings", json=_payload(
        retreat, accommodationMode="location", location="Nowhere",
    ))
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["accommodationSelected"] is False
    assert data["accommodationTotalCost"] == 0
    assert data["totalAmount"] == 300


def test_hospital_premium_room(client, retreat):
    r = client.post("/api/retreat-bookings", json=_payload(retreat, accommodationChoice="hospital_premium"))
    data = r.json()["data"]
    assert data["accommodationMode"] == "hospital_premium"
    assert data["accommodationTotalCost"] == 240
    assert data["totalAmount"] == 540


def test_retreat_requires_email(client, retreat):
    r = client.post("/api/retreat-bookings", json=_payload(retreat, email=""))
    assert r.status_code == 400
    assert r.json()["message"] == "Name and email are required"


def test_retreat_requires_program(client, retreat):
    body = _payload(retreat)
    del body["programId"]
    r = client.post("/api/retreat-bookings", json=body)
    assert r.json()["message"] == "Program is required"


def test_people_change_reprices_stored_snapshot(client, retreat, hotels, admin_headers):
    booking = client.post("/api/retreat-bookings", json=_payload(
        retreat, accommodationChoice="partner_hotel", partnerHotelId=hotels[0].id, accommodationNights=2,
    )).json()["data"]

    r = client.patch(f"/api/retreat-bookings/{booking['id']}/status",
                     json={"status": "confirmed", "numberOfPeople": 3}, headers=admin_headers)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["quantity"] == 3
    assert data["subtotal"] == 450
    assert data["accommodationTotalCost"] == 240
    assert data["totalAmount"] == 690
