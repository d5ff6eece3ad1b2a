def test_health_program_price_follows_mode(client, health_program):
    r = client.post("/api/health-program-bookings", json={
        "programId": health_program.id, "name": "Mina", "email": "mina@example.com",
        "mode": "residential", "quantity": 2,
    })
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["mode"] == "residential"
    assert data["pricePerPerson"] == 700
    assert data["totalAmount"] == 1400
    assert data["accommodationSelected"] is False


def test_health_program_requires_mode(client, health_program):
    r = client.post("/api/health-program-bookings", json={
        "programId": health_program.id, "name": "Mina", "email": "mina@example.com",
    })
    assert r.status_code == 400
    assert r.json()["message"] == "Mode is required"


def test_health_program_ignores_accommodation(client, health_program, hotels):
    r = client.post("/api/health-program-bookings", json={
        "programId": health_program.id, "name": "Mina", "email": "mina@example.com",
        "mode": "online", "accommodationMode": "location", "location": "Pokhara",
    })
    assert r.json()["data"]["totalAmount"] == 50


def test_course_booking_uses_course_price(client, course):
    r = client.post("/api/course-bookings", json={
        "courseId": course.id, "name": "Hari", "email": "hari@example.com",
    })
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["bookingType"] == "course"
    assert data["mode"] == "online"
    assert data["totalAmount"] == 250


def test_course_requires_course(client, course):
    r = client.post("/api/course-bookings", json={"name": "Hari", "email": "hari@example.com"})
    assert r.json()["message"] == "Course is required"


def test_cancel_rule_applies_to_every_type(client, course, admin_headers):
    booking = client.post("/api/course-bookings", json={
        "courseId": course.id, "name": "Hari", "email": "hari@example.com",
    }).json()["data"]
    r = client.patch(f"/api/course-bookings/{booking['id']}/status", json={"status": "cancelled"},
                     headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Cancellation message is required"


def test_unpublished_course_cannot_be_booked_publicly(client, db, course):
    course.is_published = False
    db.commit()
    r = client.post("/api/course-bookings", json={"courseId": course.id, "name": "Hari", "email": "hari@example.com"})
    assert r.status_code == 404
