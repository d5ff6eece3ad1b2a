import json
import os
import uuid
from decimal import Decimal

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["FRONTEND_BASE_URL"] = "https://annapurna.test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from annapurna.api.deps import get_notifier, get_payment_gateway
from annapurna.core.errors import ValidationError
from annapurna.core.security import create_access_token, hash_password
from annapurna.db.session import Base, get_db
from annapurna.main import app
from annapurna.models.audit_log import AuditLog  # noqa: F401
from annapurna.models.course import Course
from annapurna.models.email_log import EmailLog  # noqa: F401
from annapurna.models.health_program import HealthProgram
from annapurna.models.package import Package
from annapurna.models.partner_hotel import PartnerHotel
from annapurna.models.retreat_program import RetreatProgram
from annapurna.models.user import User
from annapurna.services.notification_service import Notifier


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent = []

    def send(self, to, context):
        self.sent.append((to, context))


class FakeGateway:
    """Stands in for StripeGateway; signature "good" is the only valid one."""

    def __init__(self):
        self.sessions = []

    def create_checkout_session(self, **kwargs):
        self.sessions.append(kwargs)
        n = len(self.sessions)
        return {"id": f"cs_test_{n}", "url": f"https://checkout.stripe.test/cs_test_{n}"}

    def construct_event(self, payload, signature):
        if signature != "good":
            raise ValidationError("Invalid signature")
        return json.loads(payload)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(session_factory, notifier, gateway):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _user(db, role):
    user = User(
        id=str(uuid.uuid4()),
        email=f"{role}-{uuid.uuid4().hex[:6]}@annapurna.test",
        full_name=role.title(),
        role=role,
        password_hash=hash_password("secret-pass"),
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_user(db):
    return _user(db, "admin")


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id, admin_user.role)}"}


@pytest.fixture
def user_headers(db):
    user = _user(db, "user")
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def package(db):
    obj = Package(id=str(uuid.uuid4()), name="Detox Package", slug="detox-package",
                  price=Decimal("120.00"), duration_days=3, is_active=True)
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def retreat(db):
    obj = RetreatProgram(id=str(uuid.uuid4()), title="Himalayan Yoga Retreat", slug="himalayan-yoga-retreat",
                         price_per_person_usd=Decimal("150.00"), duration_days=2,
                         hospital_premium_price=Decimal("60.00"), is_active=True)
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def hotels(db):
    rows = [
        PartnerHotel(id=str(uuid.uuid4()), name="Lakeside Inn", location="Pokhara", star_rating=3,
                     price_per_night=Decimal("40.00"), is_active=True),
        PartnerHotel(id=str(uuid.uuid4()), name="Fishtail Lodge", location="Pokhara", star_rating=4,
                     price_per_night=Decimal("85.00"), is_active=True),
        PartnerHotel(id=str(uuid.uuid4()), name="Closed Hotel", location="Pokhara", star_rating=3,
                     price_per_night=Decimal("10.00"), is_active=False),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def health_program(db):
    obj = HealthProgram(id=str(uuid.uuid4()), title="Diabetes Reversal", slug="diabetes-reversal",
                        duration_in_days=7, price_online=Decimal("50.00"),
                        price_residential=Decimal("700.00"), price_day_visitor=Decimal("300.00"))
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def course(db):
    obj = Course(id=str(uuid.uuid4()), title="Naturopathy Basics", slug="naturopathy-basics",
                 price=Decimal("250.00"), duration_days=5, mode="online")
    db.add(obj)
    db.commit()
    return obj
