"""Customer payment flow: Stripe checkout, status marking and webhook reconciliation."""
import logging
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.orm import Session

from annapurna.core.config import settings
from annapurna.core.errors import ForbiddenError, NotFoundError, ValidationError
from annapurna.models.booking import Booking
from annapurna.schemas.booking import booking_to_dict
from annapurna.services.audit_service import log_audit
from annapurna.services.booking_kinds import get_kind
from annapurna.services.notification_service import Notifier
from annapurna.services.payment_ledger import upsert_payment
from annapurna.services.pricing_service import money, quote_from_snapshot
from annapurna.services.stripe_gateway import StripeGateway, to_cents

logger = logging.getLogger(__name__)

MARKABLE_STATUSES = ("paid", "failed", "cancelled")


def load_booking(db: Session, booking_id: str, booking_type: str, lock: bool = False) -> Booking:
    kind = get_kind(booking_type)
    stmt = select(Booking).where(Booking.id == booking_id, Booking.booking_type == kind.type)
    if lock:
        stmt = stmt.with_for_update()
    booking = db.execute(stmt).scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def amount_due(booking: Booking):
    """Recompute the charge from the stored snapshot; an admin-forced total takes precedence."""
    kind = get_kind(booking.booking_type)
    computed = quote_from_snapshot(booking, kind.per_person_accommodation).total
    stored = money(booking.total_amount or 0)
    if stored > 0 and stored != computed:
        logger.warning("Booking %s stored total %s differs from computed %s; charging stored total",
                       booking.id, stored, computed)
        return stored
    return computed


def _frontend_url(path: str, booking: Booking, **extra) -> str:
    query = urlencode({"booking": booking.id, "type": booking.booking_type, **extra})
    return f"{settings.FRONTEND_BASE_URL.rstrip('/')}{path}?{query}"


def create_stripe_checkout(db: Session, gateway: StripeGateway, booking_id: str, booking_type: str) -> dict:
    if not booking_id or not booking_type:
        raise ValidationError("bookingId and type are required")
    booking = load_booking(db, booking_id, booking_type, lock=True)
    if booking.payment_status == "paid":
        raise ValidationError("Booking is already paid")
    if booking.status in ("cancelled", "completed"):
        raise ValidationError(f"Cannot pay for a {booking.status} booking")

    amount = amount_due(booking)
    if amount <= 0:
        raise ValidationError("Invalid amount for checkout")

    description = f"{booking.quantity} person(s)"
    if booking.accommodation_selected:
        description += f", {booking.accommodation_label or 'accommodation'} x {booking.accommodation_nights} night(s)"
    session = gateway.create_checkout_session(
        amount_cents=to_cents(amount),
        currency=settings.PAYMENT_CURRENCY,
        product_name=booking.product_title or get_kind(booking.booking_type).label,
        description=description,
        booking_id=booking.id,
        booking_type=booking.booking_type,
        customer_email=booking.email or None,
        success_url=_frontend_url("/payment-success", booking),
        cancel_url=_frontend_url("/payment-cancelled", booking),
    )

    booking.payment_gateway = "stripe"
    upsert_payment(db, booking, status="pending", gateway="stripe", provider_ref=session["id"])
    db.commit()
    logger.info("Stripe checkout %s opened for %s booking %s amount=%s", session["id"], booking.booking_type, booking.id, amount)
    return {"url": session["url"], "sessionId": session["id"]}


def mark_payment_status(
    db: Session,
    notifier: Notifier,
    booking_id: str,
    booking_type: str,
    status: str,
    source: str = "client",
    provider_ref: str | None = None,
) -> Booking:
    """Move a booking and its ledger row together after a gateway outcome."""
    if not booking_id or not booking_type:
        raise ValidationError("bookingId and type are required")
    if status not in MARKABLE_STATUSES:
        raise ValidationError("Invalid status")
    if source == "client" and status == "paid" and not settings.TRUST_CLIENT_PAYMENT_CONFIRMATION:
        raise ForbiddenError("Payment confirmation must come from the payment provider")

    booking = load_booking(db, booking_id, booking_type, lock=True)
    if booking.payment_status == "paid":
        if status != "paid":
            logger.warning("Ignoring %s from %s for already paid booking %s", status, source, booking.id)
        return booking

    if status == "paid":
        booking.status = "confirmed"
        booking.payment_status = "paid"
        booking.payment_gateway = "stripe"
        upsert_payment(db, booking, status="paid", gateway="stripe", provider_ref=provider_ref)
    elif status == "cancelled":
        booking.status = "pending"
        booking.payment_status = "cancelled"
        upsert_payment(db, booking, status="cancelled", provider_ref=provider_ref)
    else:
        booking.status = "pending"
        booking.payment_status = "failed"
        upsert_payment(db, booking, status="pending", provider_ref=provider_ref)

    log_audit(db, source, f"payment.{status}", "booking", booking.id,
              {"type": booking.booking_type, "providerRef": provider_ref or ""})
    db.commit()
    db.refresh(booking)
    logger.info("Booking %s payment marked %s by %s", booking.id, status, source)

    if status == "paid":
        notifier.send(booking.email, {"event": "payment", "booking": booking_to_dict(booking)})
    return booking


def handle_stripe_event(db: Session, notifier: Notifier, event) -> dict:
    event_type = event["type"]
    obj = event["data"]["object"]
    metadata = obj.get("metadata") or {}
    booking_id, booking_type = metadata.get("bookingId"), metadata.get("type")
    if event_type not in ("checkout.session.completed", "checkout.session.expired"):
        return {"received": True, "handled": False}
    if not booking_id or not booking_type:
        logger.warning("Stripe event %s without booking metadata", event.get("id"))
        return {"received": True, "handled": False}

    if event_type == "checkout.session.completed":
        if obj.get("payment_status") != "paid":
            return {"received": True, "handled": False}
        status = "paid"
    else:
        status = "cancelled"
    try:
        mark_payment_status(db, notifier, booking_id, booking_type, status, source="stripe", provider_ref=obj.get("id"))
    except NotFoundError:
        logger.warning("Stripe event %s references unknown booking %s", event.get("id"), booking_id)
        return {"received": True, "handled": False}
    return {"received": True, "handled": True}
