"""One ledger row per booking, keyed on (booking_id, booking_type).

Functions here never commit; callers own the transaction so the booking and
its ledger row are written together.
"""
import uuid
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from annapurna.core.config import settings
from annapurna.models.booking import Booking
from annapurna.models.payment import Payment

logger = logging.getLogger(__name__)

LEDGER_STATUSES = ("pending", "paid", "cancelled", "refunded")


def ledger_status_for(booking: Booking) -> str:
    if booking.payment_status in ("paid", "cancelled", "refunded"):
        return booking.payment_status
    return "pending"


def booking_snapshot(booking: Booking) -> dict:
    return {
        "bookingType": booking.booking_type,
        "productId": booking.product_id,
        "productTitle": booking.product_title,
        "quantity": booking.quantity,
        "pricePerPerson": float(booking.price_per_person or 0),
        "subtotal": float(booking.subtotal or 0),
        "accommodationMode": booking.accommodation_mode,
        "accommodationNights": booking.accommodation_nights,
        "accommodationPricePerNight": float(booking.accommodation_price_per_night or 0),
        "accommodationTotalCost": float(booking.accommodation_total_cost or 0),
        "preferredStartDate": booking.preferred_start_date,
    }


def find_payment(db: Session, booking_id: str, booking_type: str, lock: bool = False) -> Payment | None:
    stmt = select(Payment).where(Payment.booking_id == booking_id, Payment.booking_type == booking_type)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def upsert_payment(
    db: Session,
    booking: Booking,
    status: str | None = None,
    gateway: str | None = None,
    provider_ref: str | None = None,
) -> Payment:
    """Create or refresh the ledger row for a booking. Amount and customer always follow the booking.

    Without an explicit `status` an existing row keeps its status (and any
    cancellation stamp); only a new row derives it from the booking.
    """
    payment = find_payment(db, booking.id, booking.booking_type, lock=True)
    if payment is not None and status is None:
        status = payment.status
    if payment is None:
        payment = Payment(
            id=str(uuid.uuid4()),
            booking_id=booking.id,
            booking_type=booking.booking_type,
            gateway=gateway or booking.payment_gateway or "manual",
            currency=settings.PAYMENT_CURRENCY,
        )
        db.add(payment)
        logger.info("Ledger row created for %s booking %s", booking.booking_type, booking.id)
    elif gateway:
        payment.gateway = gateway

    payment.amount = booking.total_amount
    payment.user_name = booking.customer_name or ""
    payment.user_email = booking.email or ""
    payment.status = status or ledger_status_for(booking)
    payment.snapshot = booking_snapshot(booking)
    if provider_ref:
        payment.provider_ref = provider_ref
    if payment.status != "cancelled":
        payment.cancelled_at = None
        payment.cancelled_by = None
    db.flush()
    return payment


def delete_payment(db: Session, booking: Booking) -> None:
    payment = find_payment(db, booking.id, booking.booking_type)
    if payment is not None:
        db.delete(payment)
