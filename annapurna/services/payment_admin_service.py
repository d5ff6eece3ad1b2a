"""Admin views over the payment ledger: listing, manual status changes and exports."""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from annapurna.core.config import settings
from annapurna.core.errors import NotFoundError, ValidationError
from annapurna.models.booking import Booking
from annapurna.models.payment import Payment
from annapurna.schemas.booking import booking_to_dict
from annapurna.services.audit_service import log_audit
from annapurna.services.booking_kinds import get_kind
from annapurna.services.notification_service import Notifier
from annapurna.services.payment_ledger import LEDGER_STATUSES

logger = logging.getLogger(__name__)

CSV_HEADER = ["Payment ID", "Type", "Name", "Email", "Amount", "Currency", "Status", "Gateway", "Date"]


@dataclass
class PaymentFilters:
    status: str | None = None
    booking_type: str | None = None
    email: str | None = None
    start_date: date | None = None
    end_date: date | None = None


def _parse_day(value: str | None, field_name: str) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def build_filters(status=None, booking_type=None, email=None, start_date=None, end_date=None) -> PaymentFilters:
    if booking_type and booking_type != "all":
        booking_type = get_kind(booking_type).type
    else:
        booking_type = None
    return PaymentFilters(
        status=status or None,
        booking_type=booking_type,
        email=(email or "").strip() or None,
        start_date=_parse_day(start_date, "startDate"),
        end_date=_parse_day(end_date, "endDate"),
    )


def _query(filters: PaymentFilters):
    stmt = select(Payment)
    if filters.status == "all":
        pass
    elif filters.status:
        stmt = stmt.where(Payment.status == filters.status)
    else:
        stmt = stmt.where(Payment.status != "cancelled")
    if filters.booking_type:
        stmt = stmt.where(Payment.booking_type == filters.booking_type)
    if filters.email:
        stmt = stmt.where(func.lower(Payment.user_email).contains(filters.email.lower()))
    if filters.start_date:
        stmt = stmt.where(Payment.created_at >= datetime.combine(filters.start_date, time.min, tzinfo=timezone.utc))
    if filters.end_date:
        # end date is inclusive through the end of that day
        end = datetime.combine(filters.end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        stmt = stmt.where(Payment.created_at < end)
    return stmt.order_by(Payment.created_at.desc())


def payment_to_dict(p: Payment) -> dict:
    return {
        "id": p.id,
        "bookingId": p.booking_id,
        "bookingType": p.booking_type,
        "gateway": p.gateway,
        "amount": float(p.amount or 0),
        "currency": p.currency,
        "status": p.status,
        "userName": p.user_name,
        "userEmail": p.user_email,
        "providerRef": p.provider_ref,
        "metadata": p.snapshot or {},
        "cancelledAt": p.cancelled_at.isoformat() if p.cancelled_at else None,
        "cancelledBy": p.cancelled_by,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
        "updatedAt": p.updated_at.isoformat() if p.updated_at else None,
    }


def list_payments(db: Session, filters: PaymentFilters) -> dict:
    payments = list(db.execute(_query(filters)).scalars().all())
    paid = sum((Decimal(p.amount or 0) for p in payments if p.status == "paid"), Decimal("0"))
    pending = sum((Decimal(p.amount or 0) for p in payments if p.status == "pending"), Decimal("0"))
    return {
        "items": payments,
        "totals": {"paidAmount": float(paid), "pendingAmount": float(pending), "count": len(payments)},
    }


def get_payment(db: Session, payment_id: str, lock: bool = False) -> Payment:
    stmt = select(Payment).where(Payment.id == payment_id)
    if lock:
        stmt = stmt.with_for_update()
    payment = db.execute(stmt).scalar_one_or_none()
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def get_payment_detail(db: Session, payment_id: str) -> dict:
    payment = get_payment(db, payment_id)
    booking = _linked_booking(db, payment)
    data = payment_to_dict(payment)
    data["booking"] = booking_to_dict(booking) if booking else None
    return data


def _linked_booking(db: Session, payment: Payment, lock: bool = False) -> Booking | None:
    stmt = select(Booking).where(Booking.id == payment.booking_id, Booking.booking_type == payment.booking_type)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def _append_note(existing: str, note: str) -> str:
    return f"{existing} | {note}" if existing else note


def _now_label() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M")


def _notify(notifier: Notifier, booking: Booking | None) -> None:
    if booking is not None:
        notifier.send(booking.email, {"event": "payment", "booking": booking_to_dict(booking)})


def update_payment_status(db: Session, notifier: Notifier, payment_id: str, status: str, actor: str) -> Payment:
    """Set the raw ledger status and mirror it onto the booking."""
    if status not in LEDGER_STATUSES:
        raise ValidationError("Invalid status")
    if status == "cancelled":
        return cancel_payment(db, notifier, payment_id, actor)
    if status == "paid":
        return mark_paid(db, notifier, payment_id, actor)

    payment = get_payment(db, payment_id, lock=True)
    booking = _linked_booking(db, payment, lock=True)
    previous = payment.status
    payment.status = status
    payment.cancelled_at = None
    payment.cancelled_by = None
    if booking is not None:
        booking.payment_status = status
    log_audit(db, actor, "payment.status", "payment", payment.id, {"from": previous, "to": status})
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s status %s -> %s by %s", payment.id, previous, status, actor)
    _notify(notifier, booking)
    return payment


def cancel_payment(db: Session, notifier: Notifier, payment_id: str, actor: str) -> Payment:
    payment = get_payment(db, payment_id, lock=True)
    booking = _linked_booking(db, payment, lock=True)
    payment.status = "cancelled"
    payment.cancelled_at = datetime.now(timezone.utc)
    payment.cancelled_by = actor
    if booking is not None:
        booking.payment_status = "pending"
        booking.status = "cancelled"
        booking.admin_message = _append_note(booking.admin_message or "", f"Payment cancelled by admin at {_now_label()}")
    log_audit(db, actor, "payment.cancel", "payment", payment.id, {"bookingId": payment.booking_id})
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s cancelled by %s", payment.id, actor)
    _notify(notifier, booking)
    return payment


def mark_paid(db: Session, notifier: Notifier, payment_id: str, actor: str) -> Payment:
    payment = get_payment(db, payment_id, lock=True)
    booking = _linked_booking(db, payment, lock=True)
    payment.status = "paid"
    payment.cancelled_at = None
    payment.cancelled_by = None
    if booking is not None:
        booking.payment_status = "paid"
        booking.status = "confirmed"
        booking.admin_message = _append_note(booking.admin_message or "", f"Payment marked paid by admin at {_now_label()}")
    log_audit(db, actor, "payment.mark_paid", "payment", payment.id, {"bookingId": payment.booking_id})
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s marked paid by %s", payment.id, actor)
    _notify(notifier, booking)
    return payment


def export_csv(db: Session, filters: PaymentFilters) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADER)
    for p in list_payments(db, filters)["items"]:
        writer.writerow([
            p.id,
            p.booking_type,
            p.user_name,
            p.user_email,
            f"{Decimal(p.amount or 0):.2f}",
            p.currency,
            p.status,
            p.gateway,
            p.created_at.strftime("%Y-%m-%d %H:%M") if p.created_at else "",
        ])
    return buf.getvalue()


def export_pdf(db: Session, filters: PaymentFilters) -> bytes:
    """Return an A4 landscape PDF listing the filtered payments."""
    result = list_payments(db, filters)
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=landscape(A4))
    w, h = landscape(A4)
    columns = [(40, "Type"), (140, "Name"), (290, "Email"), (490, "Amount"), (570, "Status"), (640, "Gateway"), (710, "Date")]

    def header(y: float) -> float:
        c.setFont("Helvetica-Bold", 16)
        c.drawString(40, y, f"{settings.ORG_NAME} - Payments")
        c.setFont("Helvetica", 9)
        c.drawString(40, y - 16, f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M')} UTC")
        c.setFont("Helvetica-Bold", 10)
        for x, label in columns:
            c.drawString(x, y - 40, label)
        c.setFont("Helvetica", 9)
        return y - 58

    y = header(h - 50)
    for p in result["items"]:
        if y < 60:
            c.showPage()
            y = header(h - 50)
        row = [
            p.booking_type,
            (p.user_name or "")[:28],
            (p.user_email or "")[:38],
            f"{Decimal(p.amount or 0):.2f} {p.currency}",
            p.status,
            p.gateway,
            p.created_at.strftime("%Y-%m-%d") if p.created_at else "",
        ]
        for (x, _), value in zip(columns, row):
            c.drawString(x, y, str(value))
        y -= 14

    totals = result["totals"]
    c.setFont("Helvetica-Bold", 10)
    c.drawString(40, max(y - 10, 30),
                 f"Paid: {totals['paidAmount']:.2f}   Pending: {totals['pendingAmount']:.2f}   Count: {totals['count']}")
    c.showPage()
    c.save()
    return buf.getvalue()
