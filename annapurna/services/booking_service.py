"""Booking lifecycle shared by every booking type.

Each write recomputes the pricing snapshot server-side, writes the booking and
its ledger row in one transaction and only then notifies the customer.
"""
import uuid
import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from annapurna.core.errors import NotFoundError, ValidationError
from annapurna.models.booking import Booking
from annapurna.schemas.booking import booking_to_dict
from annapurna.services.audit_service import log_audit
from annapurna.services.booking_kinds import BookingKind
from annapurna.services.booking_states import check_transition, validate_payment_status, validate_status
from annapurna.services.notification_service import Notifier
from annapurna.services.payment_ledger import delete_payment, ledger_status_for, upsert_payment
from annapurna.services.pricing_service import (
    AccommodationQuote,
    AccommodationRequest,
    PriceQuote,
    build_quote,
    check_total,
    money,
    parse_amount,
    parse_quantity,
    quote_from_snapshot,
    resolve_accommodation,
    resolve_base_price,
    stored_accommodation,
)

logger = logging.getLogger(__name__)

QUANTITY_KEYS = ("quantity", "peopleCount", "numberOfPeople")
TOTAL_KEYS = ("totalAmount", "totalAmountUSD")
ACCOMMODATION_KEYS = (
    "accommodationMode", "accommodationChoice", "location", "starRating",
    "partnerHotelId", "accommodationNights", "accommodationPricePerNight",
)
SOURCES = {"online", "phone", "walkin", "whatsapp", "other"}


def _first(payload: dict, keys: tuple[str, ...]):
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _clean(value) -> str:
    return (value or "").strip() if isinstance(value, str) else (str(value) if value is not None else "")


class BookingService:
    def __init__(self, db: Session, kind: BookingKind, notifier: Notifier, actor: str = "customer"):
        self.db = db
        self.kind = kind
        self.notifier = notifier
        self.actor = actor

    # pricing

    def _quantity(self, payload: dict, default: int | None = None) -> int:
        raw = _first(payload, QUANTITY_KEYS)
        if raw is None and default is not None:
            return default
        return parse_quantity(raw)

    def _accommodation(self, product, payload: dict, quantity: int, admin: bool = True) -> AccommodationQuote | None:
        if not self.kind.supports_accommodation:
            return None
        req = AccommodationRequest.from_payload(payload)
        if not admin:
            # public forms may not set their own nightly rate
            req.price_per_night = None
        return resolve_accommodation(
            self.db,
            req,
            quantity=quantity,
            default_nights=self.kind.default_nights(product),
            per_person=self.kind.per_person_accommodation,
            hospital_premium_price=self.kind.hospital_premium_price(product),
        )

    def stored_accommodation(self, booking: Booking, quantity: int) -> AccommodationQuote:
        return stored_accommodation(booking, quantity, self.kind.per_person_accommodation)

    def requote(self, booking: Booking, quantity: int | None = None) -> PriceQuote:
        return quote_from_snapshot(booking, self.kind.per_person_accommodation, quantity)

    def _apply_quote(self, booking: Booking, quote: PriceQuote) -> None:
        acc = quote.accommodation
        booking.quantity = quote.quantity
        booking.price_per_person = quote.price_per_person
        booking.subtotal = quote.subtotal
        booking.accommodation_selected = acc.selected
        booking.accommodation_mode = acc.mode
        booking.accommodation_label = acc.label
        booking.accommodation_location = acc.location
        booking.accommodation_star_rating = acc.star_rating
        booking.partner_hotel_id = acc.partner_hotel_id
        booking.accommodation_price_per_night = acc.price_per_night
        booking.accommodation_nights = acc.nights
        booking.accommodation_total_cost = acc.total_cost
        booking.total_amount = quote.total

    # reads

    def get(self, booking_id: str, lock: bool = False) -> Booking:
        stmt = select(Booking).where(Booking.id == booking_id, Booking.booking_type == self.kind.type)
        if lock:
            stmt = stmt.with_for_update()
        booking = self.db.execute(stmt).scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def list(self, status: str | None = None, payment_status: str | None = None, q: str | None = None) -> list[Booking]:
        stmt = select(Booking).where(Booking.booking_type == self.kind.type)
        if status and status != "all":
            stmt = stmt.where(Booking.status == status)
        if payment_status and payment_status != "all":
            stmt = stmt.where(Booking.payment_status == payment_status)
        if q:
            like = f"%{q.strip()}%"
            stmt = stmt.where(or_(
                Booking.customer_name.ilike(like),
                Booking.email.ilike(like),
                Booking.phone.ilike(like),
            ))
        stmt = stmt.order_by(Booking.created_at.desc())
        return list(self.db.execute(stmt).scalars().all())

    # writes

    def create(self, payload: dict, admin: bool = False, notify: bool | None = None) -> Booking:
        kind = self.kind
        name = _clean(payload.get("name"))
        email = _clean(payload.get("email")).lower()
        phone = _clean(payload.get("phone"))
        kind.validate_contact(name, email, phone)

        product = kind.load_product(self.db, kind.read_product_id(payload), visible_only=not admin)
        mode = kind.resolve_mode(product, payload.get("mode"))
        quantity = self._quantity(payload, default=1)
        base_price = resolve_base_price(payload.get("pricePerPerson"), kind.catalog_price(product, mode))
        quote = build_quote(base_price, quantity, self._accommodation(product, payload, quantity, admin=admin))
        check_total(_first(payload, TOTAL_KEYS), quote.total)

        if admin:
            status = validate_status(payload.get("status") or "confirmed")
            payment_status = validate_payment_status(
                payload.get("paymentStatus") or ("paid" if status == "confirmed" else "pending")
            )
            source = payload.get("source") or "other"
        else:
            status, payment_status, source = "pending", "pending", "online"
        if source not in SOURCES:
            raise ValidationError("Invalid source")

        booking = Booking(
            id=str(uuid.uuid4()),
            booking_type=kind.type,
            product_id=product.id,
            product_title=kind.product_title(product),
            customer_name=name,
            email=email,
            phone=phone,
            country=_clean(payload.get("country")),
            preferred_start_date=_clean(payload.get("preferredStartDate")) or None,
            mode=mode,
            status=status,
            payment_status=payment_status,
            payment_gateway="manual",
            created_by="admin" if admin else "user",
            source=source,
            admin_message=_clean(payload.get("adminMessage")) if admin else "",
            notes=_clean(payload.get("notes")),
            internal_notes=_clean(payload.get("internalNotes")) if admin else "",
        )
        self._apply_quote(booking, quote)
        self.db.add(booking)
        self.db.flush()
        upsert_payment(self.db, booking, gateway="manual")
        if admin:
            log_audit(self.db, self.actor, "booking.create_admin", "booking", booking.id,
                      {"type": kind.type, "status": status, "total": str(booking.total_amount)})
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Created %s booking %s total=%s by %s", kind.type, booking.id, booking.total_amount, booking.created_by)

        if notify is None:
            notify = not admin
        if notify:
            self.notify(booking, "created")
        return booking

    def update_status(self, booking_id: str, payload: dict, notify: bool = True) -> Booking:
        booking = self.get(booking_id, lock=True)
        previous = booking.status
        target = payload.get("status") or booking.status
        admin_message = _clean(payload.get("adminMessage"))
        new_date = _clean(payload.get("newDate") or payload.get("preferredStartDate")) or None
        check_transition(booking.status, target, admin_message=admin_message, new_date=new_date)

        booking.status = target
        if admin_message:
            booking.admin_message = admin_message
        if new_date:
            booking.preferred_start_date = new_date
        if payload.get("notes") is not None:
            booking.notes = _clean(payload.get("notes"))
        if _first(payload, QUANTITY_KEYS) is not None:
            self._apply_quote(booking, self.requote(booking, self._quantity(payload)))

        upsert_payment(self.db, booking)
        log_audit(self.db, self.actor, "booking.status", "booking", booking.id,
                  {"from": previous, "to": target, "total": str(booking.total_amount)})
        self.db.commit()
        self.db.refresh(booking)
        logger.info("%s booking %s status %s -> %s", self.kind.type, booking.id, previous, target)

        if notify:
            self.notify(booking, "status")
        return booking

    def update(self, booking_id: str, payload: dict, force: bool = False, notify: bool = False) -> Booking:
        booking = self.get(booking_id, lock=True)
        previous = booking.status

        if "name" in payload or "email" in payload or "phone" in payload:
            name = _clean(payload.get("name", booking.customer_name))
            email = _clean(payload.get("email", booking.email)).lower()
            phone = _clean(payload.get("phone", booking.phone))
            self.kind.validate_contact(name, email, phone)
            booking.customer_name, booking.email, booking.phone = name, email, phone
        for key, attr in (("country", "country"), ("notes", "notes"), ("internalNotes", "internal_notes"),
                          ("adminMessage", "admin_message")):
            if key in payload:
                setattr(booking, attr, _clean(payload[key]))
        if "preferredStartDate" in payload:
            booking.preferred_start_date = _clean(payload["preferredStartDate"]) or None
        if "source" in payload:
            if payload["source"] not in SOURCES:
                raise ValidationError("Invalid source")
            booking.source = payload["source"]

        quantity = self._quantity(payload, default=booking.quantity)
        if "mode" in payload or "pricePerPerson" in payload or any(k in payload for k in ACCOMMODATION_KEYS):
            product = self.kind.load_product(self.db, booking.product_id)
            if "mode" in payload:
                booking.mode = self.kind.resolve_mode(product, payload["mode"])
            if "pricePerPerson" in payload:
                base_price = resolve_base_price(payload["pricePerPerson"], None)
            elif "mode" in payload:
                base_price = resolve_base_price(None, self.kind.catalog_price(product, booking.mode))
            else:
                base_price = money(booking.price_per_person or 0)
            if any(k in payload for k in ACCOMMODATION_KEYS):
                accommodation = self._accommodation(product, payload, quantity)
            else:
                accommodation = self.stored_accommodation(booking, quantity)
            quote = build_quote(base_price, quantity, accommodation)
        else:
            quote = self.requote(booking, quantity)

        supplied_total = _first(payload, TOTAL_KEYS)
        self._apply_quote(booking, quote)
        if force and supplied_total is not None:
            override = parse_amount(supplied_total, "totalAmount")
            if override != quote.total:
                logger.warning("Admin override of %s booking %s total: computed %s, stored %s",
                               self.kind.type, booking.id, quote.total, override)
                booking.total_amount = override
        else:
            check_total(supplied_total, quote.total)

        if payload.get("paymentStatus"):
            booking.payment_status = validate_payment_status(payload["paymentStatus"])
            if booking.payment_status == "paid" and not payload.get("status"):
                payload = {**payload, "status": "confirmed"}
        if payload.get("status"):
            if force:
                booking.status = validate_status(payload["status"])
            else:
                check_transition(booking.status, payload["status"],
                                 admin_message=booking.admin_message,
                                 new_date=payload.get("preferredStartDate"))
                booking.status = payload["status"]

        ledger_status = ledger_status_for(booking) if payload.get("paymentStatus") else None
        upsert_payment(self.db, booking, status=ledger_status)
        log_audit(self.db, self.actor, "booking.update", "booking", booking.id,
                  {"force": force, "from": previous, "to": booking.status, "total": str(booking.total_amount)})
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Updated %s booking %s (force=%s)", self.kind.type, booking.id, force)

        if notify:
            self.notify(booking, "status")
        return booking

    def remove(self, booking_id: str) -> None:
        booking = self.get(booking_id, lock=True)
        delete_payment(self.db, booking)
        self.db.delete(booking)
        log_audit(self.db, self.actor, "booking.delete", "booking", booking_id, {"type": self.kind.type})
        self.db.commit()
        logger.info("Deleted %s booking %s and its payment", self.kind.type, booking_id)

    def notify(self, booking: Booking, event: str) -> None:
        self.notifier.send(booking.email, {"event": event, "booking": booking_to_dict(booking)})
