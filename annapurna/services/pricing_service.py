"""Price resolution for bookings.

All amounts are Decimal USD rounded to cents. A quote is a pure function of
its inputs plus the partner-hotel rows it reads, so re-running it on a stored
booking reproduces the stored totals.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy import select
from sqlalchemy.orm import Session

from annapurna.core.errors import ValidationError
from annapurna.models.partner_hotel import PartnerHotel

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

ACCOMMODATION_NONE = "none"
OWN_ARRANGEMENT = "own_arrangement"
HOSPITAL_PREMIUM = "hospital_premium"
PARTNER_HOTEL = "partner_hotel"
HOTEL_MODES = {"location", "star", "locationAndStar", PARTNER_HOTEL}
ACCOMMODATION_MODES = {ACCOMMODATION_NONE, OWN_ARRANGEMENT, HOSPITAL_PREMIUM} | HOTEL_MODES

TOTAL_MISMATCH = "Total amount mismatch. Please refresh and try again."


def money(value: Decimal | int) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value, field_name: str) -> Decimal | None:
    """Parse a client supplied amount. None/"" mean not supplied; junk and negatives are rejected."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return money(amount)


def parse_quantity(value) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError("Number of persons must be at least 1")
    try:
        as_decimal = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Number of persons must be at least 1")
    if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value() or as_decimal < 1:
        raise ValidationError("Number of persons must be at least 1")
    return int(as_decimal)


def parse_count(value, field_name: str) -> int | None:
    """Positive integer such as a night count; None when not supplied."""
    amount = parse_amount(value, field_name)
    if amount is None or amount == 0:
        return None
    if amount != amount.to_integral_value():
        raise ValidationError(f"{field_name} must be a whole number")
    return int(amount)


def resolve_base_price(explicit, product_price) -> Decimal:
    """Explicit positive price wins, then the catalog price; otherwise the booking cannot be priced."""
    price = parse_amount(explicit, "pricePerPerson")
    if price is not None and price > 0:
        return price
    if product_price is not None and Decimal(product_price) > 0:
        return money(product_price)
    raise ValidationError("Price per person is required")


@dataclass
class AccommodationRequest:
    mode: str = ACCOMMODATION_NONE
    location: str | None = None
    star_rating: int | None = None
    partner_hotel_id: str | None = None
    nights: int | None = None
    price_per_night: Decimal | None = None
    label: str = ""

    @classmethod
    def from_payload(cls, payload: dict) -> "AccommodationRequest":
        mode = (payload.get("accommodationChoice") or payload.get("accommodationMode") or ACCOMMODATION_NONE).strip()
        if mode not in ACCOMMODATION_MODES:
            raise ValidationError("Invalid accommodation choice")
        star = payload.get("starRating")
        return cls(
            mode=mode,
            location=(payload.get("location") or payload.get("accommodationLocation") or None),
            star_rating=parse_count(star, "starRating"),
            partner_hotel_id=payload.get("partnerHotelId") or None,
            nights=parse_count(payload.get("accommodationNights"), "accommodationNights"),
            price_per_night=parse_amount(payload.get("accommodationPricePerNight"), "accommodationPricePerNight"),
            label=payload.get("accommodationLabel") or "",
        )


@dataclass
class AccommodationQuote:
    selected: bool = False
    mode: str = ACCOMMODATION_NONE
    label: str = ""
    location: str | None = None
    star_rating: int | None = None
    partner_hotel_id: str | None = None
    price_per_night: Decimal = ZERO
    nights: int = 0
    total_cost: Decimal = ZERO


@dataclass
class PriceQuote:
    price_per_person: Decimal
    quantity: int
    subtotal: Decimal
    total: Decimal
    accommodation: AccommodationQuote = field(default_factory=AccommodationQuote)

    def as_dict(self) -> dict:
        acc = self.accommodation
        return {
            "pricePerPerson": float(self.price_per_person),
            "quantity": self.quantity,
            "subtotal": float(self.subtotal),
            "accommodationTotalCost": float(acc.total_cost),
            "accommodationNights": acc.nights,
            "accommodationPricePerNight": float(acc.price_per_night),
            "accommodationMode": acc.mode,
            "total": float(self.total),
        }


def find_partner_hotel(db: Session, req: AccommodationRequest) -> PartnerHotel | None:
    """Explicit hotel id first, then the cheapest active hotel matching location and/or star."""
    if req.partner_hotel_id:
        hotel = db.get(PartnerHotel, req.partner_hotel_id)
        if hotel and hotel.is_active:
            return hotel
        return None
    if not req.location and not req.star_rating:
        return None
    stmt = select(PartnerHotel).where(PartnerHotel.is_active.is_(True))
    if req.location and req.mode in {"location", "locationAndStar", PARTNER_HOTEL}:
        stmt = stmt.where(PartnerHotel.location.ilike(req.location.strip()))
    if req.star_rating and req.mode in {"star", "locationAndStar", PARTNER_HOTEL}:
        stmt = stmt.where(PartnerHotel.star_rating == req.star_rating)
    stmt = stmt.order_by(PartnerHotel.price_per_night.asc(), PartnerHotel.name.asc())
    return db.execute(stmt).scalars().first()


def resolve_accommodation(
    db: Session,
    req: AccommodationRequest | None,
    *,
    quantity: int,
    default_nights: int | None,
    per_person: bool,
    hospital_premium_price=None,
) -> AccommodationQuote:
    nights = (req.nights if req else None) or default_nights or 1
    if req is None or req.mode == ACCOMMODATION_NONE:
        return AccommodationQuote(nights=nights)
    if req.mode == OWN_ARRANGEMENT:
        return AccommodationQuote(mode=OWN_ARRANGEMENT, label=req.label or "Own arrangement", nights=nights)

    people = quantity if per_person else 1

    if req.mode == HOSPITAL_PREMIUM:
        rate = req.price_per_night
        if rate is None and hospital_premium_price is not None:
            rate = money(hospital_premium_price)
        if not rate:
            logger.info("No hospital premium rate configured; booking without accommodation")
            return AccommodationQuote(nights=nights)
        return AccommodationQuote(
            selected=True,
            mode=HOSPITAL_PREMIUM,
            label=req.label or "Hospital premium room",
            price_per_night=rate,
            nights=nights,
            total_cost=money(rate * nights * quantity),
        )

    hotel = find_partner_hotel(db, req)
    if hotel is None:
        logger.info("No partner hotel matched mode=%s location=%s star=%s", req.mode, req.location, req.star_rating)
        return AccommodationQuote(nights=nights)
    rate = req.price_per_night if req.price_per_night is not None else money(hotel.price_per_night)
    return AccommodationQuote(
        selected=True,
        mode=req.mode,
        label=req.label or hotel.name,
        location=hotel.location,
        star_rating=hotel.star_rating,
        partner_hotel_id=hotel.id,
        price_per_night=rate,
        nights=nights,
        total_cost=money(rate * nights * people),
    )


def build_quote(price_per_person: Decimal, quantity: int, accommodation: AccommodationQuote | None = None) -> PriceQuote:
    accommodation = accommodation or AccommodationQuote()
    subtotal = money(price_per_person * quantity)
    return PriceQuote(
        price_per_person=money(price_per_person),
        quantity=quantity,
        subtotal=subtotal,
        total=money(subtotal + accommodation.total_cost),
        accommodation=accommodation,
    )


def check_total(supplied, computed: Decimal) -> None:
    """A client total that disagrees with the server's computation is rejected, never trusted."""
    amount = parse_amount(supplied, "totalAmount")
    if amount is None:
        return
    if amount != money(computed):
        logger.info("Rejected total %s, computed %s", amount, computed)
        raise ValidationError(TOTAL_MISMATCH)


def stored_accommodation(booking, quantity: int, per_person: bool) -> AccommodationQuote:
    """Reprice a booking's frozen accommodation snapshot for a (possibly new) head count."""
    if not booking.accommodation_selected:
        return AccommodationQuote(
            mode=booking.accommodation_mode or ACCOMMODATION_NONE,
            label=booking.accommodation_label or "",
            nights=booking.accommodation_nights or 0,
        )
    rate = money(booking.accommodation_price_per_night or 0)
    nights = booking.accommodation_nights or 1
    people = quantity if (per_person or booking.accommodation_mode == HOSPITAL_PREMIUM) else 1
    return AccommodationQuote(
        selected=True,
        mode=booking.accommodation_mode,
        label=booking.accommodation_label,
        location=booking.accommodation_location,
        star_rating=booking.accommodation_star_rating,
        partner_hotel_id=booking.partner_hotel_id,
        price_per_night=rate,
        nights=nights,
        total_cost=money(rate * nights * people),
    )


def quote_from_snapshot(booking, per_person: bool, quantity: int | None = None) -> PriceQuote:
    quantity = quantity or booking.quantity
    return build_quote(
        Decimal(booking.price_per_person or 0),
        quantity,
        stored_accommodation(booking, quantity, per_person),
    )
