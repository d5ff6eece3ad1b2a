from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union

from annapurna.models.booking import Booking

# Forms post numbers as strings as often as numbers; the pricing service parses them.
Number = Optional[Union[int, float, str]]


class BookingIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    productId: Optional[str] = None
    packageId: Optional[str] = None
    programId: Optional[str] = None
    retreatProgramId: Optional[str] = None
    healthProgramId: Optional[str] = None
    courseId: Optional[str] = None

    name: Optional[str] = Field(default=None, alias="fullName")
    email: Optional[str] = None  # plain str to allow .local and other dev domains
    phone: Optional[str] = None
    country: Optional[str] = None
    preferredStartDate: Optional[str] = None
    notes: Optional[str] = None

    quantity: Number = None
    peopleCount: Number = None
    numberOfPeople: Number = None
    mode: Optional[str] = None

    pricePerPerson: Number = None
    totalAmount: Number = None
    totalAmountUSD: Number = None

    accommodationMode: Optional[str] = None
    accommodationChoice: Optional[str] = None
    accommodationLabel: Optional[str] = None
    location: Optional[str] = None
    starRating: Number = None
    partnerHotelId: Optional[str] = None
    accommodationNights: Number = None
    accommodationPricePerNight: Number = None


class AdminBookingIn(BookingIn):
    status: Optional[str] = None
    paymentStatus: Optional[str] = None
    source: Optional[str] = None
    adminMessage: Optional[str] = None
    internalNotes: Optional[str] = None
    notifyCustomer: bool = False


class BookingStatusUpdate(BaseModel):
    status: Optional[str] = None
    adminMessage: Optional[str] = None
    preferredStartDate: Optional[str] = None
    newDate: Optional[str] = None
    quantity: Number = None
    peopleCount: Number = None
    numberOfPeople: Number = None
    notes: Optional[str] = None
    notifyCustomer: bool = True


def payload_of(body: BaseModel) -> dict:
    """Request body as a plain dict of the fields the caller actually sent."""
    return {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}


def booking_to_dict(b: Booking) -> dict:
    return {
        "id": b.id,
        "bookingType": b.booking_type,
        "productId": b.product_id,
        "productTitle": b.product_title,
        "name": b.customer_name,
        "email": b.email,
        "phone": b.phone,
        "country": b.country,
        "preferredStartDate": b.preferred_start_date,
        "quantity": b.quantity,
        "mode": b.mode,
        "pricePerPerson": float(b.price_per_person or 0),
        "subtotal": float(b.subtotal or 0),
        "accommodationSelected": bool(b.accommodation_selected),
        "accommodationMode": b.accommodation_mode,
        "accommodationLabel": b.accommodation_label,
        "accommodationLocation": b.accommodation_location,
        "accommodationStarRating": b.accommodation_star_rating,
        "partnerHotelId": b.partner_hotel_id,
        "accommodationPricePerNight": float(b.accommodation_price_per_night or 0),
        "accommodationNights": b.accommodation_nights,
        "accommodationTotalCost": float(b.accommodation_total_cost or 0),
        "totalAmount": float(b.total_amount or 0),
        "status": b.status,
        "paymentStatus": b.payment_status,
        "paymentGateway": b.payment_gateway,
        "createdBy": b.created_by,
        "source": b.source,
        "adminMessage": b.admin_message,
        "notes": b.notes,
        "internalNotes": b.internal_notes,
        "createdAt": b.created_at.isoformat() if b.created_at else None,
        "updatedAt": b.updated_at.isoformat() if b.updated_at else None,
    }
