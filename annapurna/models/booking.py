from decimal import Decimal
from sqlalchemy import String, Integer, DateTime, Boolean, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from annapurna.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_type: Mapped[str] = mapped_column(String(20), index=True)  # package, retreat, health_program, course

    product_id: Mapped[str] = mapped_column(String(36), index=True)
    product_title: Mapped[str] = mapped_column(String(200), default="")

    customer_name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(320), default="", index=True)
    phone: Mapped[str] = mapped_column(String(40), default="")
    country: Mapped[str] = mapped_column(String(80), default="")
    preferred_start_date: Mapped[str | None] = mapped_column(String(40), nullable=True)  # free text from the form

    quantity: Mapped[int] = mapped_column(Integer, default=1)  # persons
    mode: Mapped[str | None] = mapped_column(String(20), nullable=True)  # online, residential, dayVisitor

    price_per_person: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)

    # accommodation snapshot, frozen at booking time
    accommodation_selected: Mapped[bool] = mapped_column(Boolean, default=False)
    accommodation_mode: Mapped[str] = mapped_column(String(30), default="none")
    accommodation_label: Mapped[str] = mapped_column(String(200), default="")
    accommodation_location: Mapped[str | None] = mapped_column(String(120), nullable=True)
    accommodation_star_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    partner_hotel_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    accommodation_price_per_night: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    accommodation_nights: Mapped[int] = mapped_column(Integer, default=0)
    accommodation_total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, confirmed, cancelled, completed, rescheduled
    payment_status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, paid, failed, cancelled, refunded
    payment_gateway: Mapped[str | None] = mapped_column(String(20), nullable=True)  # stripe, manual

    created_by: Mapped[str] = mapped_column(String(10), default="user")  # user, admin
    source: Mapped[str] = mapped_column(String(20), default="online")  # online, phone, walkin, whatsapp, other
    admin_message: Mapped[str] = mapped_column(Text, default="")
    notes: Mapped[str] = mapped_column(Text, default="")
    internal_notes: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
