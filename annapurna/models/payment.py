from decimal import Decimal
from sqlalchemy import String, DateTime, Numeric, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from annapurna.db.session import Base

class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("booking_id", "booking_type", name="uq_payments_booking"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), index=True)
    booking_type: Mapped[str] = mapped_column(String(20), index=True)
    gateway: Mapped[str] = mapped_column(String(20), default="manual")  # manual, stripe
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, paid, cancelled, refunded
    user_name: Mapped[str] = mapped_column(String(200), default="")
    user_email: Mapped[str] = mapped_column(String(320), default="", index=True)
    provider_ref: Mapped[str] = mapped_column(String(255), default="")  # Stripe checkout session id
    # pricing snapshot of the booking when the row was last written
    snapshot: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
