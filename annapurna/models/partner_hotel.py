from decimal import Decimal
from sqlalchemy import String, DateTime, Boolean, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from annapurna.db.session import Base

class PartnerHotel(Base):
    __tablename__ = "partner_hotels"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    location: Mapped[str] = mapped_column(String(120), index=True)
    star_rating: Mapped[int] = mapped_column(Integer, index=True)  # 3, 4, 5
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
