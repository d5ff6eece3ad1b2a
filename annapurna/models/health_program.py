from decimal import Decimal
from sqlalchemy import String, DateTime, Boolean, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from annapurna.db.session import Base

class HealthProgram(Base):
    __tablename__ = "health_programs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(220), unique=True, index=True)
    summary: Mapped[str] = mapped_column(Text, default="")
    duration_in_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # one price per attendance mode: online, residential, dayVisitor
    price_online: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    price_residential: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    price_day_visitor: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
