"""
SQLAlchemy Database Models
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, Float, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models"""
    pass


class LeadRecord(Base):
    """Quote request table; the pricing column is written once, at creation"""
    __tablename__ = "leads"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    customer: Mapped[dict] = mapped_column(JSON)
    selected_items: Mapped[list] = mapped_column(JSON)
    pricing: Mapped[dict] = mapped_column(JSON)
    gdpr_consent: Mapped[dict] = mapped_column(JSON)

    # Denormalized for listing
    customer_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    final_total: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default="new", index=True
    )  # new, contacted, email_sent, quoted, closed
    source: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
