"""
Owner statement models
A statement (stored as an invoice row) summarizes one period of bookings for an owner
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    period = Column(String(100), nullable=False)  # e.g. "Janvier 2025"

    # Totals
    totals = Column(JSON, nullable=True)
    total_amount = Column(Float, default=0.0, nullable=False)  # amount owed to the owner
    commission_amount = Column(Float, default=0.0, nullable=False)
    currency = Column(String(3), default="eur", nullable=False)

    # Generated PDF in the statements bucket
    pdf_path = Column(String(500), nullable=True)

    # Stripe Connect payout tracking
    transfer_completed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    profile = relationship("Profile")
