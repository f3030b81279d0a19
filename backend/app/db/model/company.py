
from __future__ import annotations
from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base
from app.utils.clock import now_utc


def _uuid_str() -> str:
    return str(uuid.uuid4())


"""
  companies table (tenant root)
  - subscription_plan / product_limit are kept in sync by the Stripe webhook
"""
class Company(Base):

    __tablename__ = "companies"

    id:   Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    subscription_plan:      Mapped[str] = mapped_column(String(32), nullable=False, default="trial")   # trial / starter / premium
    product_limit:          Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    stripe_customer_id:     Mapped[Optional[str]] = mapped_column(String(255))
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(String(255))
    subscription_status:    Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    current_period_end:     Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc, onupdate=now_utc)


"""
  company_invitations table
  - token is the only handle the invitee holds; accepted_at IS NULL means still redeemable
"""
class CompanyInvitation(Base):

    __tablename__ = "company_invitations"

    id:         Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    email:      Mapped[str] = mapped_column(String(255), nullable=False)
    role:       Mapped[str] = mapped_column(String(16), nullable=False, default="member")
    invited_by: Mapped[str] = mapped_column(String(128), ForeignKey("users.id"), nullable=False)
    token:      Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    status:     Mapped[str] = mapped_column(String(16), nullable=False, default="pending")   # pending / accepted

    expires_at:  Mapped[datetime] = mapped_column(DateTime, nullable=False)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at:  Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc)

    __table_args__ = (
        CheckConstraint("role IN ('admin','member')", name="role"),
        Index("ix_company_invitations_company_email", "company_id", "email"),
    )
