from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base
from app.utils.clock import now_utc


"""
  api_settings table
  - one row per company (unique company_id); saved via INSERT ... ON CONFLICT
"""
class ApiSettings(Base):

    __tablename__ = "api_settings"

    id:         Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, unique=True)

    store_hash:   Mapped[str] = mapped_column(String(64), nullable=False)
    access_token: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id:    Mapped[str] = mapped_column(String(255), nullable=False)

    show_stock:        Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    show_stock_status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at:   Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc)
