from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, CheckConstraint, text
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base
from app.utils.clock import now_utc



class User(Base):

    __tablename__ = "users"

    id:         Mapped[str] = mapped_column(String(128), primary_key=True)     # Firebase uid
    company_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("companies.id"), index=True)
    email:      Mapped[Optional[str]] = mapped_column(String(255), unique=True, index=True)

    first_name:        Mapped[Optional[str]] = mapped_column(String(128))
    last_name:         Mapped[Optional[str]] = mapped_column(String(128))
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(1024))

    role:      Mapped[str]  = mapped_column(String(16), nullable=False, default="member")   # owner / admin / member
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc, onupdate=now_utc)

    __table_args__ = (
        CheckConstraint("role IN ('owner','admin','member')", name="role"),
    )
