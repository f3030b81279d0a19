from __future__ import annotations
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, JSONType


"""
  sessions table (server-side session store)
"""
class UserSession(Base):

    __tablename__ = "sessions"

    sid:    Mapped[str]            = mapped_column(String(255), primary_key=True)
    sess:   Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False)
    expire: Mapped[datetime]       = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("IDX_session_expire", "expire"),
    )
