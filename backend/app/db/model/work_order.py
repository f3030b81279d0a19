from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, JSONType
from app.utils.clock import now_utc


class WorkOrderStatus(str, Enum):
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    UNDONE = "undone"


"""
  work_orders table
  - product_updates: ordered list of {productId, productName, newRegularPrice?, newSalePrice?, variantUpdates?}
  - original_prices: snapshot taken when execution starts, consumed by undo
  - archived only controls visibility, never status
"""
class WorkOrder(Base):

    __tablename__ = "work_orders"

    id:         Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    created_by: Mapped[str] = mapped_column(String(128), ForeignKey("users.id"), nullable=False)
    title:      Mapped[str] = mapped_column(String(255), nullable=False)

    product_updates: Mapped[List[Dict[str, Any]]]           = mapped_column(JSONType, nullable=False)
    original_prices: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSONType)

    scheduled_at:        Mapped[Optional[datetime]] = mapped_column(DateTime)
    execute_immediately: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status:              Mapped[str]  = mapped_column(String(16), nullable=False, default=WorkOrderStatus.PENDING.value)
    archived:            Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at:  Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc)
    executed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    undone_at:   Mapped[Optional[datetime]] = mapped_column(DateTime)
    error:       Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_work_orders_company_created", "company_id", "created_at"),
        Index("ix_work_orders_status", "status"),
    )
