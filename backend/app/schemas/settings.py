from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas._base import CamelModel


class ApiSettingsIn(CamelModel):
    store_hash: str = Field(..., min_length=1, max_length=64)
    access_token: str = Field(..., min_length=1, max_length=255)
    client_id: str = Field(..., min_length=1, max_length=255)
    show_stock: bool = True
    show_stock_status: bool = True


class ApiSettingsOut(CamelModel):
    id: int
    company_id: str
    store_hash: str
    access_token: str
    client_id: str
    show_stock: bool
    show_stock_status: bool
    last_sync_at: Optional[datetime] = None
    created_at: datetime


class ConnectionTestOut(CamelModel):
    success: bool
    message: str
