from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field, model_validator

from app.schemas._base import CamelModel


class ProductOut(CamelModel):
    id: int
    company_id: str
    name: str
    sku: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    regular_price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    stock: Optional[int] = None
    weight: Optional[Decimal] = None
    status: Optional[str] = None
    last_updated: datetime


class ProductPage(CamelModel):
    products: List[ProductOut]
    total: int
    page: int
    limit: int


class ProductUpdateIn(CamelModel):
    """Manual edit; price fields are pushed to BigCommerce when the store is connected."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sku: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=1024)
    regular_price: Optional[Decimal] = Field(default=None, ge=0)
    sale_price: Optional[Decimal] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    weight: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[str] = Field(default=None, pattern="^(published|draft)$")

    @model_validator(mode="after")
    def _not_empty(self):
        if not self.model_fields_set:
            raise ValueError("no fields to update")
        return self


class VariantOut(CamelModel):
    id: int
    product_id: int
    variant_sku: Optional[str] = None
    option_values: Optional[Dict[str, str]] = None
    regular_price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    calculated_price: Optional[Decimal] = None
    stock: Optional[int] = None
    last_updated: datetime


class PriceHistoryOut(CamelModel):
    id: int
    product_id: int
    variant_id: Optional[int] = None
    old_regular_price: Optional[Decimal] = None
    new_regular_price: Optional[Decimal] = None
    old_sale_price: Optional[Decimal] = None
    new_sale_price: Optional[Decimal] = None
    change_type: str
    work_order_id: Optional[str] = None
    changed_by: Optional[str] = None
    created_at: datetime


class SyncResultOut(CamelModel):
    message: str = "Products synced successfully"
    stored_count: int
    variant_count: int
    total_available: int
    product_limit: int
    subscription_plan: str
    is_limited: bool
