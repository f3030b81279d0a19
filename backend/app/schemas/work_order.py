from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from app.db.model.work_order import WorkOrderStatus
from app.schemas._base import CamelModel


# ============================================================
# product update payload (stored as JSON on the work order)
# ============================================================
class VariantPriceUpdate(CamelModel):
    variant_id: int
    variant_sku: Optional[str] = None
    new_regular_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    new_sale_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)

    def has_price(self) -> bool:
        return self.new_regular_price is not None or self.new_sale_price is not None


class ProductPriceUpdate(CamelModel):
    product_id: int
    product_name: str = ""
    new_regular_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    new_sale_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    variant_updates: List[VariantPriceUpdate] = Field(default_factory=list)

    @model_validator(mode="after")
    def _needs_a_price(self):
        if self.new_regular_price is None and self.new_sale_price is None \
                and not any(v.has_price() for v in self.variant_updates):
            raise ValueError(f"product {self.product_id}: at least one new price is required")
        return self

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def parse_product_updates(items: List[Any]) -> List[ProductPriceUpdate]:
    return [i if isinstance(i, ProductPriceUpdate) else ProductPriceUpdate.model_validate(i) for i in items or []]


# ============================================================
# requests
# ============================================================
class WorkOrderCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    product_updates: List[ProductPriceUpdate]
    scheduled_at: Optional[datetime] = None
    execute_immediately: bool = False

    @field_validator("product_updates")
    @classmethod
    def _not_empty(cls, v):
        if not v:
            raise ValueError("productUpdates must contain at least one product")
        return v


class WorkOrderUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    product_updates: Optional[List[ProductPriceUpdate]] = None
    scheduled_at: Optional[datetime] = None
    execute_immediately: Optional[bool] = None
    archived: Optional[bool] = None
    status: Optional[WorkOrderStatus] = None
    error: Optional[str] = None


# ============================================================
# responses
# ============================================================
class WorkOrderOut(CamelModel):
    id: str
    company_id: str
    created_by: str
    title: str
    product_updates: List[Dict[str, Any]]
    original_prices: Optional[List[Dict[str, Any]]] = None
    scheduled_at: Optional[datetime] = None
    execute_immediately: bool
    status: WorkOrderStatus
    archived: bool
    created_at: datetime
    executed_at: Optional[datetime] = None
    undone_at: Optional[datetime] = None
    error: Optional[str] = None
