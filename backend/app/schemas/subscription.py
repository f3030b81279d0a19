from __future__ import annotations

from typing import List, Literal, Optional

from app.schemas._base import CamelModel


class PlanOut(CamelModel):
    id: str
    name: str
    price_id: str
    product_limit: int
    price: int
    interval: str
    features: List[str]


class SubscribeIn(CamelModel):
    plan_id: Literal["starter", "premium"]


class SubscribeOut(CamelModel):
    subscription_id: str
    client_secret: Optional[str] = None
    status: Optional[str] = None
    plan: str
