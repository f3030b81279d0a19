
"""
Domain mapping (pure functions): BigCommerce catalog dicts -> local row dicts.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
from decimal import Decimal

from app.utils.serialization import to_decimal


def _to_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _sale_price(v: Any) -> Optional[Decimal]:
    # the API reports "no sale price" as 0
    dec = to_decimal(v)
    if dec is None or dec == 0:
        return None
    return dec


def option_values_map(option_values: Optional[List[Dict[str, Any]]]) -> Dict[str, str]:
    """[{option_display_name: "Size", label: "Large"}] -> {"Size": "Large"}"""
    out: Dict[str, str] = {}
    for opt in option_values or []:
        name = opt.get("option_display_name")
        if name is None:
            continue
        out[str(name)] = "" if opt.get("label") is None else str(opt.get("label"))
    return out


def normalize_product(raw: Dict[str, Any], category_path: str = "") -> Dict[str, Any]:
    """Product row for the products table; category is the already-resolved path."""
    return {
        "id": _to_int(raw.get("id")),
        "name": str(raw.get("name") or ""),
        "sku": str(raw.get("sku") or ""),
        "description": str(raw.get("description") or ""),
        "category": category_path or "",
        "regular_price": to_decimal(raw.get("price")) or Decimal("0.00"),
        "sale_price": _sale_price(raw.get("sale_price")),
        "stock": _to_int(raw.get("inventory_level")),
        "weight": to_decimal(raw.get("weight")) or Decimal("0.00"),
        "status": "published" if raw.get("is_visible") else "draft",
    }


def normalize_variant(raw: Dict[str, Any], product_id: Optional[int] = None) -> Dict[str, Any]:
    return {
        "id": _to_int(raw.get("id")),
        "product_id": _to_int(product_id if product_id is not None else raw.get("product_id")),
        "variant_sku": str(raw.get("sku") or ""),
        "option_values": option_values_map(raw.get("option_values")),
        "regular_price": to_decimal(raw.get("price")),
        "sale_price": _sale_price(raw.get("sale_price")),
        "calculated_price": to_decimal(raw.get("calculated_price")),
        "stock": _to_int(raw.get("inventory_level")),
    }


def price_payload(regular_price: Optional[Decimal] = None, sale_price: Optional[Decimal] = None) -> Dict[str, float]:
    """
    PUT body for a product or variant price change.
    A sale price of 0 clears the sale price upstream (null is rejected there).
    """
    body: Dict[str, float] = {}
    if regular_price is not None:
        body["price"] = float(regular_price)
    if sale_price is not None:
        body["sale_price"] = float(sale_price)
    return body
