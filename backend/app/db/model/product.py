
from __future__ import annotations
from decimal import Decimal
from typing import Optional, Dict
from datetime import datetime

from sqlalchemy import (
    DateTime, String, Integer, Numeric, ForeignKey, ForeignKeyConstraint, Index, Text,
)
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, JSONType
from app.utils.clock import now_utc



"""
  products table: local cache of the upstream catalog
  - id mirrors the BigCommerce product id, so the key is (company_id, id)
  - category holds the flattened "A > B > C" path
"""
class Product(Base):

    __tablename__ = "products"

    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), primary_key=True)
    id:         Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    name:        Mapped[str]           = mapped_column(String(255), nullable=False)
    sku:         Mapped[Optional[str]] = mapped_column(String(255), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category:    Mapped[Optional[str]] = mapped_column(String(1024))

    regular_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    sale_price:    Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    stock:         Mapped[Optional[int]]     = mapped_column(Integer, default=0)
    weight:        Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 3))
    status:        Mapped[Optional[str]]     = mapped_column(String(32))     # published / draft

    last_updated: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index("ix_products_company_category", "company_id", "category"),
    )


class ProductVariant(Base):

    __tablename__ = "product_variants"

    company_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    id:         Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    product_id: Mapped[int] = mapped_column(Integer, nullable=False)

    variant_sku:      Mapped[Optional[str]]            = mapped_column(String(255))
    option_values:    Mapped[Optional[Dict[str, str]]] = mapped_column(JSONType)   # {"Size": "Large"}
    regular_price:    Mapped[Optional[Decimal]]        = mapped_column(Numeric(10, 2))
    sale_price:       Mapped[Optional[Decimal]]        = mapped_column(Numeric(10, 2))
    calculated_price: Mapped[Optional[Decimal]]        = mapped_column(Numeric(10, 2))
    stock:            Mapped[Optional[int]]            = mapped_column(Integer, default=0)

    last_updated: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc, onupdate=now_utc)

    __table_args__ = (
        ForeignKeyConstraint(
            ["company_id", "product_id"], ["products.company_id", "products.id"], ondelete="CASCADE",
        ),
        Index("ix_product_variants_company_product", "company_id", "product_id"),
    )


"""
  price_history table: one row per price change (manual edit / work order / sync)
"""
class PriceHistory(Base):

    __tablename__ = "price_history"

    id:         Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    product_id: Mapped[int] = mapped_column(Integer, nullable=False)
    variant_id: Mapped[Optional[int]] = mapped_column(Integer)

    old_regular_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    new_regular_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    old_sale_price:    Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    new_sale_price:    Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    change_type:   Mapped[str]           = mapped_column(String(16), nullable=False)    # manual / work_order / sync
    work_order_id: Mapped[Optional[str]] = mapped_column(String(36))
    changed_by:    Mapped[Optional[str]] = mapped_column(String(128))
    created_at:    Mapped[datetime]      = mapped_column(DateTime, nullable=False, default=now_utc)

    __table_args__ = (
        Index("ix_price_history_company_product", "company_id", "product_id", "created_at"),
    )
