
from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.model.product import PriceHistory, Product, ProductVariant
from app.repository._tenant import (
    dialect_insert, require_company, scoped_delete, scoped_select, scoped_update,
)
from app.utils.clock import now_utc


logger = logging.getLogger(__name__)


PRODUCT_COLUMNS = (
    "name", "sku", "description", "category", "regular_price",
    "sale_price", "stock", "weight", "status",
)
VARIANT_COLUMNS = (
    "product_id", "variant_sku", "option_values", "regular_price",
    "sale_price", "calculated_price", "stock",
)
PRICE_COLUMNS = ("regular_price", "sale_price")
CHANGE_TYPES = ("manual", "work_order", "sync")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def _clean_row_values(row: dict, allowed: Iterable[str]) -> dict:
    """
    Keep only known columns and normalise non-finite numbers to None.
    """
    clean: dict[str, Any] = {}
    for key in allowed:
        if key not in row:
            continue
        value = row[key]
        if isinstance(value, Decimal) and not value.is_finite():
            value = None
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            value = None
        clean[key] = value
    return clean


def _execute_upsert(
    db: Session,
    table,
    rows: list[dict],
    *,
    conflict_keys: List[str],
    update_columns: Iterable[str],
    chunk_size: int = 500,
) -> int:
    if not rows:
        return 0

    update_cols = [c for c in update_columns if c not in conflict_keys]
    total = 0
    for idx in range(0, len(rows), chunk_size):
        chunk = rows[idx: idx + chunk_size]
        stmt = dialect_insert(db, table).values(chunk)
        # on conflict: overwrite with the incoming values and bump last_updated
        updates = {col: getattr(stmt.excluded, col) for col in update_cols}
        updates["last_updated"] = now_utc()
        res = db.execute(stmt.on_conflict_do_update(index_elements=conflict_keys, set_=updates))
        total += int(res.rowcount or 0)
    return total


# ========= products =========
def list_products(
    db: Session,
    company_id: str,
    *,
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Tuple[List[Product], int]:
    """
    Page through one company's products, newest last_updated first.
    category "all" (or empty) means no category filter; search is a
    case-insensitive substring match on the name. Returns (rows, total).
    """
    page = max(1, int(page or 1))
    limit = max(1, min(int(limit or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE))

    conditions = [Product.company_id == require_company(company_id)]
    if category and category != "all":
        conditions.append(Product.category == category)
    if search:
        conditions.append(Product.name.icontains(search, autoescape=True))

    total = db.execute(select(func.count()).select_from(Product).where(*conditions)).scalar_one()
    stmt = (
        select(Product)
        .where(*conditions)
        .order_by(Product.last_updated.desc(), Product.id.asc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    return list(db.scalars(stmt)), int(total)


def get(db: Session, company_id: str, product_id: int) -> Optional[Product]:
    stmt = (
        scoped_select(Product, company_id)
        .where(Product.id == product_id)
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def get_many(db: Session, company_id: str, product_ids: Iterable[int]) -> Dict[int, Product]:
    ids = sorted({int(i) for i in product_ids})
    if not ids:
        return {}
    stmt = scoped_select(Product, company_id).where(Product.id.in_(ids)).execution_options(populate_existing=True)
    return {p.id: p for p in db.scalars(stmt)}


def upsert_products(db: Session, company_id: str, rows: List[dict], *, commit: bool = True) -> int:
    """Bulk INSERT ... ON CONFLICT (company_id, id) DO UPDATE."""
    company_id = require_company(company_id)
    payload = []
    for row in rows or []:
        if row.get("id") is None:
            continue
        clean = _clean_row_values(row, PRODUCT_COLUMNS)
        clean.update(company_id=company_id, id=int(row["id"]), last_updated=now_utc())
        payload.append(clean)
    n = _execute_upsert(
        db, Product.__table__, payload,
        conflict_keys=["company_id", "id"], update_columns=PRODUCT_COLUMNS,
    )
    if commit:
        db.commit()
    return n


def update(db: Session, company_id: str, product_id: int, *, commit: bool = True, **fields) -> Optional[Product]:
    clean = _clean_row_values(fields, PRODUCT_COLUMNS)
    if not clean:
        return get(db, company_id, product_id)
    clean["last_updated"] = now_utc()

    res = db.execute(
        scoped_update(Product, company_id)
        .where(Product.id == product_id)
        .values(**clean)
        .execution_options(synchronize_session=False)
    )
    if not res.rowcount:
        if commit:
            db.rollback()
        return None
    if commit:
        db.commit()
    return get(db, company_id, product_id)


def delete(db: Session, company_id: str, product_id: int) -> bool:
    """Delete one product (and its variants) of this company only."""
    db.execute(
        scoped_delete(ProductVariant, company_id)
        .where(ProductVariant.product_id == product_id)
        .execution_options(synchronize_session=False)
    )
    res = db.execute(
        scoped_delete(Product, company_id)
        .where(Product.id == product_id)
        .execution_options(synchronize_session=False)
    )
    if not res.rowcount:
        db.rollback()
        return False
    db.commit()
    return True


def clear_catalog(db: Session, company_id: str, *, commit: bool = False) -> int:
    """Remove every product and variant of the company. Caller owns the transaction by default."""
    db.execute(scoped_delete(ProductVariant, company_id).execution_options(synchronize_session=False))
    res = db.execute(scoped_delete(Product, company_id).execution_options(synchronize_session=False))
    if commit:
        db.commit()
    return int(res.rowcount or 0)


def distinct_categories(db: Session, company_id: str) -> List[str]:
    stmt = (
        select(Product.category)
        .where(
            Product.company_id == require_company(company_id),
            Product.category.is_not(None),
            Product.category != "",
        )
        .distinct()
        .order_by(Product.category.asc())
    )
    return list(db.scalars(stmt))


# ========= variants =========
def list_variants(db: Session, company_id: str, product_id: int) -> List[ProductVariant]:
    stmt = (
        scoped_select(ProductVariant, company_id)
        .where(ProductVariant.product_id == product_id)
        .order_by(ProductVariant.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(db.scalars(stmt))


def get_variant(db: Session, company_id: str, variant_id: int) -> Optional[ProductVariant]:
    stmt = (
        scoped_select(ProductVariant, company_id)
        .where(ProductVariant.id == variant_id)
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def upsert_variants(db: Session, company_id: str, rows: List[dict], *, commit: bool = True) -> int:
    company_id = require_company(company_id)
    payload = []
    for row in rows or []:
        if row.get("id") is None or row.get("product_id") is None:
            continue
        clean = _clean_row_values(row, VARIANT_COLUMNS)
        clean.update(company_id=company_id, id=int(row["id"]), last_updated=now_utc())
        payload.append(clean)
    n = _execute_upsert(
        db, ProductVariant.__table__, payload,
        conflict_keys=["company_id", "id"], update_columns=VARIANT_COLUMNS,
    )
    if commit:
        db.commit()
    return n


def update_variant(db: Session, company_id: str, variant_id: int, *, commit: bool = True, **fields) -> Optional[ProductVariant]:
    clean = _clean_row_values(fields, VARIANT_COLUMNS)
    if not clean:
        return get_variant(db, company_id, variant_id)
    clean["last_updated"] = now_utc()

    res = db.execute(
        scoped_update(ProductVariant, company_id)
        .where(ProductVariant.id == variant_id)
        .values(**clean)
        .execution_options(synchronize_session=False)
    )
    if not res.rowcount:
        if commit:
            db.rollback()
        return None
    if commit:
        db.commit()
    return get_variant(db, company_id, variant_id)


# ========= price history =========
def add_price_history(db: Session, company_id: str, entries: List[dict], *, commit: bool = True) -> int:
    company_id = require_company(company_id)
    count = 0
    for e in entries or []:
        change_type = e.get("change_type", "manual")
        if change_type not in CHANGE_TYPES:
            raise ValueError(f"change_type must be one of {list(CHANGE_TYPES)}")
        db.add(PriceHistory(
            company_id=company_id,
            product_id=int(e["product_id"]),
            variant_id=e.get("variant_id"),
            old_regular_price=e.get("old_regular_price"),
            new_regular_price=e.get("new_regular_price"),
            old_sale_price=e.get("old_sale_price"),
            new_sale_price=e.get("new_sale_price"),
            change_type=change_type,
            work_order_id=e.get("work_order_id"),
            changed_by=e.get("changed_by"),
        ))
        count += 1
    if commit:
        db.commit()
    return count


def list_price_history(db: Session, company_id: str, product_id: int, *, limit: int = 100) -> List[PriceHistory]:
    stmt = (
        scoped_select(PriceHistory, company_id)
        .where(PriceHistory.product_id == product_id)
        .order_by(PriceHistory.created_at.desc(), PriceHistory.id.desc())
        .limit(max(1, min(limit, 1000)))
    )
    return list(db.scalars(stmt))
