
from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.integrations.bigcommerce import BigCommerceCatalog, normalize_product, normalize_variant
from app.repository import api_settings_repo, company_repo, product_repo
from app.services.catalog.category_paths import CategoryIndex
from app.services.errors import NotFoundError


logger = logging.getLogger(__name__)


def _fetch_products(catalog: BigCommerceCatalog, limit: int) -> tuple[List[Dict[str, Any]], int]:
    """Page through the store until `limit` products are collected. Returns (products, total in store)."""
    collected: List[Dict[str, Any]] = []
    page, total = 1, 0
    while len(collected) < limit:
        rows, total = catalog.get_products_page(page)
        if not rows:
            break
        collected.extend(rows)
        if page * catalog.page_size >= total:
            break
        page += 1
    return collected[:limit], total


def _price_changes(previous: Dict[int, Any], rows: List[Dict[str, Any]]) -> List[dict]:
    out = []
    for row in rows:
        old = previous.get(row["id"])
        if old is None:
            continue
        if old.regular_price == row["regular_price"] and old.sale_price == row["sale_price"]:
            continue
        out.append({
            "product_id": row["id"],
            "old_regular_price": old.regular_price,
            "new_regular_price": row["regular_price"],
            "old_sale_price": old.sale_price,
            "new_sale_price": row["sale_price"],
            "change_type": "sync",
        })
    return out


"""
Full catalog re-sync for one company
    1) read the plan limit (products beyond it are not stored)
    2) page products from BigCommerce with variants included
    3) load every category and resolve each product's best category path
    4) in one transaction: clear the company's products/variants, insert the new
       rows, record price changes seen since the last sync, stamp last_sync_at
"""
def sync_catalog(db: Session, company_id: str, catalog: BigCommerceCatalog) -> Dict[str, Any]:
    company = company_repo.get(db, company_id)
    if company is None:
        raise NotFoundError(f"company {company_id} not found")
    limit = max(0, int(company.product_limit or 0))

    raw_products, total_available = _fetch_products(catalog, limit) if limit else ([], catalog.get_product_count())
    index = CategoryIndex(catalog.get_categories())

    product_rows: List[Dict[str, Any]] = []
    variant_rows: List[Dict[str, Any]] = []
    for raw in raw_products:
        path = index.best_path(raw.get("categories") or [])
        row = normalize_product(raw, path)
        product_rows.append(row)
        variant_rows.extend(normalize_variant(v, row["id"]) for v in raw.get("variants") or [])

    previous = product_repo.get_many(db, company_id, (r["id"] for r in product_rows))
    history = _price_changes(previous, product_rows)

    try:
        product_repo.clear_catalog(db, company_id, commit=False)
        product_repo.upsert_products(db, company_id, product_rows, commit=False)
        product_repo.upsert_variants(db, company_id, variant_rows, commit=False)
        product_repo.add_price_history(db, company_id, history, commit=False)
        api_settings_repo.touch_last_sync(db, company_id, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("catalog_sync failed company=%s", company_id)
        raise

    result = {
        "stored_count": len(product_rows),
        "variant_count": len(variant_rows),
        "total_available": int(total_available),
        "product_limit": limit,
        "subscription_plan": company.subscription_plan,
        "is_limited": int(total_available) > limit,
    }
    logger.info(
        "catalog_sync done company=%s stored=%d variants=%d available=%d limit=%d",
        company_id, result["stored_count"], result["variant_count"], result["total_available"], limit,
    )
    return result
