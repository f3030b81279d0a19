
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from app.db.model.product import Product
from app.integrations.bigcommerce import BigCommerceCatalog
from app.repository import product_repo

logger = logging.getLogger(__name__)


"""
Manual product edit
    - price changes go to BigCommerce first when a store client is given
      (BigCommerceError propagates, the local row is left untouched)
    - then the local row is updated and a "manual" price history row written, in one commit
    - sale price 0 means "no sale price"
"""
def update_product(
    db: Session,
    company_id: str,
    product_id: int,
    fields: Mapping[str, Any],
    *,
    changed_by: Optional[str] = None,
    catalog: Optional[BigCommerceCatalog] = None,
) -> Optional[Product]:
    current = product_repo.get(db, company_id, product_id)
    if current is None:
        return None

    changes: Dict[str, Any] = dict(fields)
    new_regular = changes.get("regular_price")
    new_sale = changes.get("sale_price")
    price_changed = new_regular is not None or new_sale is not None

    if price_changed and catalog is not None:
        catalog.update_product_prices(product_id, regular_price=new_regular, sale_price=new_sale)

    if new_sale is not None and Decimal(new_sale) == 0:
        changes["sale_price"] = None

    old_regular, old_sale = current.regular_price, current.sale_price
    try:
        row = product_repo.update(db, company_id, product_id, commit=False, **changes)
        if row is not None and price_changed:
            product_repo.add_price_history(db, company_id, [{
                "product_id": product_id,
                "old_regular_price": old_regular,
                "new_regular_price": row.regular_price,
                "old_sale_price": old_sale,
                "new_sale_price": row.sale_price,
                "change_type": "manual",
                "changed_by": changed_by,
            }], commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("product.updated company=%s id=%s fields=%s pushed=%s",
                company_id, product_id, sorted(changes), bool(price_changed and catalog is not None))
    return product_repo.get(db, company_id, product_id)
