# Synced catalog: list / read / manual edit / delete, and the full sync

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.routes.deps import CatalogFactory, bad_gateway, get_catalog_factory
from app.db.model.user import User
from app.db.session import get_db
from app.integrations.bigcommerce import BigCommerceError
from app.orchestration.catalog_sync import sync_catalog
from app.repository import api_settings_repo, product_repo
from app.schemas.product import (
    PriceHistoryOut, ProductOut, ProductPage, ProductUpdateIn, SyncResultOut, VariantOut,
)
from app.services.auth_service import require_company_user
from app.services.catalog import product_service
from app.services.errors import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductPage)
def list_products(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=product_repo.MAX_PAGE_SIZE),
    user: User = Depends(require_company_user),
    db: Session = Depends(get_db),
):
    rows, total = product_repo.list_products(
        db, user.company_id, category=category, search=search, page=page, limit=limit,
    )
    return ProductPage(
        products=[ProductOut.model_validate(r) for r in rows], total=total, page=page, limit=limit,
    )


'''
Full sync from BigCommerce
    - replaces the company's products/variants, limited by the subscription plan
'''
@router.post("/sync", response_model=SyncResultOut)
def sync_products(
    user: User = Depends(require_company_user),
    db: Session = Depends(get_db),
    catalog_factory: CatalogFactory = Depends(get_catalog_factory),
):
    api = api_settings_repo.get(db, user.company_id)
    if api is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No API settings found. Please configure BigCommerce API first.",
        )
    catalog = catalog_factory(api)
    try:
        result = sync_catalog(db, user.company_id, catalog)
    except BigCommerceError as exc:
        raise bad_gateway(exc) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    finally:
        catalog.close()
    return SyncResultOut(**result)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    row = product_repo.get(db, user.company_id, product_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return row


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    body: ProductUpdateIn,
    user: User = Depends(require_company_user),
    db: Session = Depends(get_db),
    catalog_factory: CatalogFactory = Depends(get_catalog_factory),
):
    fields = body.model_dump(exclude_unset=True)
    catalog = None
    if "regular_price" in fields or "sale_price" in fields:
        api = api_settings_repo.get(db, user.company_id)
        if api is not None:
            catalog = catalog_factory(api)
    try:
        row = product_service.update_product(
            db, user.company_id, product_id, fields, changed_by=user.id, catalog=catalog,
        )
    except BigCommerceError as exc:
        raise bad_gateway(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    finally:
        if catalog is not None:
            catalog.close()
    if row is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return row


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    if not product_repo.delete(db, user.company_id, product_id):
        raise HTTPException(status_code=404, detail="Product not found")


@router.get("/{product_id}/variants", response_model=List[VariantOut])
def list_variants(product_id: int, user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    return product_repo.list_variants(db, user.company_id, product_id)


@router.get("/{product_id}/price-history", response_model=List[PriceHistoryOut])
def price_history(
    product_id: int,
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(require_company_user),
    db: Session = Depends(get_db),
):
    return product_repo.list_price_history(db, user.company_id, product_id, limit=limit)
