# BigCommerce credentials for the caller's company

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.routes.deps import CatalogFactory, get_catalog_factory
from app.db.model.user import User
from app.db.session import get_db
from app.repository import api_settings_repo
from app.schemas.settings import ApiSettingsIn, ApiSettingsOut, ConnectionTestOut
from app.services.auth_service import require_company_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=Optional[ApiSettingsOut])
def read_settings(user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    return api_settings_repo.get(db, user.company_id)


@router.post("", response_model=ApiSettingsOut)
def save_settings(body: ApiSettingsIn, user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    try:
        row = api_settings_repo.upsert(
            db,
            user.company_id,
            store_hash=body.store_hash,
            access_token=body.access_token,
            client_id=body.client_id,
            show_stock=body.show_stock,
            show_stock_status=body.show_stock_status,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    logger.info("settings.saved company=%s store=%s", user.company_id, row.store_hash)
    return row


@router.post("/test", response_model=ConnectionTestOut)
def test_connection(
    user: User = Depends(require_company_user),
    db: Session = Depends(get_db),
    catalog_factory: CatalogFactory = Depends(get_catalog_factory),
):
    row = api_settings_repo.get(db, user.company_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No API settings found")
    catalog = catalog_factory(row)
    try:
        ok = catalog.test_connection()
    finally:
        catalog.close()
    return ConnectionTestOut(
        success=ok,
        message="Connection successful" if ok else "Connection failed. Check your store hash and credentials.",
    )
