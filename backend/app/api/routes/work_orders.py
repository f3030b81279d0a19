# Work orders: batched price changes that can be run now and rolled back

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.routes.deps import CatalogFactory, bad_gateway, get_catalog_factory
from app.core.context import AppContext
from app.db.model.user import User
from app.db.session import get_db
from app.integrations.bigcommerce import BigCommerceError
from app.orchestration.work_order_executor import execute_work_order, undo_work_order
from app.repository import api_settings_repo
from app.schemas.work_order import WorkOrderCreate, WorkOrderOut, WorkOrderUpdate
from app.services.auth_service import get_context, require_company_user
from app.services.errors import ConflictError, NotFoundError
from app.services.work_orders import lifecycle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/work-orders", tags=["work-orders"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Work order not found")


@router.get("", response_model=List[WorkOrderOut])
def list_work_orders(
    archived: Optional[bool] = Query(None),
    user: User = Depends(require_company_user),
    db: Session = Depends(get_db),
):
    return lifecycle.list_work_orders(db, user.company_id, archived=archived)


@router.post("", response_model=WorkOrderOut, status_code=status.HTTP_201_CREATED)
def create_work_order(body: WorkOrderCreate, user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    try:
        return lifecycle.create_work_order(
            db,
            user.company_id,
            user.id,
            title=body.title,
            product_updates=body.product_updates,
            scheduled_at=body.scheduled_at,
            execute_immediately=body.execute_immediately,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/{work_order_id}", response_model=WorkOrderOut)
def get_work_order(work_order_id: str, user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    row = lifecycle.get_work_order(db, user.company_id, work_order_id)
    if row is None:
        raise _not_found()
    return row


'''
Partial update (PUT and PATCH behave the same)
    - only the fields present in the body are merged
    - a status change must follow pending -> executing -> completed/failed, completed -> undone
'''
@router.put("/{work_order_id}", response_model=WorkOrderOut)
@router.patch("/{work_order_id}", response_model=WorkOrderOut)
def update_work_order(
    work_order_id: str,
    body: WorkOrderUpdate,
    user: User = Depends(require_company_user),
    db: Session = Depends(get_db),
):
    # explicit nulls only clear the nullable columns
    fields = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in ("error", "scheduled_at")
    }
    if "product_updates" in fields:
        fields["product_updates"] = body.product_updates
    try:
        row = lifecycle.update_work_order(db, user.company_id, work_order_id, fields)
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if row is None:
        raise _not_found()
    return row


@router.delete("/{work_order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_work_order(work_order_id: str, user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    try:
        lifecycle.delete_work_order(db, user.company_id, work_order_id)
    except NotFoundError as exc:
        raise _not_found() from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.post("/{work_order_id}/archive", response_model=WorkOrderOut)
def archive(work_order_id: str, user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    row = lifecycle.archive_work_order(db, user.company_id, work_order_id)
    if row is None:
        raise _not_found()
    return row


@router.post("/{work_order_id}/unarchive", response_model=WorkOrderOut)
def unarchive(work_order_id: str, user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    row = lifecycle.unarchive_work_order(db, user.company_id, work_order_id)
    if row is None:
        raise _not_found()
    return row


def _store_catalog(db: Session, company_id: str, catalog_factory: CatalogFactory):
    api = api_settings_repo.get(db, company_id)
    if api is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No API settings found. Please configure BigCommerce API first.",
        )
    return catalog_factory(api)


'''
Run a pending work order now
    - upstream failures are stored on the order (status=failed, error) and returned, not raised
'''
@router.post("/{work_order_id}/execute", response_model=WorkOrderOut)
def execute(
    work_order_id: str,
    user: User = Depends(require_company_user),
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_context),
    catalog_factory: CatalogFactory = Depends(get_catalog_factory),
):
    if lifecycle.get_work_order(db, user.company_id, work_order_id) is None:
        raise _not_found()
    catalog = _store_catalog(db, user.company_id, catalog_factory)
    try:
        return execute_work_order(
            db, user.company_id, work_order_id, catalog,
            batch_size=ctx.settings.WORK_ORDER_BATCH_SIZE,
            pause_sec=ctx.settings.BIGCOMMERCE_BATCH_PAUSE_SEC,
        )
    except NotFoundError as exc:
        raise _not_found() from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    finally:
        catalog.close()


@router.post("/{work_order_id}/undo", response_model=WorkOrderOut)
def undo(
    work_order_id: str,
    user: User = Depends(require_company_user),
    db: Session = Depends(get_db),
    catalog_factory: CatalogFactory = Depends(get_catalog_factory),
):
    if lifecycle.get_work_order(db, user.company_id, work_order_id) is None:
        raise _not_found()
    catalog = _store_catalog(db, user.company_id, catalog_factory)
    try:
        return undo_work_order(db, user.company_id, work_order_id, catalog)
    except NotFoundError as exc:
        raise _not_found() from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except BigCommerceError as exc:
        raise bad_gateway(exc) from exc
    finally:
        catalog.close()
