# work order database repository

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.model.work_order import WorkOrder, WorkOrderStatus
from app.repository._tenant import require_company, scoped_delete, scoped_select, scoped_update


# columns a caller may write through update_fields; status goes through transition()
UPDATABLE_FIELDS = {
    "title", "product_updates", "scheduled_at", "execute_immediately",
    "archived", "error", "original_prices", "executed_at", "undone_at",
}


# ---------- Query ----------
def get(db: Session, company_id: str, work_order_id: str) -> Optional[WorkOrder]:
    stmt = (
        scoped_select(WorkOrder, company_id)
        .where(WorkOrder.id == work_order_id)
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def list_for_company(db: Session, company_id: str, *, archived: Optional[bool] = None) -> List[WorkOrder]:
    stmt = scoped_select(WorkOrder, company_id)
    if archived is not None:
        stmt = stmt.where(WorkOrder.archived.is_(archived))
    stmt = stmt.order_by(WorkOrder.created_at.desc(), WorkOrder.id.desc())
    return list(db.scalars(stmt))


def list_pending(db: Session) -> List[WorkOrder]:
    """The only cross-tenant query: every row whose status is exactly pending."""
    stmt = (
        select(WorkOrder)
        .where(WorkOrder.status == WorkOrderStatus.PENDING.value)
        .order_by(WorkOrder.created_at.asc())
    )
    return list(db.scalars(stmt))


# ---------- Mutations ----------
def create(db: Session, **values) -> WorkOrder:
    values["company_id"] = require_company(values.get("company_id"))
    row = WorkOrder(**values)
    db.add(row)
    db.commit()
    return row


def update_fields(
    db: Session,
    company_id: str,
    work_order_id: str,
    *,
    expected_status: Optional[WorkOrderStatus] = None,
    **fields,
) -> Optional[WorkOrder]:
    """
    Partial update; None on a tenant+id miss.
    With expected_status the UPDATE also matches on status, so None may
    mean the row moved on first.
    """
    clean = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    if not clean:
        return get(db, company_id, work_order_id)

    stmt = scoped_update(WorkOrder, company_id).where(WorkOrder.id == work_order_id)
    if expected_status is not None:
        stmt = stmt.where(WorkOrder.status == expected_status.value)
    res = db.execute(stmt.values(**clean).execution_options(synchronize_session=False))
    if not res.rowcount:
        db.rollback()
        return None
    db.commit()
    return get(db, company_id, work_order_id)


def transition(
    db: Session,
    company_id: str,
    work_order_id: str,
    *,
    expected: WorkOrderStatus,
    target: WorkOrderStatus,
    extra: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    UPDATE ... SET status=:target WHERE status=:expected.
    False when the row is missing or another caller moved it first.
    """
    values: Dict[str, Any] = {k: v for k, v in (extra or {}).items() if k in UPDATABLE_FIELDS}
    values["status"] = target.value
    res = db.execute(
        scoped_update(WorkOrder, company_id)
        .where(WorkOrder.id == work_order_id, WorkOrder.status == expected.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        return False
    db.commit()
    return True


def delete_pending(db: Session, company_id: str, work_order_id: str) -> bool:
    """Single DELETE ... WHERE status='pending'; False when nothing matched."""
    res = db.execute(
        scoped_delete(WorkOrder, company_id)
        .where(WorkOrder.id == work_order_id, WorkOrder.status == WorkOrderStatus.PENDING.value)
        .execution_options(synchronize_session=False)
    )
    if not res.rowcount:
        db.rollback()
        return False
    db.commit()
    return True
