"""
Work order lifecycle: create / read / partial update / delete / archive,
plus the status state machine.

    pending -> executing -> completed -> undone
                         -> failed

archived is a visibility flag only; it never changes status or timestamps.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.db.model.work_order import WorkOrder, WorkOrderStatus
from app.repository import work_order_repo
from app.schemas.work_order import parse_product_updates
from app.services.errors import ConflictError, NotFoundError
from app.utils.clock import now_utc


logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[WorkOrderStatus, frozenset] = {
    WorkOrderStatus.PENDING:   frozenset({WorkOrderStatus.EXECUTING}),
    WorkOrderStatus.EXECUTING: frozenset({WorkOrderStatus.COMPLETED, WorkOrderStatus.FAILED}),
    WorkOrderStatus.COMPLETED: frozenset({WorkOrderStatus.UNDONE}),
    WorkOrderStatus.FAILED:    frozenset(),
    WorkOrderStatus.UNDONE:    frozenset(),
}


class InvalidTransitionError(ConflictError):
    def __init__(self, current: WorkOrderStatus, target: WorkOrderStatus):
        super().__init__(f"cannot move work order from {current.value} to {target.value}")
        self.current = current
        self.target = target


def can_transition(current: WorkOrderStatus | str, target: WorkOrderStatus | str) -> bool:
    return WorkOrderStatus(target) in ALLOWED_TRANSITIONS[WorkOrderStatus(current)]


def _normalise_updates(product_updates: List[Any]) -> List[Dict[str, Any]]:
    if not product_updates:
        raise ValueError("productUpdates must contain at least one product")
    return [u.to_json() for u in parse_product_updates(product_updates)]


# ---------- Query ----------
def get_work_order(db: Session, company_id: str, work_order_id: str) -> Optional[WorkOrder]:
    return work_order_repo.get(db, company_id, work_order_id)


def require_work_order(db: Session, company_id: str, work_order_id: str) -> WorkOrder:
    row = work_order_repo.get(db, company_id, work_order_id)
    if row is None:
        raise NotFoundError(f"work order {work_order_id} not found")
    return row


def list_work_orders(db: Session, company_id: str, archived: Optional[bool] = None) -> List[WorkOrder]:
    return work_order_repo.list_for_company(db, company_id, archived=archived)


def get_pending(db: Session) -> List[WorkOrder]:
    return work_order_repo.list_pending(db)


# ---------- Mutations ----------
def create_work_order(
    db: Session,
    company_id: str,
    user_id: str,
    *,
    title: str,
    product_updates: List[Any],
    scheduled_at: Optional[datetime] = None,
    execute_immediately: bool = False,
) -> WorkOrder:
    title = (title or "").strip()
    if not title:
        raise ValueError("title is required")
    updates = _normalise_updates(product_updates)

    row = work_order_repo.create(
        db,
        company_id=company_id,
        created_by=user_id,
        title=title,
        product_updates=updates,
        scheduled_at=scheduled_at,
        execute_immediately=bool(execute_immediately),
        status=WorkOrderStatus.PENDING.value,
        archived=False,
        created_at=now_utc(),
    )
    logger.info("work_order.created id=%s company=%s products=%d", row.id, company_id, len(updates))
    return row


def update_work_order(db: Session, company_id: str, work_order_id: str, fields: Mapping[str, Any]) -> Optional[WorkOrder]:
    """
    Partial merge. A status change must follow the transition table and is
    applied conditionally on the status we read; product_updates may only
    change while the order is still pending. None for a tenant+id miss.
    """
    current = work_order_repo.get(db, company_id, work_order_id)
    if current is None:
        return None

    changes = dict(fields)
    target = changes.pop("status", None)

    if "product_updates" in changes:
        if current.status != WorkOrderStatus.PENDING.value:
            raise ConflictError("product updates can only change while the work order is pending")
        changes["product_updates"] = _normalise_updates(changes["product_updates"])
    if "title" in changes:
        title = (changes["title"] or "").strip()
        if not title:
            raise ValueError("title is required")
        changes["title"] = title

    if target is not None:
        target = WorkOrderStatus(target)
        now = WorkOrderStatus(current.status)
        if target != now:
            if not can_transition(now, target):
                raise InvalidTransitionError(now, target)
            stamp: Dict[str, Any] = dict(changes)
            if target in (WorkOrderStatus.COMPLETED, WorkOrderStatus.FAILED):
                stamp.setdefault("executed_at", now_utc())
            if target == WorkOrderStatus.UNDONE:
                stamp.setdefault("undone_at", now_utc())
            if not work_order_repo.transition(db, company_id, work_order_id, expected=now, target=target, extra=stamp):
                raise ConflictError("work order status changed concurrently")
            return work_order_repo.get(db, company_id, work_order_id)

    if "product_updates" not in changes:
        return work_order_repo.update_fields(db, company_id, work_order_id, **changes)

    row = work_order_repo.update_fields(
        db, company_id, work_order_id, expected_status=WorkOrderStatus.PENDING, **changes,
    )
    if row is None:
        if work_order_repo.get(db, company_id, work_order_id) is None:
            return None
        raise ConflictError("product updates can only change while the work order is pending")
    return row


def transition_status(
    db: Session,
    company_id: str,
    work_order_id: str,
    target: WorkOrderStatus,
    **extra,
) -> bool:
    """Validated, conditional status move from the row's current status. False if someone else moved it first."""
    current = require_work_order(db, company_id, work_order_id)
    now = WorkOrderStatus(current.status)
    if not can_transition(now, target):
        raise InvalidTransitionError(now, target)
    return work_order_repo.transition(db, company_id, work_order_id, expected=now, target=target, extra=extra)


def delete_work_order(db: Session, company_id: str, work_order_id: str) -> None:
    """Only pending orders can be deleted; raises NotFoundError / ConflictError otherwise."""
    if work_order_repo.delete_pending(db, company_id, work_order_id):
        logger.info("work_order.deleted id=%s company=%s", work_order_id, company_id)
        return
    row = work_order_repo.get(db, company_id, work_order_id)
    if row is None:
        raise NotFoundError(f"work order {work_order_id} not found")
    raise ConflictError(f"only pending work orders can be deleted (status is {row.status})")


def archive_work_order(db: Session, company_id: str, work_order_id: str) -> Optional[WorkOrder]:
    return work_order_repo.update_fields(db, company_id, work_order_id, archived=True)


def unarchive_work_order(db: Session, company_id: str, work_order_id: str) -> Optional[WorkOrder]:
    return work_order_repo.update_fields(db, company_id, work_order_id, archived=False)
