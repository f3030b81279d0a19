
from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.db.model.work_order import WorkOrder, WorkOrderStatus
from app.integrations.bigcommerce import BigCommerceCatalog, BigCommerceError, friendly_message
from app.repository import product_repo, work_order_repo
from app.schemas.work_order import ProductPriceUpdate, parse_product_updates
from app.services.errors import ConflictError
from app.services.work_orders.lifecycle import InvalidTransitionError, require_work_order
from app.utils.clock import now_utc
from app.utils.serialization import decimal_str, to_decimal


logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


class _PriceOp:
    __slots__ = ("product_id", "variant_id", "regular_price", "sale_price")

    def __init__(self, product_id: int, variant_id: Optional[int], regular_price: Optional[Decimal], sale_price: Optional[Decimal]):
        self.product_id = product_id
        self.variant_id = variant_id
        self.regular_price = regular_price
        self.sale_price = sale_price


def _flatten(updates: List[ProductPriceUpdate]) -> List[_PriceOp]:
    """One upstream call per product-level change and per variant change, in order."""
    ops: List[_PriceOp] = []
    for u in updates:
        if u.new_regular_price is not None or u.new_sale_price is not None:
            ops.append(_PriceOp(u.product_id, None, u.new_regular_price, u.new_sale_price))
        for v in u.variant_updates:
            if v.has_price():
                ops.append(_PriceOp(u.product_id, v.variant_id, v.new_regular_price, v.new_sale_price))
    return ops


def _push(catalog: BigCommerceCatalog, op: _PriceOp) -> None:
    if op.variant_id is None:
        catalog.update_product_prices(op.product_id, regular_price=op.regular_price, sale_price=op.sale_price)
    else:
        catalog.update_variant_prices(op.product_id, op.variant_id, regular_price=op.regular_price, sale_price=op.sale_price)


def _current_prices(db: Session, company_id: str, catalog: BigCommerceCatalog, op: _PriceOp) -> tuple[Optional[Decimal], Optional[Decimal]]:
    """Prices before the change: local cache first, the store when the cache has no row."""
    if op.variant_id is None:
        row = product_repo.get(db, company_id, op.product_id)
        if row is not None:
            return row.regular_price, row.sale_price
        raw = catalog.get_product(op.product_id) or {}
    else:
        row = product_repo.get_variant(db, company_id, op.variant_id)
        if row is not None:
            return row.regular_price, row.sale_price
        raw = next((v for v in catalog.get_variants(op.product_id) if v.get("id") == op.variant_id), {})
    sale = to_decimal(raw.get("sale_price"))
    return to_decimal(raw.get("price")), (None if sale == _ZERO else sale)


def _snapshot(db: Session, company_id: str, catalog: BigCommerceCatalog, ops: List[_PriceOp]) -> List[Dict[str, Any]]:
    out = []
    for op in ops:
        regular, sale = _current_prices(db, company_id, catalog, op)
        entry: Dict[str, Any] = {
            "productId": op.product_id,
            "originalRegularPrice": decimal_str(regular),
            "originalSalePrice": decimal_str(sale),
        }
        if op.variant_id is not None:
            entry["variantId"] = op.variant_id
        out.append(entry)
    return out


def _local_sale(value: Optional[Decimal]) -> Optional[Decimal]:
    # 0 clears the sale price
    return None if value is None or value == _ZERO else value


def _refresh_cache(
    db: Session,
    company_id: str,
    op: _PriceOp,
    *,
    work_order_id: str,
    changed_by: Optional[str],
    old: tuple[Optional[Decimal], Optional[Decimal]],
) -> None:
    fields: Dict[str, Any] = {}
    if op.regular_price is not None:
        fields["regular_price"] = op.regular_price
    if op.sale_price is not None:
        fields["sale_price"] = _local_sale(op.sale_price)

    if op.variant_id is None:
        product_repo.update(db, company_id, op.product_id, commit=False, **fields)
    else:
        product_repo.update_variant(db, company_id, op.variant_id, commit=False, **fields)

    product_repo.add_price_history(db, company_id, [{
        "product_id": op.product_id,
        "variant_id": op.variant_id,
        "old_regular_price": old[0],
        "new_regular_price": fields.get("regular_price", old[0]),
        "old_sale_price": old[1],
        "new_sale_price": fields.get("sale_price", old[1]),
        "change_type": "work_order",
        "work_order_id": work_order_id,
        "changed_by": changed_by,
    }], commit=False)


def _mark_failed(db: Session, company_id: str, work_order_id: str, message: str) -> None:
    moved = work_order_repo.transition(
        db, company_id, work_order_id,
        expected=WorkOrderStatus.EXECUTING, target=WorkOrderStatus.FAILED,
        extra={"error": message, "executed_at": now_utc()},
    )
    if not moved:
        logger.error("work_order.mark_failed lost row id=%s company=%s", work_order_id, company_id)


def _refresh_applied(
    db: Session,
    company_id: str,
    ops: List[_PriceOp],
    originals: Dict[tuple, tuple],
    *,
    work_order_id: str,
    changed_by: Optional[str],
) -> None:
    """Cache + price history for changes that reached BigCommerce. A failure here is logged only."""
    if not ops:
        return
    try:
        for op in ops:
            _refresh_cache(db, company_id, op, work_order_id=work_order_id, changed_by=changed_by,
                           old=originals[(op.product_id, op.variant_id)])
        db.commit()
    except Exception:
        # upstream already changed; a stale cache is fixed by the next sync
        db.rollback()
        logger.exception("work_order.cache_refresh_failed id=%s company=%s", work_order_id, company_id)


"""
Run a pending work order now
    1) claim it: pending -> executing (conditional, so two executors cannot both run it)
    2) snapshot the current prices into original_prices (used by undo)
    3) push price changes to BigCommerce in batches, pausing between batches
    4) success: refresh the local cache, write price history, executing -> completed
       BigCommerce failure: changes already pushed are cached, executing -> failed with a
       readable error naming how many were applied; nothing is retried
"""
def execute_work_order(
    db: Session,
    company_id: str,
    work_order_id: str,
    catalog: BigCommerceCatalog,
    *,
    batch_size: int = 10,
    pause_sec: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> WorkOrder:
    row = require_work_order(db, company_id, work_order_id)
    if row.status != WorkOrderStatus.PENDING.value:
        raise InvalidTransitionError(WorkOrderStatus(row.status), WorkOrderStatus.EXECUTING)
    if not work_order_repo.transition(
        db, company_id, work_order_id, expected=WorkOrderStatus.PENDING, target=WorkOrderStatus.EXECUTING,
    ):
        raise ConflictError("work order was claimed by another executor")
    logger.info("work_order.executing id=%s company=%s", work_order_id, company_id)

    ops = _flatten(parse_product_updates(row.product_updates))
    originals: Dict[tuple, tuple] = {}
    applied: List[_PriceOp] = []
    try:
        snapshot = _snapshot(db, company_id, catalog, ops)
        work_order_repo.update_fields(db, company_id, work_order_id, original_prices=snapshot)
        originals = {(op.product_id, op.variant_id): (to_decimal(s["originalRegularPrice"]), to_decimal(s["originalSalePrice"]))
                     for op, s in zip(ops, snapshot)}

        batch_size = max(1, batch_size)
        for start in range(0, len(ops), batch_size):
            if start and pause_sec > 0:
                sleep(pause_sec)
            for op in ops[start:start + batch_size]:
                _push(catalog, op)
                applied.append(op)
            logger.info("work_order.batch id=%s done=%d/%d", work_order_id, min(start + batch_size, len(ops)), len(ops))

    except BigCommerceError as e:
        message = friendly_message(e)
        logger.warning("work_order.failed id=%s company=%s err=%s", work_order_id, company_id, e)
        _refresh_applied(db, company_id, applied, originals, work_order_id=work_order_id, changed_by=row.created_by)
        _mark_failed(
            db, company_id, work_order_id,
            f"{message} ({e}); applied {len(applied)} of {len(ops)} price changes before the failure",
        )
        return require_work_order(db, company_id, work_order_id)
    except Exception as e:
        logger.exception("work_order.crashed id=%s company=%s", work_order_id, company_id)
        db.rollback()
        _mark_failed(db, company_id, work_order_id, str(e) or e.__class__.__name__)
        raise

    _refresh_applied(db, company_id, ops, originals, work_order_id=work_order_id, changed_by=row.created_by)

    work_order_repo.transition(
        db, company_id, work_order_id,
        expected=WorkOrderStatus.EXECUTING, target=WorkOrderStatus.COMPLETED,
        extra={"executed_at": now_utc(), "error": None},
    )
    logger.info("work_order.completed id=%s company=%s changes=%d", work_order_id, company_id, len(ops))
    return require_work_order(db, company_id, work_order_id)


"""
Undo a completed work order
    - restores every snapshot entry upstream; an entry that fails is logged and skipped
    - a missing original sale price is restored as "no sale price"
    - completed -> undone with undone_at
"""
def undo_work_order(db: Session, company_id: str, work_order_id: str, catalog: BigCommerceCatalog) -> WorkOrder:
    row = require_work_order(db, company_id, work_order_id)
    if row.status != WorkOrderStatus.COMPLETED.value:
        raise InvalidTransitionError(WorkOrderStatus(row.status), WorkOrderStatus.UNDONE)
    snapshot = row.original_prices or []
    if not snapshot:
        raise ConflictError("No original prices available to restore")

    restored = 0
    for entry in snapshot:
        regular = to_decimal(entry.get("originalRegularPrice"))
        sale = to_decimal(entry.get("originalSalePrice"))
        op = _PriceOp(int(entry["productId"]), entry.get("variantId"), regular, _ZERO if sale is None else sale)
        try:
            _push(catalog, op)
        except BigCommerceError as e:
            logger.warning("work_order.undo_skip id=%s product=%s variant=%s err=%s",
                           work_order_id, op.product_id, op.variant_id, e)
            continue
        try:
            old = _current_prices_local(db, company_id, op)
            _refresh_cache(db, company_id, op, work_order_id=work_order_id, changed_by=row.created_by, old=old)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("work_order.undo_cache_failed id=%s product=%s", work_order_id, op.product_id)
        restored += 1

    if not work_order_repo.transition(
        db, company_id, work_order_id,
        expected=WorkOrderStatus.COMPLETED, target=WorkOrderStatus.UNDONE,
        extra={"undone_at": now_utc()},
    ):
        raise ConflictError("work order status changed concurrently")
    logger.info("work_order.undone id=%s company=%s restored=%d/%d", work_order_id, company_id, restored, len(snapshot))
    return require_work_order(db, company_id, work_order_id)


def _current_prices_local(db: Session, company_id: str, op: _PriceOp) -> tuple[Optional[Decimal], Optional[Decimal]]:
    if op.variant_id is None:
        row = product_repo.get(db, company_id, op.product_id)
    else:
        row = product_repo.get_variant(db, company_id, op.variant_id)
    return (row.regular_price, row.sale_price) if row is not None else (None, None)
