from decimal import Decimal

import pytest

from app.db.model.work_order import WorkOrderStatus
from app.repository import work_order_repo
from app.services.errors import ConflictError, NotFoundError
from app.services.work_orders import lifecycle
from app.services.work_orders.lifecycle import InvalidTransitionError, can_transition


UPDATES = [{"productId": 111, "productName": "Bucket", "newRegularPrice": "199.00"}]


@pytest.fixture()
def order(db, company, owner):
    return lifecycle.create_work_order(db, company.id, owner.id, title="Spring prices", product_updates=UPDATES)


def test_create_starts_pending_and_visible(order):
    assert order.status == WorkOrderStatus.PENDING.value
    assert order.archived is False
    assert order.product_updates == [{"productId": 111, "productName": "Bucket", "newRegularPrice": "199.00", "variantUpdates": []}]


def test_create_rejects_empty_updates_and_blank_title(db, company, owner):
    with pytest.raises(ValueError):
        lifecycle.create_work_order(db, company.id, owner.id, title="x", product_updates=[])
    with pytest.raises(ValueError):
        lifecycle.create_work_order(db, company.id, owner.id, title="   ", product_updates=UPDATES)


def test_product_update_needs_a_price(db, company, owner):
    with pytest.raises(ValueError):
        lifecycle.create_work_order(db, company.id, owner.id, title="x", product_updates=[{"productId": 1}])


@pytest.mark.parametrize("current,target,allowed", [
    ("pending", "executing", True),
    ("executing", "completed", True),
    ("executing", "failed", True),
    ("completed", "undone", True),
    ("completed", "pending", False),
    ("pending", "completed", False),
    ("failed", "executing", False),
    ("undone", "completed", False),
])
def test_transition_table(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_status_update_follows_table_and_stamps_times(db, company, order):
    row = lifecycle.update_work_order(db, company.id, order.id, {"status": WorkOrderStatus.EXECUTING})
    assert row.status == "executing"
    row = lifecycle.update_work_order(db, company.id, order.id, {"status": WorkOrderStatus.COMPLETED})
    assert row.status == "completed" and row.executed_at is not None
    row = lifecycle.update_work_order(db, company.id, order.id, {"status": "undone"})
    assert row.status == "undone" and row.undone_at is not None


def test_illegal_transition_is_rejected(db, company, order):
    lifecycle.update_work_order(db, company.id, order.id, {"status": "executing"})
    lifecycle.update_work_order(db, company.id, order.id, {"status": "completed"})
    with pytest.raises(InvalidTransitionError) as exc:
        lifecycle.update_work_order(db, company.id, order.id, {"status": "pending"})
    assert exc.value.current == WorkOrderStatus.COMPLETED
    assert lifecycle.get_work_order(db, company.id, order.id).status == "completed"


def test_partial_update_keeps_other_fields(db, company, order):
    row = lifecycle.update_work_order(db, company.id, order.id, {"title": "Winter prices"})
    assert row.title == "Winter prices"
    assert row.product_updates == order.product_updates
    assert row.status == "pending"


def test_product_updates_frozen_after_pending(db, company, order):
    lifecycle.update_work_order(db, company.id, order.id, {"status": "executing"})
    with pytest.raises(ConflictError):
        lifecycle.update_work_order(
            db, company.id, order.id,
            {"product_updates": [{"productId": 5, "newSalePrice": Decimal("1.00")}]},
        )


def test_update_of_other_tenant_is_a_miss(db, make_company, order):
    other = make_company("Other Co")
    assert lifecycle.update_work_order(db, other.id, order.id, {"title": "hijack"}) is None
    assert lifecycle.get_work_order(db, other.id, order.id) is None


def test_delete_only_while_pending(db, company, owner, order):
    lifecycle.delete_work_order(db, company.id, order.id)
    assert lifecycle.get_work_order(db, company.id, order.id) is None

    started = lifecycle.create_work_order(db, company.id, owner.id, title="t", product_updates=UPDATES)
    lifecycle.transition_status(db, company.id, started.id, WorkOrderStatus.EXECUTING)
    with pytest.raises(ConflictError):
        lifecycle.delete_work_order(db, company.id, started.id)
    assert lifecycle.get_work_order(db, company.id, started.id) is not None


def test_delete_missing_is_not_found(db, company):
    with pytest.raises(NotFoundError):
        lifecycle.delete_work_order(db, company.id, "nope")


def test_archive_is_visibility_only(db, company, order):
    lifecycle.update_work_order(db, company.id, order.id, {"status": "executing"})
    lifecycle.update_work_order(db, company.id, order.id, {"status": "completed"})
    before = lifecycle.update_work_order(db, company.id, order.id, {"status": "undone"})
    stamps = (before.created_at, before.executed_at, before.undone_at)
    assert None not in stamps

    row = lifecycle.archive_work_order(db, company.id, order.id)
    assert row.archived is True and row.status == "undone"
    assert (row.created_at, row.executed_at, row.undone_at) == stamps
    assert [o.id for o in lifecycle.list_work_orders(db, company.id, archived=True)] == [order.id]
    assert lifecycle.list_work_orders(db, company.id, archived=False) == []

    row = lifecycle.unarchive_work_order(db, company.id, order.id)
    assert row.archived is False and row.status == "undone"
    assert (row.created_at, row.executed_at, row.undone_at) == stamps


def test_pending_listing_spans_tenants(db, make_company, make_user, company, owner, order):
    other = make_company("Other Co")
    other_user = make_user("other-1", company=other, role="owner")
    theirs = lifecycle.create_work_order(db, other.id, other_user.id, title="theirs", product_updates=UPDATES)
    lifecycle.transition_status(db, company.id, order.id, WorkOrderStatus.EXECUTING)

    pending = lifecycle.get_pending(db)
    assert [o.id for o in pending] == [theirs.id]


def test_conditional_transition_loses_race(db, company, order):
    assert work_order_repo.transition(
        db, company.id, order.id, expected=WorkOrderStatus.PENDING, target=WorkOrderStatus.EXECUTING,
    )
    # a second executor read "pending" earlier and now tries the same move
    assert not work_order_repo.transition(
        db, company.id, order.id, expected=WorkOrderStatus.PENDING, target=WorkOrderStatus.EXECUTING,
    )


def test_product_updates_edit_loses_to_executor_claim(db, company, order, monkeypatch):
    real_get = work_order_repo.get
    calls = []

    def get_then_claim(db_, company_id, work_order_id):
        row = real_get(db_, company_id, work_order_id)
        if not calls:
            # the executor claims the row right after the edit read it as pending
            work_order_repo.transition(
                db_, company_id, work_order_id,
                expected=WorkOrderStatus.PENDING, target=WorkOrderStatus.EXECUTING,
            )
        calls.append(work_order_id)
        return row

    monkeypatch.setattr(work_order_repo, "get", get_then_claim)
    with pytest.raises(ConflictError):
        lifecycle.update_work_order(
            db, company.id, order.id,
            {"product_updates": [{"productId": 2, "newRegularPrice": Decimal("5.00")}]},
        )
    monkeypatch.undo()

    row = lifecycle.get_work_order(db, company.id, order.id)
    assert row.status == "executing"
    assert [u["productId"] for u in row.product_updates] == [111]
