from decimal import Decimal

import pytest

from app.orchestration.work_order_executor import execute_work_order, undo_work_order
from app.repository import product_repo
from app.services.errors import ConflictError
from app.services.work_orders import lifecycle
from app.services.work_orders.lifecycle import InvalidTransitionError


@pytest.fixture()
def stocked(db, company):
    product_repo.upsert_products(db, company.id, [
        {"id": 111, "name": "Smooth Bucket", "regular_price": Decimal("200.00"), "sale_price": None},
        {"id": 112, "name": "Tooth Bucket", "regular_price": Decimal("150.00"), "sale_price": Decimal("140.00")},
    ])
    product_repo.upsert_variants(db, company.id, [
        {"id": 1121, "product_id": 112, "regular_price": Decimal("155.00"), "sale_price": None},
    ])
    return company


def _order(db, company, owner, updates):
    return lifecycle.create_work_order(db, company.id, owner.id, title="batch", product_updates=updates)


UPDATES = [
    {"productId": 111, "productName": "Smooth Bucket", "newRegularPrice": "180.00", "newSalePrice": "170.00"},
    {"productId": 112, "productName": "Tooth Bucket", "newSalePrice": "0",
     "variantUpdates": [{"variantId": 1121, "newRegularPrice": "160.00"}]},
]


def test_execute_pushes_changes_and_completes(db, stocked, owner, fake_catalog):
    order = _order(db, stocked, owner, UPDATES)
    pauses = []

    done = execute_work_order(db, stocked.id, order.id, fake_catalog, batch_size=2, pause_sec=0.5, sleep=pauses.append)

    assert done.status == "completed"
    assert done.executed_at is not None and done.error is None
    assert [(c[0], c[1], c[2]) for c in fake_catalog.calls] == [
        ("product", 111, None), ("product", 112, None), ("variant", 112, 1121),
    ]
    # three pushes in batches of two: one pause between batches
    assert pauses == [0.5]

    assert done.original_prices == [
        {"productId": 111, "originalRegularPrice": "200.00", "originalSalePrice": None},
        {"productId": 112, "originalRegularPrice": "150.00", "originalSalePrice": "140.00"},
        {"productId": 112, "variantId": 1121, "originalRegularPrice": "155.00", "originalSalePrice": None},
    ]

    p111 = product_repo.get(db, stocked.id, 111)
    assert (p111.regular_price, p111.sale_price) == (Decimal("180.00"), Decimal("170.00"))
    # sale price 0 clears the sale locally
    assert product_repo.get(db, stocked.id, 112).sale_price is None
    assert product_repo.get_variant(db, stocked.id, 1121).regular_price == Decimal("160.00")

    history = product_repo.list_price_history(db, stocked.id, 111)
    assert [h.change_type for h in history] == ["work_order"]
    assert history[0].work_order_id == order.id


def test_upstream_failure_marks_order_failed(db, stocked, owner, fake_catalog):
    fake_catalog.fail_products.add(112)
    order = _order(db, stocked, owner, UPDATES)

    failed = execute_work_order(db, stocked.id, order.id, fake_catalog, pause_sec=0)

    assert failed.status == "failed"
    assert "Invalid price" in failed.error
    assert failed.executed_at is not None
    assert "applied 1 of 3 price changes" in failed.error

    # 111 reached the store before 112 failed: its cache and history follow
    p111 = product_repo.get(db, stocked.id, 111)
    assert (p111.regular_price, p111.sale_price) == (Decimal("180.00"), Decimal("170.00"))
    assert [h.change_type for h in product_repo.list_price_history(db, stocked.id, 111)] == ["work_order"]
    # nothing was pushed for 112
    assert product_repo.get(db, stocked.id, 112).sale_price == Decimal("140.00")
    assert product_repo.list_price_history(db, stocked.id, 112) == []


def test_only_pending_orders_execute(db, stocked, owner, fake_catalog):
    order = _order(db, stocked, owner, UPDATES)
    execute_work_order(db, stocked.id, order.id, fake_catalog, pause_sec=0)
    with pytest.raises(InvalidTransitionError):
        execute_work_order(db, stocked.id, order.id, fake_catalog, pause_sec=0)


def test_snapshot_falls_back_to_store_for_uncached_products(db, company, owner, fake_catalog):
    fake_catalog.products[900] = {"id": 900, "price": 45.5, "sale_price": 0}
    order = _order(db, company, owner, [{"productId": 900, "newRegularPrice": "40.00"}])

    done = execute_work_order(db, company.id, order.id, fake_catalog, pause_sec=0)

    assert done.status == "completed"
    assert done.original_prices == [{"productId": 900, "originalRegularPrice": "45.50", "originalSalePrice": None}]


def test_undo_restores_snapshot(db, stocked, owner, fake_catalog):
    order = _order(db, stocked, owner, UPDATES)
    execute_work_order(db, stocked.id, order.id, fake_catalog, pause_sec=0)
    fake_catalog.calls.clear()

    undone = undo_work_order(db, stocked.id, order.id, fake_catalog)

    assert undone.status == "undone" and undone.undone_at is not None
    assert fake_catalog.calls == [
        ("product", 111, None, Decimal("200.00"), Decimal("0.00")),
        ("product", 112, None, Decimal("150.00"), Decimal("140.00")),
        ("variant", 112, 1121, Decimal("155.00"), Decimal("0.00")),
    ]
    p111 = product_repo.get(db, stocked.id, 111)
    assert (p111.regular_price, p111.sale_price) == (Decimal("200.00"), None)
    assert product_repo.get(db, stocked.id, 112).sale_price == Decimal("140.00")


def test_undo_skips_entries_that_fail(db, stocked, owner, fake_catalog):
    order = _order(db, stocked, owner, UPDATES)
    execute_work_order(db, stocked.id, order.id, fake_catalog, pause_sec=0)
    fake_catalog.fail_products.add(111)

    undone = undo_work_order(db, stocked.id, order.id, fake_catalog)

    assert undone.status == "undone"
    assert product_repo.get(db, stocked.id, 111).regular_price == Decimal("180.00")
    assert product_repo.get(db, stocked.id, 112).sale_price == Decimal("140.00")


def test_undo_requires_completed_order_with_snapshot(db, stocked, owner, fake_catalog):
    order = _order(db, stocked, owner, UPDATES)
    with pytest.raises(InvalidTransitionError):
        undo_work_order(db, stocked.id, order.id, fake_catalog)

    lifecycle.update_work_order(db, stocked.id, order.id, {"status": "executing"})
    lifecycle.update_work_order(db, stocked.id, order.id, {"status": "completed"})
    with pytest.raises(ConflictError, match="No original prices"):
        undo_work_order(db, stocked.id, order.id, fake_catalog)
