from decimal import Decimal

from app.orchestration.catalog_sync import sync_catalog
from app.repository import api_settings_repo, product_repo


CATEGORIES = [
    {"id": 24, "name": "Attachments", "parent_id": 0},
    {"id": 25, "name": "Buckets", "parent_id": 24},
    {"id": 30, "name": "Shop All", "parent_id": 0},
]


def _raw(pid: int, price: float = 100.0, sale: float = 0, **extra) -> dict:
    raw = {
        "id": pid, "name": f"Product {pid}", "sku": f"SKU-{pid}", "price": price, "sale_price": sale,
        "inventory_level": 4, "weight": 12.5, "is_visible": True, "categories": [30, 25],
        "variants": [{"id": pid * 10, "sku": f"SKU-{pid}-A", "price": price, "sale_price": 0,
                      "option_values": [{"option_display_name": "Size", "label": "Large"}]}],
    }
    raw.update(extra)
    return raw


def test_sync_stores_products_with_best_category(db, make_company, fake_catalog):
    company = make_company(product_limit=10)
    api_settings_repo.upsert(db, company.id, store_hash="abc", access_token="t", client_id="c")
    fake_catalog.categories = CATEGORIES
    fake_catalog.products = {1: _raw(1, sale=80), 2: _raw(2, is_visible=False)}

    result = sync_catalog(db, company.id, fake_catalog)

    assert result["stored_count"] == 2 and result["variant_count"] == 2
    assert result["is_limited"] is False
    p1 = product_repo.get(db, company.id, 1)
    assert p1.category == "Attachments > Buckets"
    assert (p1.regular_price, p1.sale_price, p1.status) == (Decimal("100.00"), Decimal("80.00"), "published")
    assert product_repo.get(db, company.id, 2).status == "draft"
    assert product_repo.list_variants(db, company.id, 1)[0].option_values == {"Size": "Large"}
    assert api_settings_repo.get(db, company.id).last_sync_at is not None


def test_sync_truncates_to_plan_limit(db, make_company, fake_catalog):
    company = make_company(product_limit=2, plan="trial")
    fake_catalog.categories = CATEGORIES
    fake_catalog.products = {i: _raw(i) for i in range(1, 6)}

    result = sync_catalog(db, company.id, fake_catalog)

    assert result == {
        "stored_count": 2,
        "variant_count": 2,
        "total_available": 5,
        "product_limit": 2,
        "subscription_plan": "trial",
        "is_limited": True,
    }
    rows, total = product_repo.list_products(db, company.id)
    assert total == 2 and {r.id for r in rows} == {1, 2}


def test_resync_replaces_catalog_and_records_price_changes(db, make_company, fake_catalog):
    company = make_company(product_limit=10)
    fake_catalog.categories = CATEGORIES
    fake_catalog.products = {1: _raw(1), 2: _raw(2)}
    sync_catalog(db, company.id, fake_catalog)

    # product 2 removed upstream, product 1 repriced
    fake_catalog.products = {1: _raw(1, price=90.0)}
    sync_catalog(db, company.id, fake_catalog)

    assert product_repo.get(db, company.id, 2) is None
    assert product_repo.get(db, company.id, 1).regular_price == Decimal("90.00")
    history = product_repo.list_price_history(db, company.id, 1)
    assert [(h.change_type, h.old_regular_price, h.new_regular_price) for h in history] == [
        ("sync", Decimal("100.00"), Decimal("90.00")),
    ]
