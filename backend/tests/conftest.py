"""
Shared fixtures: an in-memory SQLite schema per test, tenant/user factories,
a scripted BigCommerce catalog double and a TestClient wired to all of it.
"""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.api.routes.deps import get_catalog_factory
from app.core.config import Settings
from app.core.context import AppContext
from app.db import create_all
from app.db.session import make_session_factory
from app.integrations.bigcommerce import BigCommerceClientError
from app.integrations.firebase import FirebaseTokenVerifier
from app.main import create_app
from app.repository import company_repo, user_repo
from app.services.billing_service import BillingService
from app.services.email_service import EmailService


# ---------- database ----------
@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,   # one shared connection so every session sees the same in-memory db
    )
    create_all(eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ---------- tenants / users ----------
@pytest.fixture()
def make_company(db):
    def _make(name: str = "Acme Attachments", *, product_limit: Optional[int] = None, plan: Optional[str] = None):
        company = company_repo.create(db, name)
        fields: Dict[str, Any] = {}
        if product_limit is not None:
            fields["product_limit"] = product_limit
        if plan is not None:
            fields["subscription_plan"] = plan
        if fields:
            company = company_repo.update_subscription(db, company.id, **fields)
        return company
    return _make


@pytest.fixture()
def make_user(db):
    def _make(uid: str, *, email: Optional[str] = None, company=None, role: str = "member"):
        user = user_repo.upsert(db, user_id=uid, email=email or f"{uid}@example.com", first_name="Test", last_name=uid)
        if company is not None:
            user_repo.assign_company(db, uid, company.id, role)
            user = user_repo.get(db, uid)
        return user
    return _make


@pytest.fixture()
def company(make_company):
    return make_company()


@pytest.fixture()
def owner(make_user, company):
    return make_user("owner-1", company=company, role="owner")


# ---------- BigCommerce double ----------
class FakeCatalog:
    """In-memory store with the BigCommerceCatalog surface; records every price push."""

    page_size = 50

    def __init__(self, products: Optional[List[dict]] = None, categories: Optional[List[dict]] = None):
        self.products: Dict[int, dict] = {p["id"]: p for p in products or []}
        self.categories = list(categories or [])
        self.calls: List[tuple] = []
        self.fail_products: set = set()
        self.closed = False

    def test_connection(self) -> bool:
        return True

    def get_categories(self) -> List[dict]:
        return list(self.categories)

    def get_products_page(self, page: int = 1, limit: Optional[int] = None):
        limit = limit or self.page_size
        rows = [self.products[k] for k in sorted(self.products)]
        start = (page - 1) * limit
        return rows[start:start + limit], len(rows)

    def get_product_count(self) -> int:
        return len(self.products)

    def get_product(self, product_id: int) -> Optional[dict]:
        return self.products.get(product_id)

    def get_variants(self, product_id: int) -> List[dict]:
        return list((self.products.get(product_id) or {}).get("variants") or [])

    def _check(self, product_id: int) -> None:
        if product_id in self.fail_products:
            raise BigCommerceClientError("422 client error: Invalid price", status_code=422, title="Invalid price")

    def update_product_prices(self, product_id: int, *, regular_price: Optional[Decimal] = None,
                              sale_price: Optional[Decimal] = None) -> dict:
        self.calls.append(("product", product_id, None, regular_price, sale_price))
        self._check(product_id)
        raw = self.products.setdefault(product_id, {"id": product_id})
        if regular_price is not None:
            raw["price"] = float(regular_price)
        if sale_price is not None:
            raw["sale_price"] = float(sale_price)
        return raw

    def update_variant_prices(self, product_id: int, variant_id: int, *, regular_price: Optional[Decimal] = None,
                              sale_price: Optional[Decimal] = None) -> dict:
        self.calls.append(("variant", product_id, variant_id, regular_price, sale_price))
        self._check(product_id)
        return {"id": variant_id, "product_id": product_id}

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


# ---------- app ----------
@pytest.fixture()
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        FIREBASE_PROJECT_ID=None,
        FIREBASE_VERIFY_SIGNATURE=False,
        BIGCOMMERCE_BATCH_PAUSE_SEC=0,
        WORK_ORDER_BATCH_SIZE=2,
        BACKEND_CORS_ORIGINS="http://localhost:5173",
    )


@pytest.fixture()
def context(settings, engine, session_factory) -> AppContext:
    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        token_verifier=FirebaseTokenVerifier(None, verify_signature=False),
        email_service=EmailService(None, None),
        billing=BillingService(None, None, starter_price_id="price_starter", premium_price_id="price_premium"),
    )


@pytest.fixture()
def client(context, fake_catalog) -> TestClient:
    app = create_app(context=context)
    app.dependency_overrides[get_catalog_factory] = lambda: (lambda api_settings: fake_catalog)
    return TestClient(app)


def make_token(uid: str, email: Optional[str] = None, **claims) -> str:
    payload = {"sub": uid, "email": email or f"{uid}@example.com", "exp": int(time.time()) + 3600}
    payload.update(claims)
    # signature is not checked with FIREBASE_VERIFY_SIGNATURE=False
    return jwt.encode(payload, "test-secret", algorithm="HS256")


@pytest.fixture()
def auth_headers():
    def _headers(uid: str, email: Optional[str] = None, **claims) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(uid, email, **claims)}"}
    return _headers
