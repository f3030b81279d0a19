# company database repository

from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.model.company import Company
from app.utils.clock import now_utc


_SUBSCRIPTION_FIELDS = {
    "subscription_plan", "product_limit", "stripe_customer_id",
    "stripe_subscription_id", "subscription_status", "current_period_end",
}


def get(db: Session, company_id: str) -> Optional[Company]:
    stmt = select(Company).where(Company.id == company_id).execution_options(populate_existing=True)
    return db.scalars(stmt).first()


def get_by_stripe_customer(db: Session, customer_id: str) -> Optional[Company]:
    stmt = select(Company).where(Company.stripe_customer_id == customer_id)
    return db.scalars(stmt).first()


def create(db: Session, name: str, *, commit: bool = True) -> Company:
    name = (name or "").strip()
    if not name:
        raise ValueError("company name is required")
    company = Company(name=name)
    db.add(company)
    db.flush()
    if commit:
        db.commit()
    return company


def update_subscription(db: Session, company_id: str, **fields) -> Optional[Company]:
    """Partial update of the billing columns; unknown keys are ignored. None when the company is missing."""
    clean = {k: v for k, v in fields.items() if k in _SUBSCRIPTION_FIELDS}
    if not clean:
        return get(db, company_id)
    clean["updated_at"] = now_utc()

    res = db.execute(update(Company).where(Company.id == company_id).values(**clean))
    if not res.rowcount:
        db.rollback()
        return None
    db.commit()
    return get(db, company_id)
