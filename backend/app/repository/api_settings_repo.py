# BigCommerce credential repository (one row per company)

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.db.model.api_settings import ApiSettings
from app.repository._tenant import dialect_insert, require_company, scoped_select, scoped_update
from app.utils.clock import now_utc


_UPSERT_COLUMNS = ("store_hash", "access_token", "client_id", "show_stock", "show_stock_status")


def get(db: Session, company_id: str) -> Optional[ApiSettings]:
    stmt = scoped_select(ApiSettings, company_id).execution_options(populate_existing=True)
    return db.scalars(stmt).first()


def upsert(
    db: Session,
    company_id: str,
    *,
    store_hash: str,
    access_token: str,
    client_id: str,
    show_stock: bool = True,
    show_stock_status: bool = True,
) -> ApiSettings:
    """
    INSERT ... ON CONFLICT (company_id) DO UPDATE.
    Two concurrent saves for the same company still leave exactly one row.
    """
    company_id = require_company(company_id)
    for name, value in (("store_hash", store_hash), ("access_token", access_token), ("client_id", client_id)):
        if not value or not str(value).strip():
            raise ValueError(f"{name} is required")

    stmt = dialect_insert(db, ApiSettings.__table__).values(
        company_id=company_id,
        store_hash=store_hash.strip(),
        access_token=access_token.strip(),
        client_id=client_id.strip(),
        show_stock=show_stock,
        show_stock_status=show_stock_status,
        created_at=now_utc(),
    )
    updates = {col: getattr(stmt.excluded, col) for col in _UPSERT_COLUMNS}
    db.execute(stmt.on_conflict_do_update(index_elements=["company_id"], set_=updates))
    db.commit()

    row = get(db, company_id)
    if row is None:
        raise RuntimeError(f"failed to upsert api settings for company {company_id}")
    return row


def touch_last_sync(db: Session, company_id: str, *, commit: bool = True) -> bool:
    res = db.execute(
        scoped_update(ApiSettings, company_id)
        .values(last_sync_at=now_utc())
        .execution_options(synchronize_session=False)
    )
    if commit:
        db.commit()
    return bool(res.rowcount)
