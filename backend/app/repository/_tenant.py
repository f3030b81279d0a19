# Shared helpers for tenant-scoped repositories

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def require_company(company_id: Any) -> str:
    """Every tenant-scoped statement needs a real company id; a bare entity id is never enough."""
    if company_id is None or not str(company_id).strip():
        raise ValueError("company_id is required for tenant-scoped access")
    return str(company_id)


def scoped_select(model, company_id: Any) -> Select:
    return select(model).where(model.company_id == require_company(company_id))


def scoped_update(model, company_id: Any):
    return update(model).where(model.company_id == require_company(company_id))


def scoped_delete(model, company_id: Any):
    return delete(model).where(model.company_id == require_company(company_id))


def dialect_insert(db: Session, table):
    """
    INSERT that supports on_conflict_do_update for the bound dialect.
    Postgres in production, sqlite in tests.
    """
    name = db.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise RuntimeError(f"upsert not supported for dialect {name!r}")
