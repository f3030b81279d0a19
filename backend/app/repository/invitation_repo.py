# company invitation repository

from __future__ import annotations

import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.model.company import CompanyInvitation
from app.db.model.user import User
from app.repository._tenant import require_company, scoped_select
from app.utils.clock import now_utc


INVITE_ROLES = ("admin", "member")


def new_token() -> str:
    return secrets.token_urlsafe(32)


def create(
    db: Session,
    *,
    company_id: str,
    email: str,
    role: str,
    invited_by: str,
    expires_at: datetime,
    token: Optional[str] = None,
) -> CompanyInvitation:
    if role not in INVITE_ROLES:
        raise ValueError(f"role must be one of {list(INVITE_ROLES)}")
    email = (email or "").strip().lower()
    if not email:
        raise ValueError("email is required")
    inv = CompanyInvitation(
        company_id=require_company(company_id),
        email=email,
        role=role,
        invited_by=invited_by,
        token=token or new_token(),
        status="pending",
        expires_at=expires_at,
    )
    db.add(inv)
    db.commit()
    return inv


def get_by_token(db: Session, token: str) -> Optional[CompanyInvitation]:
    stmt = select(CompanyInvitation).where(CompanyInvitation.token == token).execution_options(populate_existing=True)
    return db.scalars(stmt).first()


def list_for_company(db: Session, company_id: str) -> list[CompanyInvitation]:
    stmt = scoped_select(CompanyInvitation, company_id).order_by(CompanyInvitation.created_at.desc())
    return list(db.scalars(stmt))


def redeem(db: Session, token: str, user_id: str) -> bool:
    """
    Accept an invitation in a single transaction.
    The conditional UPDATE only matches an unexpired, unaccepted token, so two
    concurrent redeems cannot both win. The user then joins the inviting company
    with the invited role. Anything that does not match rolls back and returns False.
    """
    now = now_utc()
    claim = (
        update(CompanyInvitation)
        .where(
            CompanyInvitation.token == token,
            CompanyInvitation.accepted_at.is_(None),
            CompanyInvitation.expires_at > now,
        )
        .values(accepted_at=now, status="accepted")
        .execution_options(synchronize_session=False)
    )
    try:
        res = db.execute(claim)
        if res.rowcount != 1:
            db.rollback()
            return False

        inv = db.execute(
            select(CompanyInvitation.company_id, CompanyInvitation.role).where(CompanyInvitation.token == token)
        ).one()
        moved = db.execute(
            update(User)
            .where(User.id == user_id)
            .values(company_id=inv.company_id, role=inv.role, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if moved.rowcount != 1:
            db.rollback()
            return False

        db.commit()
        return True
    except Exception:
        db.rollback()
        raise
