
from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.model.user import User
from app.repository._tenant import dialect_insert, require_company
from app.utils.clock import now_utc


ROLES = ("owner", "admin", "member")

# profile columns the first-auth callback may overwrite; company/role stay untouched
_PROFILE_FIELDS = ("email", "first_name", "last_name", "profile_image_url")


def get(db: Session, user_id: str) -> Optional[User]:
    stmt = select(User).where(User.id == user_id).execution_options(populate_existing=True)
    return db.scalars(stmt).first()


def upsert(
    db: Session,
    *,
    user_id: str,
    email: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    profile_image_url: Optional[str] = None,
) -> User:
    """INSERT ... ON CONFLICT (id) DO UPDATE of the profile fields, in one statement."""
    if not user_id:
        raise ValueError("user id is required")
    now = now_utc()
    values = dict(
        id=user_id,
        email=email,
        first_name=first_name,
        last_name=last_name,
        profile_image_url=profile_image_url,
        role="member",
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    stmt = dialect_insert(db, User.__table__).values(**values)
    updates = {col: getattr(stmt.excluded, col) for col in _PROFILE_FIELDS}
    updates["updated_at"] = now
    db.execute(stmt.on_conflict_do_update(index_elements=["id"], set_=updates))
    db.commit()

    row = get(db, user_id)
    if row is None:
        raise RuntimeError(f"failed to upsert user {user_id}")
    return row


def assign_company(db: Session, user_id: str, company_id: str, role: str, *, commit: bool = True) -> bool:
    """Attach the user to a company with a role. False when the user does not exist."""
    if role not in ROLES:
        raise ValueError(f"role must be one of {list(ROLES)}")
    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(company_id=require_company(company_id), role=role, updated_at=now_utc())
    )
    res = db.execute(stmt)
    if commit:
        if res.rowcount:
            db.commit()
        else:
            db.rollback()
    return bool(res.rowcount)


def list_company_users(db: Session, company_id: str) -> list[User]:
    stmt = (
        select(User)
        .where(User.company_id == require_company(company_id), User.is_active.is_(True))
        .order_by(User.created_at.asc())
    )
    return list(db.scalars(stmt))
