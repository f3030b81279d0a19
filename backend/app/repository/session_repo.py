# server-side session store

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.db.model.session import UserSession
from app.repository._tenant import dialect_insert
from app.utils.clock import now_utc


def get(db: Session, sid: str) -> Optional[Dict[str, Any]]:
    """Session payload, or None when missing or expired."""
    stmt = select(UserSession).where(UserSession.sid == sid, UserSession.expire > now_utc())
    row = db.scalars(stmt).first()
    return None if row is None else row.sess


def save(db: Session, sid: str, sess: Dict[str, Any], expire: datetime) -> None:
    stmt = dialect_insert(db, UserSession.__table__).values(sid=sid, sess=sess, expire=expire)
    db.execute(stmt.on_conflict_do_update(
        index_elements=["sid"],
        set_={"sess": stmt.excluded.sess, "expire": stmt.excluded.expire},
    ))
    db.commit()


def destroy(db: Session, sid: str) -> bool:
    res = db.execute(delete(UserSession).where(UserSession.sid == sid))
    db.commit()
    return bool(res.rowcount)


def purge_expired(db: Session, *, now: Optional[datetime] = None) -> int:
    res = db.execute(delete(UserSession).where(UserSession.expire <= (now or now_utc())))
    db.commit()
    return int(res.rowcount or 0)
