"""
Team invitations: owners/admins invite an e-mail address, the invitee signs in
with Firebase and redeems the token.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.db.model.company import CompanyInvitation
from app.db.model.user import User
from app.repository import company_repo, invitation_repo
from app.services.errors import ConflictError, NotFoundError
from app.utils.clock import days_from_now, now_utc

logger = logging.getLogger(__name__)


def invitation_link(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/invite/{quote(token)}"


def invitation_state(inv: CompanyInvitation) -> str:
    if inv.accepted_at is not None:
        return "accepted"
    if inv.expires_at <= now_utc():
        return "expired"
    return "pending"


def create_invitation(
    db: Session,
    inviter: User,
    *,
    email: str,
    role: str,
    ttl_days: int,
) -> CompanyInvitation:
    email = (email or "").strip().lower()
    if inviter.email and inviter.email.lower() == email:
        raise ValueError("you cannot invite yourself")

    inv = invitation_repo.create(
        db,
        company_id=inviter.company_id,
        email=email,
        role=role,
        invited_by=inviter.id,
        expires_at=days_from_now(ttl_days),
    )
    logger.info("invitation.created company=%s email=%s role=%s", inviter.company_id, email, role)
    return inv


def preview(db: Session, token: str) -> dict:
    inv = invitation_repo.get_by_token(db, token)
    if inv is None:
        raise NotFoundError("Invitation not found")
    company = company_repo.get(db, inv.company_id)
    return {
        "email": inv.email,
        "role": inv.role,
        "company_name": company.name if company else None,
        "expires_at": inv.expires_at,
        "status": invitation_state(inv),
    }


def accept(db: Session, token: str, user: User) -> Optional[str]:
    """Redeem the token for `user`; returns the joined company id. ConflictError when it cannot be redeemed."""
    if not invitation_repo.redeem(db, token, user.id):
        inv = invitation_repo.get_by_token(db, token)
        if inv is None:
            raise NotFoundError("Invitation not found")
        state = invitation_state(inv)
        if state == "accepted":
            raise ConflictError("This invitation has already been accepted")
        if state == "expired":
            raise ConflictError("This invitation has expired")
        raise ConflictError("Invitation could not be accepted")
    inv = invitation_repo.get_by_token(db, token)
    logger.info("invitation.accepted company=%s user=%s", inv.company_id if inv else None, user.id)
    return inv.company_id if inv else None
