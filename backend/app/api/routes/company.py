# Company (tenant) and team management

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.context import AppContext
from app.db.model.user import User
from app.db.session import get_db
from app.repository import company_repo, invitation_repo, user_repo
from app.schemas.company import CompanyCreate, CompanyOut, InvitationCreate, InvitationOut, UserOut
from app.services import invitation_service
from app.services.auth_service import (
    get_context, get_current_user, require_company_admin, require_company_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/company", tags=["company"])


@router.post("/create", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
def create_company(body: CompanyCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if user.company_id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already belongs to a company")
    try:
        company = company_repo.create(db, body.name, commit=False)
        user_repo.assign_company(db, user.id, company.id, "owner", commit=False)
        db.commit()
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    logger.info("company.created id=%s owner=%s", company.id, user.id)
    return company


@router.get("/users", response_model=List[UserOut])
def list_users(user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    return user_repo.list_company_users(db, user.company_id)


@router.get("/invitations", response_model=List[InvitationOut])
def list_invitations(user: User = Depends(require_company_admin), db: Session = Depends(get_db)):
    rows = invitation_repo.list_for_company(db, user.company_id)
    out = []
    for inv in rows:
        item = InvitationOut.model_validate(inv)
        item.status = invitation_service.invitation_state(inv)
        out.append(item)
    return out


'''
Invite by e-mail
    - owners/admins only; role admin | member
    - the e-mail goes out in the background; a SendGrid failure is logged, the invitation stays valid
'''
@router.post("/invite", response_model=InvitationOut, status_code=status.HTTP_201_CREATED)
def invite(
    body: InvitationCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_company_admin),
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    try:
        inv = invitation_service.create_invitation(
            db, user, email=body.email, role=body.role, ttl_days=ctx.settings.INVITATION_TTL_DAYS,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    company = company_repo.get(db, user.company_id)
    inviter = " ".join(p for p in (user.first_name, user.last_name) if p) or user.email or "A teammate"
    background_tasks.add_task(
        ctx.email_service.send_invitation_email,
        inv.email,
        invitation_service.invitation_link(ctx.settings.FRONTEND_URL, inv.token),
        inv.role,
        company.name if company else "your team",
        inviter,
        ctx.settings.INVITATION_TTL_DAYS,
    )
    return inv
