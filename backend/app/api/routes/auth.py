# Sign-in callbacks: Firebase handles credentials, the backend keeps a users row per Firebase uid

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.model.user import User
from app.db.session import get_db
from app.integrations.firebase import FirebaseIdentity
from app.repository import company_repo, user_repo
from app.schemas.company import CompanyOut, CurrentUserOut, FirebaseUserIn
from app.services.auth_service import get_current_user, get_firebase_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _current_user_out(db: Session, user: User) -> CurrentUserOut:
    out = CurrentUserOut.model_validate(user)
    if user.company_id:
        company = company_repo.get(db, user.company_id)
        if company is not None:
            out.company = CompanyOut.model_validate(company)
    return out


'''
First-auth callback
    - called by the client right after Firebase sign-in / sign-up
    - inserts the user, or refreshes the profile fields of an existing one
'''
@router.post("/firebase-user", response_model=CurrentUserOut)
def upsert_firebase_user(
    body: Optional[FirebaseUserIn] = Body(default=None),
    identity: FirebaseIdentity = Depends(get_firebase_identity),
    db: Session = Depends(get_db),
):
    body = body or FirebaseUserIn()
    try:
        user = user_repo.upsert(
            db,
            user_id=identity.uid,
            email=identity.email,
            first_name=body.first_name or identity.first_name,
            last_name=body.last_name or identity.last_name,
            profile_image_url=body.profile_image_url or identity.picture,
        )
    except IntegrityError:
        db.rollback()
        logger.warning("auth.email_taken uid=%s email=%s", identity.uid, identity.email)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An account with this email already exists.")
    logger.info("auth.user_upserted uid=%s", user.id)
    return _current_user_out(db, user)


@router.get("/user", response_model=CurrentUserOut)
def read_current_user(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _current_user_out(db, user)
