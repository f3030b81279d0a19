# Invitation preview (public) and redemption

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.model.user import User
from app.db.session import get_db
from app.schemas.company import InvitationAcceptOut, InvitationPreview
from app.services import invitation_service
from app.services.auth_service import get_current_user
from app.services.errors import ConflictError, NotFoundError

public_router = APIRouter(prefix="/invitations", tags=["invitations"])
router = APIRouter(prefix="/invitations", tags=["invitations"])


@public_router.get("/{token}", response_model=InvitationPreview)
def preview_invitation(token: str, db: Session = Depends(get_db)):
    try:
        return invitation_service.preview(db, token)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/{token}/accept", response_model=InvitationAcceptOut)
def accept_invitation(token: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        company_id = invitation_service.accept(db, token, user)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return InvitationAcceptOut(company_id=company_id)
