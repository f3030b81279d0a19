from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.context import AppContext
from app.db.session import get_db
from app.db.model.user import User
from app.integrations.firebase import FirebaseAuthError, FirebaseIdentity
from app.repository import user_repo


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None


'''
Firebase identity of the caller
    - Authorization: Bearer <Firebase ID token>
    - verified against Google's certificates by the context's token verifier
    - any failure is a 401 with a friendly message
'''
def get_firebase_identity(
    authorization: Optional[str] = Header(default=None),
    ctx: AppContext = Depends(get_context),
) -> FirebaseIdentity:
    try:
        return ctx.token_verifier.verify(_bearer_token(authorization))
    except FirebaseAuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


'''
Current user row
    - the Firebase uid is the users.id primary key
    - the row is created by POST /auth/firebase-user on first sign-in
'''
def get_current_user(
    identity: FirebaseIdentity = Depends(get_firebase_identity),
    db: Session = Depends(get_db),
) -> User:
    user = user_repo.get(db, identity.uid)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not registered")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User disabled")
    return user


def require_company_user(user: User = Depends(get_current_user)) -> User:
    """Tenant-scoped endpoints need a user that already belongs to a company."""
    if not user.company_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not associated with a company")
    return user


def require_company_admin(user: User = Depends(require_company_user)) -> User:
    if user.role not in ("owner", "admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only owners and admins can do this")
    return user
