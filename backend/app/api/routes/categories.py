from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.model.user import User
from app.db.session import get_db
from app.repository import product_repo
from app.services.auth_service import require_company_user

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=List[str])
def list_categories(user: User = Depends(require_company_user), db: Session = Depends(get_db)):
    """Distinct category paths of the synced catalog, A-Z."""
    return product_repo.distinct_categories(db, user.company_id)
