from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field

from app.schemas._base import CamelModel


class CompanyCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)


class CompanyOut(CamelModel):
    id: str
    name: str
    subscription_plan: str
    product_limit: int
    subscription_status: str
    current_period_end: Optional[datetime] = None
    created_at: datetime


class UserOut(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    company_id: Optional[str] = None
    role: str
    is_active: bool
    created_at: datetime


class CurrentUserOut(UserOut):
    company: Optional[CompanyOut] = None


class FirebaseUserIn(CamelModel):
    """Optional profile overrides sent by the client on first sign-in; the token is authoritative for uid/email."""
    first_name: Optional[str] = Field(default=None, max_length=128)
    last_name: Optional[str] = Field(default=None, max_length=128)
    profile_image_url: Optional[str] = Field(default=None, max_length=1024)


class InvitationCreate(CamelModel):
    email: EmailStr
    role: Literal["admin", "member"] = "member"


class InvitationOut(CamelModel):
    id: str
    email: str
    role: str
    status: str
    token: str
    invited_by: str
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    created_at: datetime


class InvitationPreview(CamelModel):
    email: str
    role: str
    company_name: Optional[str] = None
    expires_at: datetime
    status: str


class InvitationAcceptOut(CamelModel):
    message: str = "Invitation accepted"
    company_id: Optional[str] = None
