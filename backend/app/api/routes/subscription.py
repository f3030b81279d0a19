# Stripe subscriptions: plan list, subscribe, webhook

import logging
from typing import List, Optional

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.context import AppContext
from app.db.model.user import User
from app.db.session import get_db
from app.repository import company_repo
from app.schemas.subscription import PlanOut, SubscribeIn, SubscribeOut
from app.services.auth_service import get_context, require_company_admin
from app.services.billing_service import BillingNotConfiguredError

logger = logging.getLogger(__name__)

public_router = APIRouter(prefix="/subscription", tags=["subscription"])
router = APIRouter(prefix="/subscription", tags=["subscription"])


@public_router.get("/plans", response_model=List[PlanOut])
def list_plans(ctx: AppContext = Depends(get_context)):
    return [PlanOut.model_validate(p) for p in ctx.billing.plans.values()]


'''
Stripe webhook
    - called by Stripe, not the browser: no login, the signature is the authentication
    - subscription updated/deleted and invoice.payment_failed update the company's plan
'''
@public_router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    ctx: AppContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    payload = await request.body()
    try:
        event = ctx.billing.construct_event(payload, stripe_signature)
    except BillingNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except (ValueError, stripe.SignatureVerificationError) as exc:
        logger.warning("billing.webhook_rejected err=%s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook payload or signature") from exc

    company_id = ctx.billing.handle_event(db, event)
    return {"received": True, "type": event["type"], "companyId": company_id}


@router.post("/subscribe", response_model=SubscribeOut)
def subscribe(
    body: SubscribeIn,
    user: User = Depends(require_company_admin),
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    company = company_repo.get(db, user.company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    try:
        result = ctx.billing.subscribe(db, company, body.plan_id, email=user.email)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except BillingNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except stripe.StripeError as exc:
        logger.error("billing.subscribe_failed company=%s err=%s", company.id, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Payment provider error. Please try again.") from exc
    return SubscribeOut(**result)
