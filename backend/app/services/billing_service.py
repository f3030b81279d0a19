"""
Stripe subscriptions: plan catalogue, subscribe, and webhook handling.
The webhook is the only writer of a company's plan once it has a Stripe customer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import stripe
from sqlalchemy.orm import Session

from app.db.model.company import Company
from app.repository import company_repo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionPlan:
    id: str
    name: str
    price_id: str
    product_limit: int
    price: int
    interval: str = "month"
    features: List[str] = field(default_factory=list)


def build_plans(starter_price_id: str, premium_price_id: str) -> Dict[str, SubscriptionPlan]:
    return {
        "trial": SubscriptionPlan(
            "trial", "Trial", "", 5, 0,
            features=["5 products", "Basic sync", "Work orders"],
        ),
        "starter": SubscriptionPlan(
            "starter", "Starter", starter_price_id, 10, 29,
            features=["10 products", "Advanced sync", "Work orders", "Team collaboration"],
        ),
        "premium": SubscriptionPlan(
            "premium", "Premium", premium_price_id, 1000, 99,
            features=["1000 products", "Full sync", "Advanced work orders", "Team collaboration", "Priority support"],
        ),
    }


def plan_for_product_limit(plans: Dict[str, SubscriptionPlan], product_limit: int) -> SubscriptionPlan:
    if product_limit <= plans["trial"].product_limit:
        return plans["trial"]
    if product_limit <= plans["starter"].product_limit:
        return plans["starter"]
    return plans["premium"]


class BillingNotConfiguredError(Exception):
    pass


class BillingService:

    def __init__(
        self,
        secret_key: Optional[str],
        webhook_secret: Optional[str],
        *,
        starter_price_id: str,
        premium_price_id: str,
    ) -> None:
        self._api_key = secret_key
        self._webhook_secret = webhook_secret
        self.plans = build_plans(starter_price_id, premium_price_id)
        self.enabled = bool(secret_key)
        if not self.enabled:
            logger.warning("billing.disabled STRIPE_SECRET_KEY not set")

    def get_plan(self, plan_id: str) -> SubscriptionPlan:
        plan = self.plans.get(plan_id)
        if plan is None:
            raise ValueError(f"unknown plan {plan_id!r}")
        return plan

    def _plan_for_price(self, price_id: Optional[str]) -> Optional[SubscriptionPlan]:
        for plan in self.plans.values():
            if plan.price_id and plan.price_id == price_id:
                return plan
        return None

    # ---------- subscribe ----------
    def subscribe(self, db: Session, company: Company, plan_id: str, *, email: Optional[str]) -> Dict[str, Any]:
        """
        Create (or reuse) the Stripe customer and start a subscription for plan_id.
        Plan and limit are written right away; later status changes arrive via the webhook.
        """
        plan = self.get_plan(plan_id)
        if not plan.price_id:
            raise ValueError("the trial plan has no paid subscription")
        if not self.enabled:
            raise BillingNotConfiguredError("Stripe is not configured")

        customer_id = company.stripe_customer_id
        if not customer_id:
            customer = stripe.Customer.create(email=email, name=company.name, api_key=self._api_key)
            customer_id = customer["id"]

        subscription = stripe.Subscription.create(
            customer=customer_id,
            items=[{"price": plan.price_id}],
            payment_behavior="default_incomplete",
            payment_settings={"save_default_payment_method": "on_subscription"},
            expand=["latest_invoice.payment_intent"],
            api_key=self._api_key,
        )

        company_repo.update_subscription(
            db, company.id,
            stripe_customer_id=customer_id,
            stripe_subscription_id=subscription["id"],
            subscription_plan=plan.id,
            product_limit=plan.product_limit,
            subscription_status=subscription.get("status") or "incomplete",
        )
        logger.info("billing.subscribed company=%s plan=%s subscription=%s", company.id, plan.id, subscription["id"])

        client_secret = None
        invoice = subscription.get("latest_invoice")
        if invoice is not None and hasattr(invoice, "get"):
            intent = invoice.get("payment_intent")
            if intent is not None and hasattr(intent, "get"):
                client_secret = intent.get("client_secret")

        return {
            "subscription_id": subscription["id"],
            "client_secret": client_secret,
            "status": subscription.get("status"),
            "plan": plan.id,
        }

    # ---------- webhook ----------
    def construct_event(self, payload: bytes, signature: Optional[str]):
        """Raises ValueError / stripe.SignatureVerificationError for a bad payload or signature."""
        if not self._webhook_secret:
            raise BillingNotConfiguredError("STRIPE_WEBHOOK_SECRET is not configured")
        return stripe.Webhook.construct_event(payload, signature or "", self._webhook_secret)

    def handle_event(self, db: Session, event) -> Optional[str]:
        """Apply a verified event. Returns the company id it touched, if any."""
        event_type = event["type"]
        obj = event["data"]["object"]

        if event_type in ("customer.subscription.updated", "customer.subscription.deleted"):
            return self._apply_subscription_change(db, obj, deleted=event_type.endswith("deleted"))
        if event_type == "invoice.payment_failed":
            company = company_repo.get_by_stripe_customer(db, obj.get("customer"))
            if company is not None:
                company_repo.update_subscription(db, company.id, subscription_status="past_due")
                logger.warning("billing.payment_failed company=%s invoice=%s", company.id, obj.get("id"))
                return company.id
            return None
        if event_type == "invoice.payment_succeeded":
            logger.info("billing.payment_succeeded invoice=%s", obj.get("id"))
            return None

        logger.debug("billing.event ignored type=%s", event_type)
        return None

    def _apply_subscription_change(self, db: Session, sub, *, deleted: bool) -> Optional[str]:
        company = company_repo.get_by_stripe_customer(db, sub.get("customer"))
        if company is None:
            logger.warning("billing.unknown_customer customer=%s subscription=%s", sub.get("customer"), sub.get("id"))
            return None

        fields: Dict[str, Any] = {"subscription_status": sub.get("status") or ("canceled" if deleted else "active")}
        period_end = _period_end(sub)
        if period_end is not None:
            fields["current_period_end"] = period_end

        if deleted:
            trial = self.plans["trial"]
            fields.update(subscription_plan=trial.id, product_limit=trial.product_limit, stripe_subscription_id=None)
        else:
            plan = self._plan_for_price(_first_price_id(sub))
            if plan is not None:
                fields.update(subscription_plan=plan.id, product_limit=plan.product_limit)
            fields["stripe_subscription_id"] = sub.get("id")

        company_repo.update_subscription(db, company.id, **fields)
        logger.info("billing.subscription_changed company=%s status=%s deleted=%s",
                    company.id, fields["subscription_status"], deleted)
        return company.id


def _first_item(sub) -> Optional[Any]:
    items = (sub.get("items") or {}).get("data") or []
    return items[0] if items else None


def _first_price_id(sub) -> Optional[str]:
    item = _first_item(sub)
    if item is None:
        return None
    price = item.get("price") or {}
    return price.get("id")


def _period_end(sub) -> Optional[datetime]:
    ts = sub.get("current_period_end")
    if ts is None:
        item = _first_item(sub)
        ts = item.get("current_period_end") if item is not None else None
    if ts is None:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).replace(tzinfo=None)
