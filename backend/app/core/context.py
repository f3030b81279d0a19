# Process-wide resources, built once in the FastAPI lifespan and stored on app.state.context

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings
from app.db.session import make_engine, make_session_factory
from app.integrations.firebase import FirebaseTokenVerifier
from app.services.billing_service import BillingService
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)


def _secret(value) -> Optional[str]:
    return value.get_secret_value() if value is not None else None


@dataclass
class AppContext:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker[Session]
    token_verifier: FirebaseTokenVerifier
    email_service: EmailService
    billing: BillingService

    def close(self) -> None:
        self.token_verifier.close()
        self.engine.dispose()
        logger.info("context.closed")


def build_context(settings: Settings) -> AppContext:
    engine = make_engine(
        settings.DATABASE_URL,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )
    ctx = AppContext(
        settings=settings,
        engine=engine,
        session_factory=make_session_factory(engine),
        token_verifier=FirebaseTokenVerifier(
            settings.FIREBASE_PROJECT_ID,
            verify_signature=settings.FIREBASE_VERIFY_SIGNATURE,
            certs_url=settings.FIREBASE_CERTS_URL,
            timeout=settings.FIREBASE_HTTP_TIMEOUT,
        ),
        email_service=EmailService(_secret(settings.SENDGRID_API_KEY), settings.MAIL_FROM, settings.PROJECT_NAME),
        billing=BillingService(
            _secret(settings.STRIPE_SECRET_KEY),
            _secret(settings.STRIPE_WEBHOOK_SECRET),
            starter_price_id=settings.STRIPE_PRICE_STARTER,
            premium_price_id=settings.STRIPE_PRICE_PREMIUM,
        ),
    )
    logger.info("context.ready env=%s firebase_signature=%s", settings.ENVIRONMENT, settings.FIREBASE_VERIFY_SIGNATURE)
    return ctx
