
from fastapi import APIRouter, Depends
from app.services.auth_service import get_current_user


# public routes
from .routes_health import router as health_router
from .auth import router as auth_router
from .invitations import public_router as invitation_preview_router
from .subscription import public_router as subscription_public_router


# routes that need a registered user
from .company import router as company_router
from .invitations import router as invitation_router
from .settings import router as settings_router
from .products import router as product_router
from .categories import router as categories_router
from .work_orders import router as work_order_router
from .subscription import router as subscription_router


api_router = APIRouter()
api_router.include_router(health_router)                 # /health needs no login
api_router.include_router(auth_router)                   # /auth verifies the Firebase token itself
api_router.include_router(invitation_preview_router)     # invite page before sign-in
api_router.include_router(subscription_public_router)    # plan list + Stripe webhook

# --- signed-in endpoints ---
protected = APIRouter(dependencies=[Depends(get_current_user)])

protected.include_router(company_router)
protected.include_router(invitation_router)
protected.include_router(settings_router)
protected.include_router(product_router)
protected.include_router(categories_router)
protected.include_router(work_order_router)
protected.include_router(subscription_router)

api_router.include_router(protected)
