
# Aggregate import of every model so Alembic can discover them

from .company import Company, CompanyInvitation
from .user import User
from .api_settings import ApiSettings
from .product import (
    Product,
    ProductVariant,
    PriceHistory,
)
from .work_order import WorkOrder, WorkOrderStatus
from .session import UserSession

__all__ = [
    # tenants
    "Company", "CompanyInvitation", "User",
    # catalog
    "ApiSettings", "Product", "ProductVariant", "PriceHistory",
    # others
    "WorkOrder", "WorkOrderStatus", "UserSession",
]
