# Shared route dependencies

from typing import Callable

from fastapi import Depends, HTTPException, status

from app.core.context import AppContext
from app.db.model.api_settings import ApiSettings
from app.integrations.bigcommerce import BigCommerceCatalog, BigCommerceError, client_for_settings, friendly_message
from app.services.auth_service import get_context

CatalogFactory = Callable[[ApiSettings], BigCommerceCatalog]


def get_catalog_factory(ctx: AppContext = Depends(get_context)) -> CatalogFactory:
    """Builds a store client from a company's saved credentials (overridden in tests)."""
    def factory(api_settings: ApiSettings) -> BigCommerceCatalog:
        return client_for_settings(api_settings, ctx.settings)
    return factory


def bad_gateway(exc: BigCommerceError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=friendly_message(exc))
