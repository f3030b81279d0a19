
"""
Public surface of the BigCommerce integration: import from here,
internals are free to change.
"""

from .catalog import BigCommerceCatalog, client_for_settings
from .http_client import BigCommerceHttpClient
from .normalizers import normalize_product, normalize_variant, option_values_map

from .errors import (
    BigCommerceError, BigCommerceAuthError, BigCommerceClientError, BigCommerceNotFoundError,
    BigCommerceServerError, BigCommerceRateLimitError, BigCommercePayloadError, friendly_message,
)


__all__ = [
    "BigCommerceCatalog", "client_for_settings", "BigCommerceHttpClient",
    "normalize_product", "normalize_variant", "option_values_map",
    "BigCommerceError", "BigCommerceAuthError", "BigCommerceClientError", "BigCommerceNotFoundError",
    "BigCommerceServerError", "BigCommerceRateLimitError", "BigCommercePayloadError", "friendly_message",
]
