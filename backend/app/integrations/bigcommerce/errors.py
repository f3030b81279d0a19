
"""
   BigCommerce integration errors.
   Keep HTTP / rate-limit / server / payload failures apart from the business layer
   so callers can handle them in one place.
"""

class BigCommerceError(Exception):
    """Base for all BigCommerce errors."""

    def __init__(self, message: str, *, status_code: int | None = None, title: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.title = title

class BigCommerceAuthError(BigCommerceError):
    """401/403: access token or client id rejected."""

class BigCommerceClientError(BigCommerceError):
    """Network errors after retries, or a 4xx the store rejected."""

class BigCommerceNotFoundError(BigCommerceClientError):
    """404 for a product / variant / category id."""

class BigCommerceServerError(BigCommerceError):
    """Server-side (5xx) errors after retries."""

class BigCommerceRateLimitError(BigCommerceError):
    """429 Too Many Requests not resolved after retries."""

class BigCommercePayloadError(BigCommerceError):
    """Unexpected/invalid response payload shape or content."""


def friendly_message(exc: BigCommerceError) -> str:
    """Readable text for API responses and work order error columns."""
    if isinstance(exc, BigCommerceAuthError):
        return "BigCommerce rejected the credentials. Check the store hash, access token and client id."
    if isinstance(exc, BigCommerceNotFoundError):
        return f"BigCommerce could not find the requested item{': ' + exc.title if exc.title else ''}."
    if isinstance(exc, BigCommerceRateLimitError):
        return "BigCommerce rate limit reached. Please try again in a minute."
    if isinstance(exc, BigCommerceServerError):
        return "BigCommerce is currently unavailable. Please try again later."
    if isinstance(exc, BigCommercePayloadError):
        return "BigCommerce returned an unexpected response."
    if exc.title:
        return f"BigCommerce rejected the request: {exc.title}"
    return f"BigCommerce request failed: {exc}"
