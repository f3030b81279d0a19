
"""
BigCommerce catalog API (v3 /catalog/*):
   - categories are paged 250 per request and merged;
   - products are paged with variants included;
   - price updates go to the product or to a single variant.
"""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Tuple

from app.integrations.bigcommerce.errors import (
    BigCommerceError, BigCommerceNotFoundError, BigCommercePayloadError,
)
from app.integrations.bigcommerce.http_client import BigCommerceHttpClient
from app.integrations.bigcommerce.normalizers import price_payload

logger = logging.getLogger(__name__)


CATEGORY_PAGE_SIZE = 250


def _data(payload: Any, path: str) -> Any:
    if not isinstance(payload, dict) or "data" not in payload:
        raise BigCommercePayloadError(f"missing 'data' in response for {path}")
    return payload["data"]


def _pagination(payload: Any) -> Dict[str, Any]:
    meta = (payload or {}).get("meta") or {}
    return meta.get("pagination") or {}


class BigCommerceCatalog:
    """Catalog operations for one store."""

    def __init__(self, http: BigCommerceHttpClient, page_size: int = 50) -> None:
        self.http = http
        self.page_size = page_size

    # ---------- connection ----------
    def test_connection(self) -> bool:
        """True when the credentials can read the catalog; upstream errors are logged, not raised."""
        try:
            self.http.get_json("/catalog/products", params={"limit": 1})
            return True
        except BigCommerceError as e:
            logger.warning("bigcommerce.test_connection failed store=%s err=%s", self.http.store_hash, e)
            return False

    # ---------- categories ----------
    def get_categories(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        page = 1
        while True:
            payload = self.http.get_json("/catalog/categories", params={"limit": CATEGORY_PAGE_SIZE, "page": page})
            rows = _data(payload, "/catalog/categories")
            out.extend({"id": c.get("id"), "name": c.get("name"), "parent_id": c.get("parent_id")} for c in rows)
            total_pages = int(_pagination(payload).get("total_pages") or 1)
            if page >= total_pages or not rows:
                break
            page += 1
        logger.info("bigcommerce.categories store=%s count=%d", self.http.store_hash, len(out))
        return out

    # ---------- products ----------
    def get_products_page(self, page: int = 1, limit: Optional[int] = None) -> Tuple[List[Dict[str, Any]], int]:
        """One page of products (variants included). Returns (rows, total across all pages)."""
        params = {"page": page, "limit": limit or self.page_size, "include": "variants"}
        payload = self.http.get_json("/catalog/products", params=params)
        rows = _data(payload, "/catalog/products")
        total = int(_pagination(payload).get("total") or len(rows))
        return list(rows), total

    def iter_products(self, max_items: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        page, seen = 1, 0
        while True:
            rows, total = self.get_products_page(page)
            for row in rows:
                if max_items is not None and seen >= max_items:
                    return
                seen += 1
                yield row
            if not rows or page * self.page_size >= total:
                return
            page += 1

    def get_product_count(self) -> int:
        _, total = self.get_products_page(1, limit=1)
        return total

    def get_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        try:
            payload = self.http.get_json(f"/catalog/products/{product_id}")
        except BigCommerceNotFoundError:
            return None
        return _data(payload, f"/catalog/products/{product_id}")

    def get_variants(self, product_id: int) -> List[Dict[str, Any]]:
        try:
            payload = self.http.get_json(f"/catalog/products/{product_id}/variants")
        except BigCommerceNotFoundError:
            return []
        return list(_data(payload, f"/catalog/products/{product_id}/variants"))

    # ---------- prices ----------
    def update_product_prices(
        self,
        product_id: int,
        *,
        regular_price: Optional[Decimal] = None,
        sale_price: Optional[Decimal] = None,
    ) -> Dict[str, Any]:
        body = price_payload(regular_price, sale_price)
        if not body:
            raise ValueError("nothing to update")
        logger.info("bigcommerce.update_product store=%s id=%s body=%s", self.http.store_hash, product_id, body)
        payload = self.http.put_json(f"/catalog/products/{product_id}", body)
        return _data(payload, f"/catalog/products/{product_id}") if payload else {}

    def update_variant_prices(
        self,
        product_id: int,
        variant_id: int,
        *,
        regular_price: Optional[Decimal] = None,
        sale_price: Optional[Decimal] = None,
    ) -> Dict[str, Any]:
        body = price_payload(regular_price, sale_price)
        if not body:
            raise ValueError("nothing to update")
        path = f"/catalog/products/{product_id}/variants/{variant_id}"
        logger.info("bigcommerce.update_variant store=%s product=%s variant=%s body=%s",
                    self.http.store_hash, product_id, variant_id, body)
        payload = self.http.put_json(path, body)
        return _data(payload, path) if payload else {}

    def close(self) -> None:
        self.http.close()


def client_for_settings(api_settings, settings, *, session=None) -> BigCommerceCatalog:
    """Build a catalog client from a company's ApiSettings row and app Settings."""
    http = BigCommerceHttpClient(
        api_settings.store_hash,
        api_settings.access_token,
        api_settings.client_id,
        api_base=settings.BIGCOMMERCE_API_BASE,
        timeout=settings.BIGCOMMERCE_HTTP_TIMEOUT,
        retries=settings.BIGCOMMERCE_HTTP_RETRIES,
        backoff_ms=settings.BIGCOMMERCE_HTTP_BACKOFF_MS,
        session=session,
    )
    return BigCommerceCatalog(http, page_size=settings.BIGCOMMERCE_PAGE_SIZE)
