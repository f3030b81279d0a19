
"""
Low-level BigCommerce HTTP client: auth headers / retries / error mapping
  - one instance per store (store_hash + X-Auth-Token + X-Auth-Client)
  - retries transport errors, 429 and 5xx a configured number of times,
    honouring X-Rate-Limit-Time-Reset-Ms
  - get_json / put_json only; knows nothing about catalog fields
"""

from __future__ import annotations
import logging, time, requests
from typing import Any, Callable, Dict, Optional

from app.integrations.bigcommerce.errors import (
    BigCommerceAuthError, BigCommerceClientError, BigCommerceNotFoundError,
    BigCommercePayloadError, BigCommerceRateLimitError, BigCommerceServerError,
)
from app.utils.backoff import calc_retry_delay

logger = logging.getLogger(__name__)


class BigCommerceHttpClient:
    """Store-scoped client for the v3 REST API."""

    def __init__(
        self,
        store_hash: str,
        access_token: str,
        client_id: str,
        *,
        api_base: str = "https://api.bigcommerce.com/stores",
        timeout: int = 60,
        retries: int = 2,
        backoff_ms: int = 500,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not store_hash or not access_token or not client_id:
            raise ValueError("store_hash, access_token and client_id are required")
        self.store_hash = store_hash.strip()
        self.base_url = f"{api_base.rstrip('/')}/{self.store_hash}/v3"
        self.timeout = timeout
        self.retries = max(0, retries)
        self.backoff_ms = backoff_ms
        self._sleep = sleep

        self._session = session or requests.Session()
        self._headers = {
            "X-Auth-Token": access_token,
            "X-Auth-Client": client_id,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    # ---------- Public ----------
    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        resp = self._request("GET", path, params=params)
        return self._as_json(resp)

    def put_json(self, path: str, body: Any) -> Any:
        resp = self._request("PUT", path, json=body)
        return self._as_json(resp)

    def close(self) -> None:
        self._session.close()

    # ---------- Internals ----------
    def _as_json(self, resp: requests.Response) -> Any:
        if resp.status_code == 204 or not (resp.content or b"").strip():
            return None
        try:
            return resp.json()
        except ValueError as e:
            text = (resp.text or "")[:500]  # truncated, keeps logs small
            raise BigCommercePayloadError(
                f"non-JSON response (status={resp.status_code}): {text}", status_code=resp.status_code,
            ) from e

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        max_attempts = self.retries + 1

        for attempt in range(1, max_attempts + 1):
            try:
                resp = self._session.request(method, url, headers=self._headers, timeout=self.timeout, **kwargs)
            except requests.RequestException as e:
                if attempt == max_attempts:
                    raise BigCommerceClientError(f"request error: {e}") from e
                delay = calc_retry_delay(attempt, self.backoff_ms)
                logger.warning("bigcommerce.retry method=%s path=%s reason=%s wait=%.2fs", method, path, e, delay)
                self._sleep(delay)
                continue

            status = resp.status_code
            logger.debug("bigcommerce.response method=%s path=%s status=%s", method, path, status)

            if status == 429 or status >= 500:
                if attempt == max_attempts:
                    if status == 429:
                        raise BigCommerceRateLimitError("429 after retries", status_code=status)
                    raise BigCommerceServerError(
                        f"{status} after retries: {(resp.text or '')[:300]}", status_code=status,
                    )
                delay = calc_retry_delay(
                    attempt, self.backoff_ms, reset_ms_header=resp.headers.get("X-Rate-Limit-Time-Reset-Ms"),
                )
                logger.warning("bigcommerce.retry method=%s path=%s status=%s wait=%.2fs", method, path, status, delay)
                self._sleep(delay)
                continue

            if status in (401, 403):
                raise BigCommerceAuthError(f"{status} unauthorized", status_code=status, title=self._title(resp))

            if status == 404:
                title = self._title(resp)
                raise BigCommerceNotFoundError(f"404 not found: {path}", status_code=status, title=title)

            if 400 <= status < 500:
                title = self._title(resp)
                raise BigCommerceClientError(
                    f"{status} client error: {title or (resp.text or '')[:300]}", status_code=status, title=title,
                )

            return resp

        raise BigCommerceClientError("unreachable retry loop")

    @staticmethod
    def _title(resp: requests.Response) -> Optional[str]:
        """BigCommerce puts a human readable reason in the JSON `title`."""
        try:
            data = resp.json()
        except ValueError:
            return None
        if isinstance(data, dict):
            title = data.get("title")
            if isinstance(title, str) and title:
                return title
        return None
