
from __future__ import annotations

from typing import Optional


def calc_retry_delay(attempt: int, base_ms: int = 500, max_seconds: float = 30.0,
                     reset_ms_header: Optional[str] = None) -> float:
    """
    Seconds to wait before retry number `attempt` (1-based).
    A BigCommerce X-Rate-Limit-Time-Reset-Ms header wins when it parses;
    otherwise base doubles per attempt, capped at max_seconds.
    """
    if reset_ms_header:
        try:
            return min(max_seconds, max(0.0, float(reset_ms_header) / 1000.0))
        except (TypeError, ValueError):
            pass
    attempt = max(1, attempt)
    delay = (base_ms / 1000.0) * (2 ** (attempt - 1))
    return min(max_seconds, delay)
