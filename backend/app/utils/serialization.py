from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional


_CENTS = Decimal("0.01")


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a price-like value (str / int / float / Decimal) into a 2dp Decimal.
    Empty strings and unparseable values become None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        dec = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            dec = Decimal(text)
        except InvalidOperation:
            return None
    if not dec.is_finite():
        return None
    return dec.quantize(_CENTS, rounding=ROUND_HALF_UP)


def decimal_str(value: Any) -> Optional[str]:
    dec = to_decimal(value)
    return None if dec is None else format(dec, "f")


