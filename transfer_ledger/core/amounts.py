from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any

from .errors import InvalidAmountError

_INTEGER_LITERAL = re.compile(r"\+?[0-9]+")


def parse_amount(raw: Any, max_amount: int) -> int:
    """Turn an unvalidated amount into a positive integer of minor units.

    Accepts ints, integral finite floats/Decimals and base-10 integer strings.
    """
    if isinstance(raw, bool):
        raise InvalidAmountError()

    if isinstance(raw, int):
        amount = raw
    elif isinstance(raw, float):
        if not math.isfinite(raw) or not raw.is_integer():
            raise InvalidAmountError()
        amount = int(raw)
    elif isinstance(raw, Decimal):
        if not raw.is_finite() or raw != raw.to_integral_value():
            raise InvalidAmountError()
        amount = int(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not _INTEGER_LITERAL.fullmatch(text):
            raise InvalidAmountError()
        amount = int(text)
    else:
        raise InvalidAmountError()

    if amount <= 0 or amount > max_amount:
        raise InvalidAmountError()
    return amount
