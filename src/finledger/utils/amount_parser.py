"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

from finledger.domain.entities import to_money


def parse_amount(amount_str: str, allow_negative: bool = False, cents_only: bool = True) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "1500"
    - "₹1,500.50"
    - "$12.30"
    - "1,00,000" (lakh grouping)
    - "-250" (only with ``allow_negative``)

    Args:
        amount_str: Amount string
        allow_negative: Accept negative amounts (opening balances may be negative)
        cents_only: Reject values finer than a cent (turn off for rates)

    Returns:
        Decimal amount

    Raises:
        ValueError: If the string is not a finite number, is negative when
            negatives are not allowed, or has more than two decimal places
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = re.sub(r"[₹$€£¥,\s]", "", amount_str)
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")

    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number, got '{amount_str}'")
    if amount < 0 and not allow_negative:
        raise ValueError(f"Amount must not be negative, got '{amount_str}'")
    if cents_only and to_money(amount) != amount:
        raise ValueError(f"Amount cannot have fractions of a cent, got '{amount_str}'")
    return amount
