"""Amount parsing utilities."""

import re
from fractions import Fraction

_SYMBOLS = re.compile(r"[$€£¥₹₩]")


def parse_amount(amount_str: str) -> Fraction:
    """Parse an amount string into an exact Fraction.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)
    - "11/10" (an exact ratio, e.g. for exchange rates)

    Args:
        amount_str: Amount string

    Returns:
        Fraction amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    is_negative = text.startswith("(") and text.endswith(")")
    if is_negative:
        text = text[1:-1]
    text = _SYMBOLS.sub("", text).replace(",", "").strip()

    try:
        amount = Fraction(text)
    except (ValueError, ZeroDivisionError) as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    return -amount if is_negative else amount
