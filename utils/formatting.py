"""Common formatting helpers for token quantities.

Amounts travel through the engine as integer base units (the smallest
indivisible unit of a token). Conversions to and from human amounts use
``Decimal`` so that no binary float rounding leaks into stored thresholds.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

# wide enough for 2**128 with 9 decimals
_PRECISION = 80


def _as_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr, so 0.1 stays 0.1
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def to_base_units(human_amount, decimals: int) -> int:
    """Convert a positive human amount to integer base units, flooring extra digits."""
    amount = _as_decimal(human_amount)
    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"Amount must be a positive number, got {human_amount!r}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = amount.scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def to_human(base_units, decimals: int) -> Decimal:
    """Convert integer base units (int or decimal string) to an exact Decimal."""
    raw = int(base_units)
    if raw < 0:
        raise ValueError(f"Base units must be unsigned, got {base_units!r}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(raw).scaleb(-decimals)


def format_token_amount(base_units, decimals: int) -> str:
    """Format raw base units for display: thousands separators, no trailing zeros."""
    amount = to_human(base_units, decimals)
    text = f"{amount:,.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
