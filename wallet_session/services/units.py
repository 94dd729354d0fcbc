"""Conversions between smallest-unit integers and decimal amounts."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, DecimalException, Inexact, InvalidOperation, Underflow, localcontext

# uint256 has 78 decimal digits; keep headroom so conversions never round.
_PRECISION = 100

# Largest value a transaction quantity can carry
MAX_UINT256 = 2**256 - 1


def format_balance(raw: int, decimals: int = 18, places: int = 6) -> str:
    """Render a smallest-unit balance, truncated (never rounded up) to ``places`` digits.

    >>> format_balance(1_234_567_999_999_999_999)
    '1.234567'
    """
    if raw < 0:
        raise ValueError(f"Balance cannot be negative: {raw}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = Decimal(raw).scaleb(-decimals)
        truncated = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)
        if truncated == 0:
            return "0"
        return format(truncated.normalize(), "f")


def parse_amount(amount: str) -> Decimal:
    """Parse a user-entered amount into a finite Decimal, or raise ValueError."""
    text = (amount or "").strip()
    if not text:
        raise ValueError("Amount is empty")
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Not a number: {amount!r}") from None
    if not value.is_finite():
        raise ValueError(f"Amount must be finite: {amount!r}")
    return value


def to_smallest_unit(amount: str, decimals: int = 18) -> int:
    """Convert a positive decimal amount to the chain's smallest unit.

    Raises:
        ValueError: Not a finite number, not strictly positive, finer than
            the currency's smallest unit, or larger than a uint256.
    """
    value = parse_amount(amount)
    if value <= 0:
        raise ValueError(f"Amount must be greater than zero: {amount!r}")
    if value.adjusted() + decimals >= len(str(MAX_UINT256)):
        raise ValueError(f"Amount out of range: {amount!r}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        # Any rounding or underflow means the amount is not a whole number of units
        ctx.traps[Inexact] = True
        ctx.traps[Underflow] = True
        try:
            scaled = value.scaleb(decimals)
        except DecimalException:
            raise ValueError(f"Amount out of range: {amount!r}") from None
        if scaled != scaled.to_integral_value():
            raise ValueError(f"Amount has more than {decimals} decimal places: {amount!r}")

    units = int(scaled)
    if units <= 0 or units > MAX_UINT256:
        raise ValueError(f"Amount out of range: {amount!r}")
    return units
