"""
Money helpers -- Decimal coercion and rounding.

Invariants enforced:
    CRITICAL: No floats.  Monetary inputs are Decimal, int, or numeric
    strings; to_money() rejects floats outright.

Failure modes:
    - TypeError when a float (or bool) is passed to to_money().
    - decimal.InvalidOperation on a non-numeric string.
    - InvalidAmountError on NaN or Infinity.
"""

from decimal import ROUND_HALF_UP, Decimal

from drawer_kernel.exceptions import InvalidAmountError

DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def to_money(value: Decimal | int | str, field: str = "amount") -> Decimal:
    """
    Coerce an amount to Decimal.

    Raises:
        TypeError: If value is a float or bool.
        decimal.InvalidOperation: If value is a non-numeric string.
        InvalidAmountError: If value is NaN or infinite.
    """
    if isinstance(value, (bool, float)):
        raise TypeError(
            f"Monetary amounts must be Decimal, int or str, got {type(value).__name__}"
        )
    amount = value if isinstance(value, Decimal) else Decimal(value)
    if not amount.is_finite():
        raise InvalidAmountError(field=field, amount=str(amount), reason="amount must be finite")
    return amount


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the only sanctioned rounding function for money in the kernel.
    """
    if decimal_places == 0:
        return value.quantize(Decimal("1"), rounding=rounding)
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)
