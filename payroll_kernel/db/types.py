"""
Module: payroll_kernel.db.types
Responsibility: The sanctioned rounding and coercion helpers for wage
    amounts and rates.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and the engines.  MUST NOT import from any of those layers.

Invariants enforced:
    - Money values are reported with MONEY_DECIMAL_PLACES (2) places,
      ROUND_HALF_UP.  round_money() is the ONLY sanctioned rounding function
      for wage amounts.
    - Derived per-hour rates keep RATE_DECIMAL_PLACES (4) places.
    - No floats.  to_decimal() rejects them.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_DECIMAL_PLACES = 2
RATE_DECIMAL_PLACES = 4
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a wage amount to the given number of places.

    All rounding of reported amounts MUST go through this function.
    Intermediate products are never rounded.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)


def round_rate(value: Decimal) -> Decimal:
    """Round a derived per-hour rate to RATE_DECIMAL_PLACES."""
    return round_money(value, RATE_DECIMAL_PLACES)


def to_decimal(value: Decimal | int | str, field_name: str = "value") -> Decimal:
    """
    Coerce a caller-supplied number to Decimal.

    Ints and numeric strings go through ``Decimal(str(value))``.  Floats
    are rejected: binary floating point has no place in wage arithmetic.

    Raises:
        TypeError: If value is a float or bool.
        ValueError: If value is not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(
            f"{field_name} must be Decimal, int or str, not {type(value).__name__}"
        )
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{field_name} is not numeric: {value!r}") from exc
