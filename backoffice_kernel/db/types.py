"""
Module: backoffice_kernel.db.types
Responsibility: Conversions between the integer-cent representation used on
    every engine interface and the fixed-point Decimal stored in monetary
    columns.
Architecture position: Kernel > DB.  May be imported by models, repositories
    and services.  MUST NOT import from any of those layers.

Invariants enforced:
    - Money crosses interfaces as int cents and is stored as Numeric(14, 2).
    - cents_from_decimal() refuses values carrying sub-cent precision instead
      of rounding them silently.
    - round_money() is the only sanctioned rounding helper for Decimal values.
"""

from decimal import ROUND_HALF_UP, Decimal

MONEY_DECIMAL_PLACES = 2
CENTS_PER_UNIT = 10 ** MONEY_DECIMAL_PLACES
DEFAULT_ROUNDING = ROUND_HALF_UP


def decimal_from_cents(value: int) -> Decimal:
    """
    Convert integer minor units into a two-place Decimal.

    Example:
        decimal_from_cents(1050) -> Decimal("10.50")
    """
    return (Decimal(value) / CENTS_PER_UNIT).quantize(Decimal("0.01"))


def cents_from_decimal(value: Decimal) -> int:
    """
    Convert a stored two-place Decimal back into integer cents.

    Raises:
        ValueError: If the value carries more than two decimal places.
    """
    scaled = Decimal(value) * CENTS_PER_UNIT
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {value} has sub-cent precision")
    return int(scaled)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a Decimal to the given number of places (half-up by default).

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to keep; 0 rounds to an
            integral value.
        rounding: Decimal rounding mode.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)
