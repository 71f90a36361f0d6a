"""
Money helpers
Decimal conversion, validation and minor-unit rounding shared by the engine
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from hrms.exceptions import InvalidInputError

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal) -> Decimal:
    """Round to the currency minor unit (paise)"""
    return value.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """Exact decimal for a configuration value (floats go through str)"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def as_amount(value, field: str, positive: bool = False) -> Decimal:
    """Validate a caller-supplied number and return it as Decimal"""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number", field=field)
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"{field} must be a number", field=field)

    if not amount.is_finite():
        raise InvalidInputError(f"{field} must be finite", field=field)
    if positive and amount <= 0:
        raise InvalidInputError(f"{field} must be greater than zero", field=field)
    if amount < 0:
        raise InvalidInputError(f"{field} must not be negative", field=field)
    return amount
