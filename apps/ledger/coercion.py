# apps/ledger/coercion.py
from decimal import Decimal, InvalidOperation

# Inputs at or above this are treated as typos
MAX_AMOUNT = Decimal(10) ** 15


def to_number(value, default=0):
    """
    Coerce form input to a JSON-friendly number.

    Blank, non-numeric or absurdly large input becomes ``default`` instead of
    raising, since front-desk operators routinely leave fields empty.
    """
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = Decimal(str(value).strip())
        if not number.is_finite() or abs(number) >= MAX_AMOUNT:
            return default
        return as_json_number(number)
    except (InvalidOperation, ValueError):
        return default


def as_json_number(number):
    number = Decimal(number).quantize(Decimal("0.01"))
    if number == number.to_integral_value():
        return int(number)
    return float(number)
