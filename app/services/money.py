from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.services.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Unit prices and batch costs carry four places; only totals are rounded to cents.
UNIT_PRICE_STEP = Decimal("0.0001")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_unit_price(value: Decimal) -> Decimal:
    return value.quantize(UNIT_PRICE_STEP, rounding=ROUND_HALF_UP)


def _parse_decimal(value: object, field: str) -> Decimal:
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(value if value is not None else 0)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number") from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return amount


def to_money(value: object, field: str) -> Decimal:
    """Coerce user input to a cent-precision Decimal, rejecting non-finite values."""
    return quantize_money(_parse_decimal(value, field))


def to_unit_price(value: object, field: str) -> Decimal:
    """Coerce a per-unit price; more than four decimal places is rejected, not rounded."""
    amount = _parse_decimal(value, field)
    quantized = quantize_unit_price(amount)
    if quantized != amount:
        raise ValidationError(f"{field} must have at most 4 decimal places")
    return quantized


def as_decimal(value: object) -> Decimal:
    """Normalize a value read back from storage (may be int, float or None)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return quantize_money(value)
    if isinstance(value, float):
        return quantize_money(Decimal(repr(value)))
    return quantize_money(Decimal(value))


def as_unit_price(value: object) -> Decimal:
    """Like ``as_decimal`` but keeps the four places of a stored unit price."""
    if value is None:
        return quantize_unit_price(ZERO)
    if isinstance(value, float):
        value = repr(value)
    return quantize_unit_price(Decimal(value))


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)
