from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert a JSON number (or numeric string) to a Decimal without float noise."""
    if isinstance(value, bool):
        raise ValueError("booleans are not amounts")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return amount


def to_cents(amount: Decimal) -> int:
    """Round half-up to whole cents."""
    return int(amount.quantize(CENT, rounding=ROUND_HALF_UP) * 100)
