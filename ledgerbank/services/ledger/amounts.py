"""Parsing of caller-supplied money amounts into integer cents."""

from decimal import Decimal, InvalidOperation

from ledgerbank.services.ledger.errors import InvalidAmount


CENT = Decimal("0.01")
# Largest single movement accepted from a caller.
MAX_CENTS = 10**15
# Ceiling of the signed 64-bit `balance_after_cents` column.
MAX_BALANCE_CENTS = 2**63 - 1


def parse_amount(raw) -> int:
    """Validate a caller amount once and return it as positive integer cents.

    Accepts ints, finite floats, Decimals and numeric strings. Booleans, None,
    NaN/infinity, zero, negatives and fractions of a cent are rejected.
    """

    if raw is None:
        raise InvalidAmount("amount is required")
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str, Decimal)):
        raise InvalidAmount(f"amount must be numeric, got {type(raw).__name__}")
    try:
        # str() first so floats like 0.1 keep their short repr.
        value = Decimal(str(raw).strip())
    except InvalidOperation as exc:
        raise InvalidAmount(f"amount is not a number: {raw!r}") from exc
    if not value.is_finite():
        raise InvalidAmount("amount must be finite")
    if value <= 0:
        raise InvalidAmount("amount must be greater than zero")
    try:
        exact = value == value.quantize(CENT)
    except InvalidOperation as exc:
        raise InvalidAmount("amount is too large") from exc
    if not exact:
        raise InvalidAmount("amount cannot be smaller than one cent")
    cents = int(value * 100)
    if cents > MAX_CENTS:
        raise InvalidAmount("amount is too large")
    return cents


def to_decimal(cents: int) -> Decimal:
    """Render stored cents as a two-place Decimal."""

    return (Decimal(cents) / 100).quantize(CENT)
