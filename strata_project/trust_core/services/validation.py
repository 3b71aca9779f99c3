import datetime
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# JournalLine amounts are DecimalField(max_digits=18, decimal_places=2)
MAX_AMOUNT = Decimal("9999999999999999.99")


# ------------------------------------
# Input validation for ledger writes
# ------------------------------------
def to_amount(value, *, field="amount"):
    """Decimal in whole cents. Sub-cent input is refused, never rounded."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if isinstance(value, float):
        # shortest repr, so 0.1 stays 0.1
        value = repr(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field.capitalize()} is too large: {value} (maximum {MAX_AMOUNT})")
    try:
        cents = amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError(f"Invalid {field}: {value!r}")
    if amount != cents:
        raise ValidationError(f"{field.capitalize()} must be in whole cents: {value}")
    return cents


def to_date(value, *, field="date"):
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        parsed = parse_date(value) if isinstance(value, str) else None
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{field.capitalize()} must be a valid date (YYYY-MM-DD)")
    return parsed


def to_id(value, *, field="id"):
    if hasattr(value, "pk"):
        return value.pk
    # int() would truncate 1.9 and accept True
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"Invalid {field}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")


def normalise_posting(posting):
    """
    Accept {"account_id", "debit"} / {"account_id", "credit"} or
    {"account_id", "side": "debit"|"credit", "amount"}, plus optional
    "lot_id" and "description". Returns a dict with both sides filled in.
    """
    if not isinstance(posting, dict):
        raise ValidationError("Each posting must be a mapping")

    account_id = posting.get("account_id", posting.get("account"))
    if account_id is None:
        raise ValidationError("Each posting needs an account_id")

    if "side" in posting:
        side = posting["side"]
        if side not in ("debit", "credit"):
            raise ValidationError(f"Posting side must be debit or credit, got {side!r}")
        amount = to_amount(posting.get("amount"))
        debit, credit = (amount, ZERO) if side == "debit" else (ZERO, amount)
    else:
        debit = to_amount(posting.get("debit") or 0, field="debit")
        credit = to_amount(posting.get("credit") or 0, field="credit")

    if debit < 0 or credit < 0:
        raise ValidationError("Posting amounts must be greater than zero")
    if (debit > 0) == (credit > 0):
        raise ValidationError("Each posting must be either a debit or a credit")

    lot_id = posting.get("lot_id", posting.get("lot"))
    return {
        "account_id": to_id(account_id, field="account"),
        "lot_id": to_id(lot_id, field="lot") if lot_id is not None else None,
        "debit": debit,
        "credit": credit,
        "description": posting.get("description") or "",
    }
