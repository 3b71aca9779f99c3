import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from ..exceptions import (
    AlreadyAppliedError,
    InvalidAccountError,
    NotAppliedError,
    NotFoundError,
)
from ..models import FinancialYear, JournalEntry, JournalLine, Lot, OpeningBalance
from .accounts import resolve_account
from .audit_helper import log_action
from .lookups import get_scheme
from .posting import write_entry, write_reversal
from .validation import ZERO, to_amount, to_date, to_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpeningBalanceStatus:
    has_opening_balances: bool
    count: int
    total_amount: Decimal


# ------------------------------------
# Status
# ------------------------------------
def _live_opening_entries(scheme):
    """Posted opening-balance entries that have not been reversed."""
    return JournalEntry.objects.filter(
        scheme=scheme,
        status="posted",
        reference_type="opening_balance",
        reversal__isnull=True,
    )


def check_status(scheme_id, organisation=None):
    """
    Read straight off the ledger, so the answer always matches what the
    balances show.
    """
    scheme = get_scheme(scheme_id, organisation)
    entries = _live_opening_entries(scheme)
    count = entries.count()
    agg = JournalLine.posted.filter(entry__in=entries, lot__isnull=False).aggregate(
        debit=Sum("debit"), credit=Sum("credit")
    )
    total = (agg["debit"] or ZERO) - (agg["credit"] or ZERO)
    return OpeningBalanceStatus(has_opening_balances=count > 0, count=count, total_amount=total)


def lots_for_opening_balances(scheme_id, organisation=None):
    """Active lots of a scheme with their current owner and live opening balance."""
    scheme = get_scheme(scheme_id, organisation)
    live = {
        ob.lot_id: ob
        for ob in OpeningBalance.objects.filter(scheme=scheme, cleared_at__isnull=True)
    }
    lots = Lot.objects.filter(scheme=scheme, status="active").order_by("lot_number")
    rows = []
    for lot in lots:
        owner = lot.current_owner
        ob = live.get(lot.pk)
        rows.append(
            {
                "lot_id": lot.pk,
                "lot_number": lot.lot_number,
                "unit_number": lot.unit_number,
                "owner_name": owner.full_name if owner else None,
                "opening_balance": ob.amount if ob else None,
            }
        )
    return rows


# ------------------------------------
# Apply / clear
# ------------------------------------
def _parse_balances(balances):
    parsed = []
    seen = set()
    for item in balances or []:
        if not isinstance(item, dict):
            raise ValidationError("Each opening balance must be a mapping")
        lot_id = to_id(item.get("lot_id", item.get("lot")), field="lot")
        if lot_id in seen:
            raise ValidationError(f"Lot {lot_id} appears more than once")
        seen.add(lot_id)
        amount = to_amount(item.get("amount"))
        # nothing to post for a zero balance
        if amount != 0:
            parsed.append((lot_id, amount))
    if not parsed:
        raise ValidationError("At least one lot needs a non-zero opening balance")
    return parsed


def _default_balance_date(scheme):
    year = FinancialYear.objects.filter(scheme=scheme, is_current=True).first()
    return year.start_date if year else timezone.localdate()


def _opening_accounts(scheme):
    try:
        receivable = resolve_account(scheme, settings.TRUST_RECEIVABLE_ACCOUNT_CODE)
        equity = resolve_account(scheme, settings.TRUST_OPENING_BALANCE_ACCOUNT_CODE)
    except NotFoundError as exc:
        raise InvalidAccountError(str(exc))
    return receivable, equity


def _clear(scheme, user):
    cleared = 0
    now = timezone.now()
    for entry in _live_opening_entries(scheme).order_by("date", "id"):
        # same date as the original, so balances are restored for any as-of date
        reversal = write_reversal(
            entry,
            scheme,
            posting_date=entry.date,
            description=f"Clear opening balance (JE {entry.pk})",
            user=user,
        )
        OpeningBalance.objects.filter(journal_entry=entry, cleared_at__isnull=True).update(
            cleared_at=now, reversal_entry=reversal
        )
        cleared += 1
    return cleared


def apply_opening_balances(
    scheme_id,
    balances,
    balance_date=None,
    *,
    reseed=False,
    organisation=None,
    user=None,
):
    """
    Post one opening-balance entry per lot. All lots go in or none do.

    A positive amount is owed by the lot: debit levies receivable (tagged
    with the lot) and credit opening balance equity. Negative is the mirror.
    Returns the OpeningBalance rows created.
    """
    parsed = _parse_balances(balances)
    if balance_date is not None:
        balance_date = to_date(balance_date, field="balance date")

    with transaction.atomic():
        scheme = get_scheme(scheme_id, organisation, for_update=True)

        if _live_opening_entries(scheme).exists():
            if not reseed:
                raise AlreadyAppliedError(
                    f"Opening balances already applied for scheme {scheme.scheme_number}"
                )
            cleared = _clear(scheme, user)
            logger.info(
                "Re-seeding scheme %s: cleared %d opening balances", scheme.scheme_number, cleared
            )

        receivable, equity = _opening_accounts(scheme)
        if balance_date is None:
            balance_date = _default_balance_date(scheme)

        lots = Lot.objects.filter(scheme=scheme).in_bulk([lot_id for lot_id, _ in parsed])
        created = []
        for lot_id, amount in parsed:
            lot = lots.get(lot_id)
            if lot is None:
                raise NotFoundError(f"Lot {lot_id} not found in scheme {scheme.scheme_number}")
            if lot.status != "active":
                raise ValidationError(f"Lot {lot.lot_number} is not active")

            value = abs(amount)
            lot_side = {"debit": value, "credit": ZERO} if amount > 0 else {"debit": ZERO, "credit": value}
            lines = [
                {
                    "account_id": receivable.pk,
                    "lot_id": lot.pk,
                    "description": f"Opening balance lot {lot.lot_number}",
                    **lot_side,
                },
                {
                    "account_id": equity.pk,
                    "lot_id": None,
                    "description": f"Opening balance lot {lot.lot_number}",
                    "debit": lot_side["credit"],
                    "credit": lot_side["debit"],
                },
            ]
            entry = write_entry(
                scheme,
                lines,
                balance_date,
                "opening_balance",
                lot.pk,
                description=f"Opening balance - Lot {lot.lot_number}",
                user=user,
            )
            ob = OpeningBalance(
                scheme=scheme,
                lot=lot,
                amount=amount,
                balance_date=balance_date,
                journal_entry=entry,
                applied_by=user,
            )
            ob.full_clean()
            ob.save()
            created.append(ob)

        log_action(
            action="apply_opening_balances",
            instance=scheme,
            user=user,
            changes={
                "lots": len(created),
                "total": str(sum((ob.amount for ob in created), ZERO)),
                "balance_date": balance_date.isoformat(),
                "reseed": reseed,
            },
        )

    logger.info(
        "Applied %d opening balances for scheme %s", len(created), scheme.scheme_number
    )
    return created


def clear_opening_balances(scheme_id, *, organisation=None, user=None):
    """Reverse every live opening-balance entry. Returns how many were cleared."""
    with transaction.atomic():
        scheme = get_scheme(scheme_id, organisation, for_update=True)
        if not _live_opening_entries(scheme).exists():
            raise NotAppliedError(
                f"No opening balances applied for scheme {scheme.scheme_number}"
            )
        cleared = _clear(scheme, user)
        log_action(
            action="clear_opening_balances",
            instance=scheme,
            user=user,
            changes={"cleared": cleared},
        )

    logger.info("Cleared %d opening balances for scheme %s", cleared, scheme.scheme_number)
    return cleared
