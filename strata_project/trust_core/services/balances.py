"""
Balance projections over the posted journal.

The ledger is append-only, so every figure here is a pure fold of posted
lines: the same arguments against the same ledger give the same answer.
"""
from dataclasses import dataclass, field
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from ..models import JournalLine
from .lookups import get_account_for_scheme, get_lot, get_scheme
from .validation import ZERO, to_date


@dataclass(frozen=True)
class TrialBalanceRow:
    account_id: int
    code: str
    name: str
    ac_type: str
    fund_type: str | None
    total_debits: Decimal
    total_credits: Decimal
    balance: Decimal


@dataclass(frozen=True)
class TrialBalance:
    as_of_date: object
    rows: list = field(default_factory=list)
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO

    @property
    def is_balanced(self):
        return self.total_debits == self.total_credits


@dataclass(frozen=True)
class LedgerRow:
    date: object
    entry_id: int
    reference_type: str
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


def natural_balance(debit, credit, normal_balance):
    """Debit-positive for asset/expense accounts, credit-positive otherwise."""
    debit = debit or ZERO
    credit = credit or ZERO
    if normal_balance == "credit":
        return credit - debit
    return debit - credit


def _as_of(as_of_date):
    if as_of_date is None:
        return timezone.localdate()
    return to_date(as_of_date, field="as-of date")


def _totals(lines):
    agg = lines.aggregate(debit=Sum("debit"), credit=Sum("credit"))
    return agg["debit"] or ZERO, agg["credit"] or ZERO


def get_account_balance(scheme_id, account_id, as_of_date=None, organisation=None):
    scheme = get_scheme(scheme_id, organisation)
    account = get_account_for_scheme(scheme, account_id)
    debit, credit = _totals(
        JournalLine.posted.filter(
            entry__scheme=scheme, account=account, entry__date__lte=_as_of(as_of_date)
        )
    )
    return natural_balance(debit, credit, account.normal_balance)


def get_lot_balance(scheme_id, lot_id, as_of_date=None, organisation=None):
    """Amount owed by the lot (debit-positive); negative means in credit."""
    scheme = get_scheme(scheme_id, organisation)
    lot = get_lot(scheme, lot_id)
    debit, credit = _totals(
        JournalLine.posted.filter(
            entry__scheme=scheme, lot=lot, entry__date__lte=_as_of(as_of_date)
        )
    )
    return debit - credit


def get_trial_balance(scheme_id, as_of_date=None, organisation=None):
    scheme = get_scheme(scheme_id, organisation)
    as_of = _as_of(as_of_date)
    grouped = (
        JournalLine.posted.filter(entry__scheme=scheme, entry__date__lte=as_of)
        .values(
            "account_id",
            "account__code",
            "account__name",
            "account__ac_type",
            "account__fund_type",
            "account__normal_balance",
        )
        .annotate(total_debits=Sum("debit"), total_credits=Sum("credit"))
        .order_by("account__code", "account_id")
    )

    rows = [
        TrialBalanceRow(
            account_id=row["account_id"],
            code=row["account__code"],
            name=row["account__name"],
            ac_type=row["account__ac_type"],
            fund_type=row["account__fund_type"],
            total_debits=row["total_debits"] or ZERO,
            total_credits=row["total_credits"] or ZERO,
            balance=natural_balance(
                row["total_debits"], row["total_credits"], row["account__normal_balance"]
            ),
        )
        for row in grouped
    ]
    return TrialBalance(
        as_of_date=as_of,
        rows=rows,
        total_debits=sum((r.total_debits for r in rows), ZERO),
        total_credits=sum((r.total_credits for r in rows), ZERO),
    )


def get_account_ledger(scheme_id, account_id, date_range=None, organisation=None):
    """Lines of one account with the running balance after each."""
    scheme = get_scheme(scheme_id, organisation)
    account = get_account_for_scheme(scheme, account_id)
    start, end = date_range or (None, None)
    start = to_date(start, field="start date") if start is not None else None
    end = to_date(end, field="end date") if end is not None else None

    lines = JournalLine.posted.filter(entry__scheme=scheme, account=account)
    balance = ZERO
    if start:
        # brought-forward balance
        debit, credit = _totals(lines.filter(entry__date__lt=start))
        balance = natural_balance(debit, credit, account.normal_balance)
        lines = lines.filter(entry__date__gte=start)
    if end:
        lines = lines.filter(entry__date__lte=end)

    rows = []
    for line in lines.select_related("entry").order_by("entry__date", "entry_id", "id"):
        balance += natural_balance(line.debit, line.credit, account.normal_balance)
        rows.append(
            LedgerRow(
                date=line.entry.date,
                entry_id=line.entry_id,
                reference_type=line.entry.reference_type,
                description=line.description or line.entry.description,
                debit=line.debit,
                credit=line.credit,
                balance=balance,
            )
        )
    return rows
