import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from ..exceptions import InvalidAccountError, NotFoundError, UnbalancedEntryError
from ..models import Account, JournalEntry, JournalLine, Lot
from ..models.journal import REFERENCE_TYPES
from .audit_helper import log_action
from .lookups import get_scheme
from .periods import resolve_financial_year
from .validation import ZERO, normalise_posting, to_date, to_id

logger = logging.getLogger(__name__)

# written only by their own workflows, never through post_entry
RESERVED_REFERENCE_TYPES = {
    "reversal": "Reference type reversal is reserved for reverse_entry",
    "opening_balance": "Reference type opening_balance is reserved for the opening balance importer",
}


# ----------------------------
# Ledger writes
# ----------------------------
def post_entry(
    scheme_id,
    postings,
    posting_date,
    reference_type,
    reference_id=None,
    *,
    description="",
    organisation=None,
    user=None,
):
    """
    Append one balanced entry to a scheme's ledger and return its id.

    The whole write (header, lines, posting) runs in one transaction under
    the scheme's row lock, so concurrent writers to the same ledger queue up
    and readers never see a half-written entry.
    """
    if reference_type not in dict(REFERENCE_TYPES):
        raise ValidationError(f"Unknown reference type: {reference_type}")
    if reference_type in RESERVED_REFERENCE_TYPES:
        raise ValidationError(RESERVED_REFERENCE_TYPES[reference_type])
    posting_date = to_date(posting_date, field="posting date")
    lines = [normalise_posting(p) for p in postings or []]
    if len(lines) < 2:
        raise ValidationError("Journal entries require at least 2 lines (debit and credit)")
    check_balanced(lines)

    with transaction.atomic():
        scheme = get_scheme(scheme_id, organisation, for_update=True)
        entry = write_entry(
            scheme,
            lines,
            posting_date,
            reference_type,
            reference_id,
            description=description,
            user=user,
        )
    return entry.pk


def check_balanced(lines):
    debits = sum((line["debit"] for line in lines), ZERO)
    credits = sum((line["credit"] for line in lines), ZERO)
    if debits != credits:
        raise UnbalancedEntryError(
            f"Entry does not balance: debits={debits}, credits={credits}"
        )
    return debits


def write_entry(
    scheme,
    lines,
    posting_date,
    reference_type,
    reference_id=None,
    *,
    description="",
    user=None,
    reverses=None,
):
    """
    Create and post an entry from normalised lines.
    Caller holds the scheme lock inside an atomic block.
    """
    accounts = Account.objects.in_bulk({line["account_id"] for line in lines})
    for line in lines:
        account = accounts.get(line["account_id"])
        if account is None:
            raise InvalidAccountError(f"Account {line['account_id']} does not exist")
        if not account.is_available_to(scheme):
            raise InvalidAccountError(
                f"Account {account.code} does not belong to scheme {scheme.scheme_number}"
            )
        if not account.is_active and reference_type != "reversal":
            raise InvalidAccountError(f"Account {account.code} is inactive")

    lot_ids = {line["lot_id"] for line in lines if line["lot_id"] is not None}
    lots = Lot.objects.filter(scheme=scheme).in_bulk(lot_ids)
    missing = lot_ids - set(lots)
    if missing:
        raise NotFoundError(
            f"Lot {sorted(missing)[0]} not found in scheme {scheme.scheme_number}"
        )

    financial_year = resolve_financial_year(scheme, posting_date)
    if financial_year and financial_year.is_closed:
        raise ValidationError(f"Financial year {financial_year.year_label} is closed")

    entry = JournalEntry.objects.create(
        organisation=scheme.organisation,
        scheme=scheme,
        financial_year=financial_year,
        date=posting_date,
        reference_type=reference_type,
        reference_id=str(reference_id) if reference_id is not None else None,
        description=description or "",
        created_by=user,
        reverses=reverses,
    )
    for line in lines:
        JournalLine.objects.create(
            entry=entry,
            account=accounts[line["account_id"]],
            lot=lots.get(line["lot_id"]),
            description=line["description"],
            debit=line["debit"],
            credit=line["credit"],
        )

    # runs balance / tenant / period checks and flips the entry to posted
    entry.post(user=user)

    total = check_balanced(lines)
    log_action(
        action="post",
        instance=entry,
        user=user,
        organisation=scheme.organisation,
        changes={
            "reference_type": reference_type,
            "reference_id": entry.reference_id,
            "date": posting_date.isoformat(),
            "total": str(total),
        },
    )
    logger.info(
        "Posted JE %s (%s) for scheme %s: %s",
        entry.pk, reference_type, scheme.scheme_number, total,
    )
    return entry


# ----------------------------
# Corrections
# ----------------------------
def write_reversal(original, scheme, *, posting_date=None, description=None, user=None):
    """Post the exact inverse of `original`. Caller holds the scheme lock."""
    if original.reference_type == "reversal":
        raise ValidationError("A reversing entry cannot itself be reversed")
    if JournalEntry.objects.filter(reverses=original).exists():
        raise ValidationError(f"Journal entry {original.pk} has already been reversed")

    lines = [
        {
            "account_id": line.account_id,
            "lot_id": line.lot_id,
            "debit": line.credit,
            "credit": line.debit,
            "description": line.description,
        }
        for line in original.lines.order_by("id")
    ]
    return write_entry(
        scheme,
        lines,
        posting_date or original.date,
        "reversal",
        original.pk,
        description=description or f"Reversal of JE {original.pk}",
        user=user,
        reverses=original,
    )


def reverse_entry(entry_id, *, posting_date=None, description=None, organisation=None, user=None):
    """Correct a posted entry by appending its reversal. Returns the reversal."""
    if posting_date is not None:
        posting_date = to_date(posting_date, field="posting date")

    qs = JournalEntry.objects.filter(status="posted")
    if organisation is not None:
        qs = qs.for_organisation(organisation)
    try:
        original = qs.get(pk=entry_id)
    except (JournalEntry.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Journal entry {entry_id} not found")

    with transaction.atomic():
        scheme = get_scheme(original.scheme_id, organisation, for_update=True)
        reversal = write_reversal(
            original, scheme, posting_date=posting_date, description=description, user=user
        )
    return reversal


# ----------------------------
# Ledger reads
# ----------------------------
class EntryStream:
    """
    Lazy, restartable sequence of posted entries in ledger order
    (posting date, then insertion order). Every iteration re-reads the
    latest committed ledger in chunks.
    """

    def __init__(self, queryset, chunk_size=500):
        self._queryset = queryset
        self.chunk_size = chunk_size

    def __iter__(self):
        return self._queryset.all().iterator(chunk_size=self.chunk_size)

    def count(self):
        return self._queryset.count()

    def exists(self):
        return self._queryset.exists()


def get_entries_for_scheme(
    scheme_id,
    date_range=None,
    *,
    reference_type=None,
    lot_id=None,
    organisation=None,
):
    scheme = get_scheme(scheme_id, organisation)
    qs = JournalEntry.objects.filter(scheme=scheme, status="posted")

    if date_range is not None:
        start, end = date_range
        start = to_date(start, field="start date") if start is not None else None
        end = to_date(end, field="end date") if end is not None else None
        if start and end and start > end:
            raise ValidationError("Start date must not be after end date")
        if start:
            qs = qs.filter(date__gte=start)
        if end:
            qs = qs.filter(date__lte=end)
    if reference_type:
        qs = qs.filter(reference_type=reference_type)
    if lot_id is not None:
        qs = qs.filter(lines__lot_id=to_id(lot_id, field="lot")).distinct()

    qs = qs.order_by("date", "id").prefetch_related("lines__account", "lines__lot")
    return EntryStream(qs)
