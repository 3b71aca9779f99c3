import hashlib
import json
from decimal import ROUND_HALF_UP, Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import (AlreadyPostedDifferentPayload, InvalidAccountError,
                          UnbalancedEntryError)
from ..managers import PostedLineManager, TenantManager
from .account import Account
from .entitymembership import Organisation
from .financial_year import FinancialYear
from .scheme import Lot, Scheme

CENT = Decimal("0.01")

JOURNAL_STATUS = [
    ("draft", "Draft"),  # lines still being attached
    ("posted", "Posted"),  # finalized, visible to balance queries
]

# What produced the entry
REFERENCE_TYPES = [
    ("opening_balance", "Opening balance"),
    ("invoice", "Invoice"),
    ("payment", "Payment"),
    ("receipt", "Receipt"),
    ("journal", "Manual journal"),
    ("reversal", "Reversal"),
]


# ---------- Journal (Header) & JournalLine ----------
class JournalEntry(models.Model):  # One balanced trust-ledger transaction
    organisation = models.ForeignKey(Organisation, on_delete=models.CASCADE)
    scheme = models.ForeignKey(
        Scheme, on_delete=models.PROTECT, related_name="journal_entries"
    )
    financial_year = models.ForeignKey(
        FinancialYear,
        null=True,
        blank=True,
        on_delete=models.PROTECT,  # Prevent breaking historical ledger
        related_name="journal_entries",
    )
    # Posting date
    date = models.DateField()
    description = models.TextField(blank=True, default="")
    status = models.CharField(max_length=10, choices=JOURNAL_STATUS, default="draft")
    posted_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # Originating operation (opening balance, invoice, payment ...)
    reference_type = models.CharField(max_length=30, choices=REFERENCE_TYPES)
    reference_id = models.CharField(max_length=64, null=True, blank=True)
    # Set on reversing entries; an entry is reversed at most once
    reverses = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversal",
    )
    # Fingerprint-based idempotency (safe to post twice if nothing has changed)
    posting_fingerprint = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["scheme", "status", "date"], name="je_scheme_status_date_idx"),
            models.Index(fields=["scheme", "reference_type"], name="je_scheme_reftype_idx"),
        ]
        # ledger order: posting date, then insertion order
        ordering = ("date", "id")
        verbose_name_plural = "journal entries"

    def __str__(self):
        return f"JE {self.pk} {self.date} {self.reference_type} [{self.status}]"

    @property
    def is_posted(self):
        return self.status == "posted"

    # Aggregate all debit and credit amounts across entry's lines
    def compute_totals(self):
        """Return debits, credits sums for lines"""
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        # SQLite drops trailing zeros from SUM
        return (
            Decimal(aggs["total_debit"] or 0).quantize(CENT),
            Decimal(aggs["total_credit"] or 0).quantize(CENT),
        )

    def is_balanced(self):
        debit, credit = self.compute_totals()
        return debit == credit

    def _posting_payload(self):
        """Deterministic JSON snapshot of what matters for posting.

        Same data always yields the same string, so a second post() can
        tell whether this exact version was already posted.
        """
        lines = [
            {
                "acct": line.account_id,
                "lot": line.lot_id,
                "debit": str(line.debit),
                "credit": str(line.credit),
                "desc": line.description or "",
            }
            for line in self.lines.order_by("id").all()
        ]
        payload = {
            "scheme": self.scheme_id,
            "date": self.date.isoformat(),
            "ref": [self.reference_type, self.reference_id or ""],
            "lines": lines,
        }
        return json.dumps(payload, separators=(",", ":"), sort_keys=True)

    def _fingerprint(self):
        return hashlib.sha256(self._posting_payload().encode()).hexdigest()

    @transaction.atomic
    def post(self, user=None):
        """
        Validate and post the entry. Either every check passes and the
        entry (with all its lines) becomes visible, or nothing changes.
        """
        # Lock header + lines against concurrent posting
        je = JournalEntry.objects.select_for_update(of=("self",)).select_related(
            "scheme", "financial_year").get(pk=self.pk)
        lines = je.lines.select_for_update(of=("self",)).select_related("account", "lot")

        # lazy import to avoid circular import at module load time
        from ..services.snapshots import update_snapshots_for_entry

        fp = je._fingerprint()

        """ Idempotency & immutability """
        if je.status == "posted":
            if je.posting_fingerprint == fp:
                return je
            raise AlreadyPostedDifferentPayload(
                "Journal entry already posted with different payload."
            )

        """ Business validations """
        if not lines.exists():
            raise ValidationError("JournalEntry must have at least one JournalLine.")

        td, tc = je.compute_totals()
        if td != tc:
            raise UnbalancedEntryError(
                f"Entry does not balance: debits={td}, credits={tc}"
            )

        # Every line must use an account this scheme may post to
        for line in lines:
            account = line.account
            if not account.is_available_to(je.scheme):
                raise InvalidAccountError(
                    f"Account {account.code} does not belong to scheme {je.scheme.scheme_number}"
                )
            # reversals undo history, so they may hit a deactivated account
            if not account.is_active and je.reference_type != "reversal":
                raise InvalidAccountError(f"Account {account.code} is inactive")
            if line.lot_id and line.lot.scheme_id != je.scheme_id:
                raise ValidationError(
                    f"Lot {line.lot.lot_number} does not belong to this scheme"
                )

        fy = je.financial_year
        if fy is not None:
            if fy.scheme_id != je.scheme_id:
                raise ValidationError("Financial year must belong to the same scheme as journal")
            if not fy.contains(je.date):
                raise ValidationError(f"{je.date} is outside financial year {fy.year_label}")
            if fy.is_closed:
                raise ValidationError(f"Financial year {fy.year_label} is closed")

        """ Update state """
        je.status = "posted"
        je.posted_at = timezone.now()
        if user:
            je.created_by = user
        je.posting_fingerprint = fp
        je.save(
            update_fields=["status", "posted_at", "created_by", "posting_fingerprint"]
        )

        update_snapshots_for_entry(je)

        self.status = je.status
        self.posted_at = je.posted_at
        self.posting_fingerprint = fp
        return je

    def clean(self):
        if self.organisation_id and self.scheme_id:
            if self.scheme.organisation_id != self.organisation_id:
                raise ValidationError("Scheme must belong to the journal's organisation")

    def save(self, *args, **kwargs):
        if self.pk:
            orig = JournalEntry.objects.filter(pk=self.pk).values("status").first()
            if orig and orig["status"] == "posted":
                raise ValidationError("Cannot modify a posted JournalEntry. It is immutable.")
        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if JournalEntry.objects.filter(pk=self.pk, status="posted").exists():
            raise ValidationError(
                "Cannot delete a posted JournalEntry. Post a reversal instead."
            )
        return super().delete(*args, **kwargs)


class JournalLine(models.Model):  # One debit or credit posting
    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    # can't delete an account that has lines -> PROTECT
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="lines")
    # Lot subledger tag (receivable postings)
    lot = models.ForeignKey(
        Lot, null=True, blank=True, on_delete=models.PROTECT, related_name="journal_lines"
    )
    description = models.CharField(max_length=400, blank=True, default="")
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    tenant_lookup = "entry__organisation"
    objects = TenantManager()
    posted = PostedLineManager()

    class Meta:
        indexes = [
            models.Index(fields=["account", "entry"], name="jl_account_entry_idx"),
            models.Index(fields=["lot", "entry"], name="jl_lot_entry_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="jl_non_negative_amounts",
            ),
            models.CheckConstraint(
                condition=(models.Q(debit=0) & models.Q(credit__gt=0))
                | (models.Q(debit__gt=0) & models.Q(credit=0)),
                name="jl_debit_xor_credit",
            ),
        ]

    def __str__(self):
        return f"{self.entry_id} | {self.account.code} {self.account.name} | D:{self.debit} C:{self.credit}"

    @property
    def signed_amount(self):
        """Debit-positive amount of the line."""
        return self.debit - self.credit

    def clean(self):
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if self.debit > 0 and self.credit > 0:
            raise ValidationError("JournalLine should not have both debit and credit > 0")
        if self.debit == 0 and self.credit == 0:
            raise ValidationError("JournalLine requires a non-0 amount on either debit or credit")

        entry = self.entry
        if self.account_id and not self.account.is_available_to(entry.scheme):
            raise ValidationError("JournalLine.account must belong to the journal's scheme or organisation.")
        if self.lot_id and self.lot.scheme_id != entry.scheme_id:
            raise ValidationError("JournalLine.lot must belong to the journal's scheme.")

        # Lines of a posted entry are frozen
        if JournalEntry.objects.filter(pk=self.entry_id, status="posted").exists():
            if self.pk:
                raise ValidationError("Cannot modify JournalLine: parent JournalEntry is posted.")
            raise ValidationError("Cannot add JournalLine: parent journal is posted.")

    def delete(self, *args, **kwargs):
        if JournalEntry.objects.filter(pk=self.entry_id, status="posted").exists():
            raise ValidationError("Cannot delete JournalLine: parent JournalEntry is posted.")
        return super().delete(*args, **kwargs)

    def save(self, *args, **kwargs):
        # amounts are stored in whole cents
        self.debit = Decimal(self.debit or 0).quantize(CENT, rounding=ROUND_HALF_UP)
        self.credit = Decimal(self.credit or 0).quantize(CENT, rounding=ROUND_HALF_UP)
        self.full_clean()
        return super().save(*args, **kwargs)
