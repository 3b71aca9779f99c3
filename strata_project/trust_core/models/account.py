from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models
from ..managers import TenantManager
from .entitymembership import Organisation
from .scheme import Scheme

# Choice Lists
AC_TYPES = [
    # Used in Account model to classify general ledger accounts
    ("asset", "Asset"),
    ("liability", "Liability"),
    ("equity", "Equity"),
    ("income", "Income"),
    ("expense", "Expense"),
]

# Define whether the account normally increases
# on the debit side or credit side
NORMAL_BALANCE = [
    ("debit", "Debit"),
    ("credit", "Credit"),
]

# Assets/Expenses -> Debit, Liabilities/Equity/Income -> Credit
NORMAL_BALANCE_BY_TYPE = {
    "asset": "debit",
    "expense": "debit",
    "liability": "credit",
    "equity": "credit",
    "income": "credit",
}

# Strata schemes keep two separate trust funds
FUND_TYPES = [
    ("admin", "Administrative fund"),
    ("capital_works", "Capital works fund"),
]

account_code_validator = RegexValidator(
    r"^\d{4}$", "Account code must be a 4-digit number"
)


class Account(models.Model):
    """
    Ledger account in a scheme's chart of accounts.
    - scheme NULL means an organisation-level default shared by every scheme
    - a scheme account with the same code shadows the default for that scheme
    - normal_balance follows ac_type and drives the sign of reported balances
    """

    organisation = models.ForeignKey(
        Organisation, on_delete=models.CASCADE, related_name="accounts"
    )
    scheme = models.ForeignKey(
        Scheme,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="accounts",
    )
    code = models.CharField(max_length=10, validators=[account_code_validator])
    name = models.CharField(max_length=255)
    ac_type = models.CharField(max_length=10, choices=AC_TYPES)
    normal_balance = models.CharField(
        max_length=6, choices=NORMAL_BALANCE, editable=False
    )
    fund_type = models.CharField(
        max_length=20, choices=FUND_TYPES, null=True, blank=True
    )
    # Optional hierarchy (e.g. 1100 Admin trust, 1101 Admin term deposit)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )

    # System accounts are seeded defaults and read-only for staff
    is_system = models.BooleanField(default=False)
    # marker for accounts that must reconcile with a subledger (lot receivables)
    is_control_account = models.BooleanField(default=False)
    # "soft deactivate": hidden from pickers, no new postings, history kept
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["organisation", "scheme", "code"], name="account_org_scheme_code_idx"),
            models.Index(fields=["organisation", "ac_type"], name="account_org_type_idx"),
        ]
        constraints = [
            # an active code is unique within its exact scope
            models.UniqueConstraint(
                fields=["scheme", "code"],
                condition=models.Q(is_active=True, scheme__isnull=False),
                name="uq_active_scheme_account_code",
            ),
            models.UniqueConstraint(
                fields=["organisation", "code"],
                condition=models.Q(is_active=True, scheme__isnull=True),
                name="uq_active_org_default_account_code",
            ),
        ]
        ordering = ("code",)

    def __str__(self):
        scope = self.scheme.scheme_number if self.scheme_id else "default"
        return f"{scope}:{self.code} – {self.name}"

    @property
    def is_default(self):
        return self.scheme_id is None

    def is_available_to(self, scheme):
        """True if postings for `scheme` may use this account."""
        if self.scheme_id is not None:
            return self.scheme_id == scheme.pk
        return self.organisation_id == scheme.organisation_id

    def clean(self):
        """Enforce organisation consistency (multi-tenancy)"""
        if self.scheme_id and self.scheme.organisation_id != self.organisation_id:
            raise ValidationError("Scheme must belong to the same organisation as Account.")

        if self.parent_id:
            if self.parent.organisation_id != self.organisation_id:
                raise ValidationError("Parent & child accounts must belong to the same organisation")
            if self.parent.scheme_id not in (None, self.scheme_id):
                raise ValidationError("Parent account must be a default or belong to the same scheme")

    def save(self, *args, **kwargs):
        self.normal_balance = NORMAL_BALANCE_BY_TYPE.get(self.ac_type, "debit")
        self.full_clean()
        return super().save(*args, **kwargs)
