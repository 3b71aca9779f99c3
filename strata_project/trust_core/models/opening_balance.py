from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .journal import JournalEntry
from .scheme import Lot, Scheme


# ---------- Opening balance (per lot, per epoch) ----------
class OpeningBalance(models.Model):
    """
    Starting balance of a lot when a scheme is onboarded mid-year.

    A row is "live" until the balances are cleared; clearing posts the
    reversal and stamps cleared_at, it never deletes. A lot has at most one
    live row, so a balance is applied exactly once per cleared epoch.
    """

    scheme = models.ForeignKey(
        Scheme, on_delete=models.PROTECT, related_name="opening_balances"
    )
    lot = models.ForeignKey(Lot, on_delete=models.PROTECT, related_name="opening_balances")
    # Signed: positive = owed by the lot, negative = lot in credit
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    balance_date = models.DateField()
    journal_entry = models.OneToOneField(
        JournalEntry, on_delete=models.PROTECT, related_name="opening_balance"
    )
    reversal_entry = models.OneToOneField(
        JournalEntry,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="cleared_opening_balance",
    )
    applied_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    applied_at = models.DateTimeField(auto_now_add=True)
    cleared_at = models.DateTimeField(null=True, blank=True)

    tenant_lookup = "scheme__organisation"
    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["lot"],
                condition=models.Q(cleared_at__isnull=True),
                name="uq_lot_live_opening_balance",
            ),
        ]
        indexes = [models.Index(fields=["scheme", "cleared_at"], name="ob_scheme_cleared_idx")]
        ordering = ("scheme", "lot")

    def __str__(self):
        state = "cleared" if self.cleared_at else "live"
        return f"{self.lot} opening {self.amount} ({state})"

    @property
    def is_live(self):
        return self.cleared_at is None

    def clean(self):
        if self.lot.scheme_id != self.scheme_id:
            raise ValidationError("Opening balance lot must belong to the scheme.")
        if self.amount == 0:
            raise ValidationError("Opening balance amount must be non-zero.")
