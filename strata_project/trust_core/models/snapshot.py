from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .account import Account
from .scheme import Scheme


# ---------- Account Balance Snapshot (rebuildable reporting cache) ----------
class AccountBalanceSnapshot(models.Model):
    """
    Daily debit/credit movement per (scheme, account). The journal stays the
    source of truth; rows can be dropped and rebuilt from it at any time.
    """

    scheme = models.ForeignKey(Scheme, on_delete=models.CASCADE, related_name="+")
    account = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="snapshots")
    snapshot_date = models.DateField()
    debit_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    credit_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    tenant_lookup = "scheme__organisation"
    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["scheme", "snapshot_date"], name="snap_scheme_date_idx")]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(debit_balance__gte=0) &
                    models.Q(credit_balance__gte=0)
                ),
                name="ab_snap_non_negative_amounts",
            ),
            # one row per account per day
            models.UniqueConstraint(
                fields=["scheme", "account", "snapshot_date"],
                name="uq_scheme_account_snapshot_date",
            ),
        ]

    def __str__(self):
        return (
            f"{self.scheme.scheme_number} {self.snapshot_date} | {self.account.code} "
            f"{self.account.name}: D {self.debit_balance} / C {self.credit_balance}"
        )

    def clean(self):
        if self.account_id and not self.account.is_available_to(self.scheme):
            raise ValidationError("Account must be available to the scheme.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
