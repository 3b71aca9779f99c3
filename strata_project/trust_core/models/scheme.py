from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from ..managers import TenantManager
from .entitymembership import Organisation


# ---------- Scheme (strata plan) ----------
class Scheme(models.Model):
    """
    A managed property. The tenant-scoping unit for trust accounting:
    owns its lots, its own accounts, its financial years and its ledger.
    """

    organisation = models.ForeignKey(
        Organisation, on_delete=models.PROTECT, related_name="schemes"
    )
    # Registered plan number, e.g. "SP12345"
    scheme_number = models.CharField(max_length=50)
    name = models.CharField(max_length=200)

    # Financial-year end, e.g. 30 June -> month=6, day=30
    financial_year_end_month = models.PositiveSmallIntegerField(
        default=6, validators=[MinValueValidator(1), MaxValueValidator(12)]
    )
    financial_year_end_day = models.PositiveSmallIntegerField(
        default=30, validators=[MinValueValidator(1), MaxValueValidator(31)]
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["organisation", "scheme_number"],
                name="uq_organisation_scheme_number",
            ),
        ]
        ordering = ("organisation", "scheme_number")

    def __str__(self):
        return f"{self.scheme_number} {self.name}"

    def save(self, *args, **kwargs):
        # identity is immutable once created
        if self.pk:
            orig = Scheme.objects.filter(pk=self.pk).values("organisation_id").first()
            if orig and orig["organisation_id"] != self.organisation_id:
                raise ValidationError("A scheme cannot move to another organisation.")
        return super().save(*args, **kwargs)


# ---------- Lot (unit) ----------
LOT_STATUS = [
    ("active", "Active"),
    ("inactive", "Inactive"),
]


class Lot(models.Model):
    scheme = models.ForeignKey(Scheme, on_delete=models.PROTECT, related_name="lots")
    lot_number = models.CharField(max_length=20)
    unit_number = models.CharField(max_length=20, blank=True, null=True)
    unit_entitlement = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=10, choices=LOT_STATUS, default="active")

    tenant_lookup = "scheme__organisation"
    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["scheme", "lot_number"], name="uq_scheme_lot_number"
            ),
        ]
        ordering = ("scheme", "lot_number")

    def __str__(self):
        return f"{self.scheme.scheme_number} lot {self.lot_number}"

    @property
    def current_ownership(self):
        return self.ownerships.filter(ownership_end_date__isnull=True).first()

    @property
    def current_owner(self):
        ownership = self.current_ownership
        return ownership.owner if ownership else None


class Owner(models.Model):
    organisation = models.ForeignKey(
        Organisation, on_delete=models.PROTECT, related_name="owners"
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(blank=True)

    objects = TenantManager()

    class Meta:
        ordering = ("last_name", "first_name")

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class LotOwnership(models.Model):
    """
    Ownership history of a lot. The row with no end date is the current owner;
    a lot has at most one of those.
    """

    lot = models.ForeignKey(Lot, on_delete=models.CASCADE, related_name="ownerships")
    owner = models.ForeignKey(Owner, on_delete=models.PROTECT, related_name="ownerships")
    ownership_start_date = models.DateField()
    ownership_end_date = models.DateField(null=True, blank=True)

    tenant_lookup = "lot__scheme__organisation"
    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["lot"],
                condition=models.Q(ownership_end_date__isnull=True),
                name="uq_lot_current_ownership",
            ),
            models.CheckConstraint(
                condition=models.Q(ownership_end_date__isnull=True)
                | models.Q(ownership_end_date__gte=models.F("ownership_start_date")),
                name="ownership_end_after_start",
            ),
        ]
        ordering = ("lot", "ownership_start_date")

    def __str__(self):
        end = self.ownership_end_date or "current"
        return f"{self.lot} - {self.owner} ({self.ownership_start_date} to {end})"

    def clean(self):
        if self.owner.organisation_id != self.lot.scheme.organisation_id:
            raise ValidationError("Owner must belong to the same organisation as the lot.")
        if self.ownership_end_date and self.ownership_end_date < self.ownership_start_date:
            raise ValidationError("ownership_end_date must not be before ownership_start_date")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
