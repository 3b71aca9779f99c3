from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models
from ..managers import TenantManager
from .scheme import Scheme


# ---------- Financial year (accounting period) ----------
class FinancialYear(models.Model):
    """
    Time bucket of a scheme's ledger. Once is_closed is set,
    no new postings may be dated inside it.
    """

    scheme = models.ForeignKey(
        Scheme,
        # journal entries point at financial years
        on_delete=models.PROTECT,
        related_name="financial_years",
    )
    year_label = models.CharField(
        max_length=20,
        validators=[
            RegexValidator(r"^\d{4}/\d{2}$", 'Year label must be in format "2025/26"')
        ],
    )
    start_date = models.DateField()
    end_date = models.DateField()
    is_current = models.BooleanField(default=False)
    is_closed = models.BooleanField(default=False)

    tenant_lookup = "scheme__organisation"
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["scheme", "start_date"], name="fy_scheme_start_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["scheme", "year_label"], name="uq_scheme_year_label"
            ),
            models.UniqueConstraint(
                fields=["scheme"],
                condition=models.Q(is_current=True),
                name="uq_scheme_current_year",
            ),
        ]
        ordering = ("scheme", "start_date")

    def __str__(self):
        return f"{self.scheme.scheme_number} FY{self.year_label}"

    def contains(self, date):
        return self.start_date <= date <= self.end_date

    def clean(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError("start_date must be before end_date")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
