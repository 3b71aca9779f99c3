from decimal import Decimal
from django.contrib import admin
from django.utils.html import format_html
from .inlines import JournalLineInline
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin
from trust_core.models import JournalEntry


@admin.register(JournalEntry)
class JournalEntryAdmin(TenantAdminMixin, ReadOnlyAdmin):
    """The posted ledger is append-only: browse here, correct by reversal."""

    list_display = (
        "id",
        "scheme",
        "date",
        "reference_type",
        "reference_id",
        "status",
        "posted_at",
        "created_by",
        "balanced",
    )
    list_filter = ("status", "reference_type", "date")
    search_fields = ("reference_id", "description", "id")
    inlines = [JournalLineInline]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("scheme", "created_by").prefetch_related("lines")

    """ Computed column for balance check """
    def balanced(self, obj):
        d, c = obj.compute_totals()
        return format_html(
            "<b>{}</b> / <small>{}</small>",
            d or Decimal("0.00"),
            c or Decimal("0.00")
        )

    balanced.short_description = "Debits / Credits"
