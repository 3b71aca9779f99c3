from django.contrib import admin
from trust_core.models import OpeningBalance
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


@admin.register(OpeningBalance)
class OpeningBalanceAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "scheme",
        "lot",
        "amount",
        "balance_date",
        "journal_entry",
        "reversal_entry",
        "applied_at",
        "cleared_at",
    )
    list_filter = ("scheme", "balance_date")
    search_fields = ("lot__lot_number",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("scheme", "lot")
