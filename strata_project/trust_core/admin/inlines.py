from django.contrib import admin

from trust_core.models import JournalLine, LotOwnership

# ---------- Inline admin classes ----------


class JournalLineInline(admin.TabularInline):
    """JournalLine rows on the JournalEntry page. Lines are written by the ledger services only."""

    model = JournalLine
    extra = 0
    fields = ("account", "lot", "description", "debit", "credit")
    readonly_fields = fields
    ordering = ("id",)  # lines appear in creation order
    can_delete = False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("account", "lot")

    def has_add_permission(self, request, obj=None):
        return False


class LotOwnershipInline(admin.TabularInline):
    """Ownership history under a Lot. Transfers go through the ownership service."""

    model = LotOwnership
    extra = 0
    fields = ("owner", "ownership_start_date", "ownership_end_date")
    readonly_fields = fields
    can_delete = False
    ordering = ("ownership_start_date",)

    def has_add_permission(self, request, obj=None):
        return False
