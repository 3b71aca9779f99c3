from django.contrib import admin
from trust_core.models import FinancialYear, Lot, Owner, Scheme
from .actions import clear_scheme_opening_balances, rebuild_scheme_snapshots
from .inlines import LotOwnershipInline
from .mixins import TenantAdminMixin


@admin.register(Scheme)
class SchemeAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "scheme_number", "name", "organisation", "created_at")
    list_filter = ("organisation",)
    search_fields = ("scheme_number", "name")
    actions = [clear_scheme_opening_balances, rebuild_scheme_snapshots]

    def get_readonly_fields(self, request, obj=None):
        # a scheme never changes organisation
        if obj is not None:
            return ("organisation",)
        return ()

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Lot)
class LotAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "scheme", "lot_number", "unit_number", "unit_entitlement", "status", "current_owner")
    list_filter = ("scheme", "status")
    search_fields = ("lot_number", "unit_number")
    inlines = [LotOwnershipInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("scheme")


@admin.register(Owner)
class OwnerAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "full_name", "email", "organisation")
    search_fields = ("first_name", "last_name", "email")


@admin.register(FinancialYear)
class FinancialYearAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id", "scheme", "year_label", "start_date", "end_date", "is_current", "is_closed")
    list_filter = ("scheme", "is_current", "is_closed")
    search_fields = ("year_label",)
    # closing and switching years go through the period services
    readonly_fields = ("is_current", "is_closed")
