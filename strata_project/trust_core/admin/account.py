from django.contrib import admin
from trust_core.models import Account, AccountBalanceSnapshot
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


@admin.register(Account)
class AccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "organisation",
        "scheme",
        "code",
        "name",
        "ac_type",
        "normal_balance",
        "fund_type",
        "is_system",
        "is_active",
    )
    list_filter = ("organisation", "ac_type", "fund_type", "is_active", "is_system")
    search_fields = ("code", "name")
    # defaults first, then per scheme, sorted by code
    ordering = ("organisation", "scheme", "code")
    fieldsets = (
        (
            None,
            {
                "fields": (
                    "organisation",
                    "scheme",
                    "code",
                    "name",
                    "ac_type",
                    "normal_balance",
                    "fund_type",
                    "parent",
                    "is_control_account",
                    "is_active",
                )
            },
        ),
    )
    readonly_fields = ("normal_balance",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("organisation", "scheme")

    # system accounts are read-only
    def has_change_permission(self, request, obj=None):
        if obj is not None and obj.is_system:
            return False
        return super().has_change_permission(request, obj)

    # accounts are deactivated, not deleted
    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AccountBalanceSnapshot)
class AccountBalanceSnapshotAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "scheme",
        "account",
        "snapshot_date",
        "debit_balance",
        "credit_balance",
    )
    search_fields = ("account__code", "account__name")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("scheme", "account")
