from django.contrib import admin
from django.core.exceptions import PermissionDenied

"""Base admin for ledger-derived rows: viewable, never editable from the admin."""
class ReadOnlyAdmin(admin.ModelAdmin):
    list_per_page = 50

    # make every model field readonly
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # the change page doubles as the detail view; fields are readonly
    def has_change_permission(self, request, obj=None):
        return True

    def save_model(self, request, obj, form, change):
        raise PermissionDenied("Rows cannot be changed via the admin.")

    # Disable delete_selected; subclasses list their own actions
    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    # ledger rows are browsed per scheme; fall back to that when no filters are set
    def get_list_filter(self, request):
        if self.list_filter:
            return self.list_filter
        names = {f.name for f in self.model._meta.fields}
        return tuple(n for n in ("scheme", "status", "reference_type") if n in names)
