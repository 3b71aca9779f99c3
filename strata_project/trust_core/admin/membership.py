from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.translation import gettext_lazy as _
from trust_core.models import Organisation, OrganisationMembership, User
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .mixins import TenantAdminMixin


@admin.register(Organisation)
class OrganisationAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "owner", "created_at")
    search_fields = ("name", "slug")
    ordering = ("name",)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        # staff see the organisations they belong to
        return qs.filter(
            memberships__user=request.user, memberships__is_active=True
        ).distinct()


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    add_form = UserAdminCreationForm
    form = UserAdminChangeForm
    model = User

    list_display = (
        "username", "email", "get_full_name", "is_staff", "default_organisation")
    list_filter = ("is_staff", "is_superuser", "is_active")
    search_fields = ("username", "email", "first_name", "last_name")
    ordering = ("username",)

    fieldsets = (
        (None, {"fields": ("username", "password")}),
        (_("Personal info"), {"fields":
                              ("first_name", "last_name", "email", "phone")}),
        (_("Organisation"), {"fields": ("default_organisation",)}),
        (
            _("Permissions"),
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                ),
            },
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "email",
                    "phone",
                    "password1",
                    "password2",
                ),
            },
        ),
    )

    # limit visible users to members of the request.user's organisations
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        allowed = request.user.memberships.values_list("organisation_id", flat=True)
        return qs.filter(memberships__organisation_id__in=allowed).distinct()


@admin.register(OrganisationMembership)
class OrganisationMembershipAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("user", "organisation", "role", "is_active", "created_at")
    list_filter = ("role", "is_active", "organisation")
    search_fields = ("user__username", "user__email", "organisation__name")
    readonly_fields = ("created_at",)
    ordering = ("organisation__name", "user__username")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("organisation", "user")

    def _managed_organisation_ids(self, request):
        return set(
            request.user.memberships.filter(
                role__in=("owner", "admin"), is_active=True
            ).values_list("organisation_id", flat=True)
        )

    # only owners/admins manage memberships
    def has_change_permission(self, request, obj=None):
        if request.user.is_superuser:
            return True
        managed = self._managed_organisation_ids(request)
        if obj is None:
            return bool(managed)
        return obj.organisation_id in managed

    def has_delete_permission(self, request, obj=None):
        return self.has_change_permission(request, obj)

    def has_add_permission(self, request):
        if request.user.is_superuser:
            return True
        return bool(self._managed_organisation_ids(request))
