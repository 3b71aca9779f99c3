class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.organisation (set by CurrentOrganisationMiddleware)
    or falls back to request.user.default_organisation.
    """

    def _get_request_organisation(self, request):
        organisation = getattr(request, "organisation", None)
        if organisation is None:
            user = getattr(request, "user", None)
            organisation = getattr(user, "default_organisation", None)
        return organisation

    def _tenant_lookup(self, model=None):
        # scheme-scoped models declare their path to the organisation
        return getattr(model or self.model, "tenant_lookup", "organisation")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # superusers see everything
        if request.user.is_superuser:
            return qs
        organisation = self._get_request_organisation(request)
        if organisation is None:
            return qs.none()
        return qs.filter(**{self._tenant_lookup(): organisation})

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """
        Restrict foreignkey dropdowns to the current organisation:
        the organisation itself, schemes, lots, owners and accounts.
        """
        rel_model = getattr(db_field, "related_model", None)
        if rel_model is not None and not request.user.is_superuser:
            organisation = self._get_request_organisation(request)
            if db_field.name == "organisation":
                qs = rel_model.objects.filter(pk=organisation.pk) if organisation else None
            elif hasattr(rel_model, "tenant_lookup") or any(
                f.name == "organisation" for f in rel_model._meta.fields
            ):
                lookup = self._tenant_lookup(rel_model)
                qs = rel_model.objects.filter(**{lookup: organisation}) if organisation else None
            else:
                return super().formfield_for_foreignkey(db_field, request, **kwargs)
            kwargs["queryset"] = qs if qs is not None else rel_model.objects.none()

        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # organisation-owned rows always belong to the request's organisation
        if not request.user.is_superuser and self._tenant_lookup() == "organisation":
            organisation = self._get_request_organisation(request)
            if organisation is not None and hasattr(obj, "organisation_id"):
                obj.organisation = organisation
        super().save_model(request, obj, form, change)
