from django.utils.deprecation import MiddlewareMixin

from .models import Organisation


class CurrentOrganisationMiddleware(MiddlewareMixin):
    # Run on every request and attach a .organisation attribute
    # to the request, based on the logged-in user
    def process_request(self, request):
        request.organisation = None
        if not request.user.is_authenticated:
            return

        # If user switched organisations,
        # choice is stored in the session as "active_organisation_id";
        # otherwise fall back to the user's default organisation
        organisation_id = request.session.get("active_organisation_id")
        if not organisation_id:
            organisation_id = request.user.default_organisation_id
        if not organisation_id:
            return

        # user must hold an active membership of that organisation,
        # so a tampered session or a revoked member can't reach tenant data
        request.organisation = Organisation.objects.filter(
            id=organisation_id,
            memberships__user=request.user,
            memberships__is_active=True,
        ).first()
