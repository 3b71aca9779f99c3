from django.utils.text import slugify

from trust_core.models import Lot, Organisation, OrganisationMembership, Scheme, User
from trust_core.services import resolve_account, seed_default_accounts


def make_tenant(name="Harbour Strata", username="manager"):
    """Organisation with one staff member and the seeded default chart."""
    user = User.objects.create_user(username=username, password="pw")
    organisation = Organisation.objects.create(name=name, slug=slugify(name), owner=user)
    OrganisationMembership.objects.create(user=user, organisation=organisation, role="manager")
    user.default_organisation = organisation
    user.save()
    seed_default_accounts(organisation)
    return organisation, user


def make_scheme(organisation, scheme_number="SP100", lots=3):
    scheme = Scheme.objects.create(
        organisation=organisation, scheme_number=scheme_number, name=f"{scheme_number} Apartments"
    )
    created = [
        Lot.objects.create(scheme=scheme, lot_number=str(n), unit_number=f"{n}0{n}")
        for n in range(1, lots + 1)
    ]
    return scheme, created


def account(scheme, code):
    return resolve_account(scheme, code)


def levy_postings(scheme, amount, lot=None):
    """Debit the admin trust account, credit admin levy income."""
    return [
        {"account_id": account(scheme, "1100").pk, "debit": amount},
        {
            "account_id": account(scheme, "4100").pk,
            "credit": amount,
            "lot_id": lot.pk if lot else None,
        },
    ]
