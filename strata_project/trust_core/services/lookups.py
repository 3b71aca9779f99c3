from ..exceptions import NotFoundError
from ..models import Account, Lot, Scheme

""" Scheme scoping is re-checked here on every service call,
    whatever the caller (view, admin, task) already filtered. """


def _pk(value):
    return value.pk if hasattr(value, "pk") else value


def get_scheme(scheme_id, organisation=None, *, for_update=False):
    qs = Scheme.objects.select_related("organisation")
    if organisation is not None:
        qs = qs.for_organisation(organisation)
    if for_update:
        # scheme row is the write lock for its ledger
        qs = qs.select_for_update(of=("self",))
    try:
        return qs.get(pk=_pk(scheme_id))
    except (Scheme.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Scheme {_pk(scheme_id)} not found")


def get_lot(scheme, lot_id):
    try:
        return Lot.objects.get(pk=_pk(lot_id), scheme=scheme)
    except (Lot.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Lot {_pk(lot_id)} not found in scheme {scheme.scheme_number}")


def get_account_for_scheme(scheme, account_id):
    """Any account (active or not) that postings of `scheme` may reference."""
    try:
        account = Account.objects.get(pk=_pk(account_id), organisation_id=scheme.organisation_id)
    except (Account.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Account {_pk(account_id)} not found")
    if not account.is_available_to(scheme):
        raise NotFoundError(f"Account {account.code} not found in scheme {scheme.scheme_number}")
    return account
