import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q

from ..exceptions import NotFoundError
from ..models import Account
from ..models.account import AC_TYPES, FUND_TYPES, account_code_validator
from .audit_helper import log_action
from .lookups import get_scheme

logger = logging.getLogger(__name__)

# upsert_account: leave the stored value alone
UNCHANGED = object()


# Organisation-level default chart, shared by every scheme.
# (code, name, ac_type, fund_type, is_control_account)
DEFAULT_CHART = [
    ("1100", "Trust Account - Administrative Fund", "asset", "admin", False),
    ("1200", "Trust Account - Capital Works Fund", "asset", "capital_works", False),
    ("1300", "Levies Receivable", "asset", None, True),
    ("2100", "Levies Received in Advance", "liability", None, False),
    ("3900", "Opening Balance Equity", "equity", None, False),
    ("4100", "Levy Income - Administrative Fund", "income", "admin", False),
    ("4200", "Levy Income - Capital Works Fund", "income", "capital_works", False),
    ("6100", "Repairs & Maintenance", "expense", "admin", False),
]


# ----------------------------------------------
# Chart of accounts lookups
# ----------------------------------------------
def _scheme_and_default_accounts(scheme):
    return Account.objects.filter(
        Q(scheme=scheme) | Q(scheme__isnull=True),
        organisation_id=scheme.organisation_id,
        is_active=True,
    )


def list_active_accounts(scheme_id, organisation=None, ac_type=None):
    """
    Active accounts a scheme can post to, ordered by code.

    Two-level lookup: organisation defaults first, then scheme accounts,
    which replace a default carrying the same code.
    """
    scheme = get_scheme(scheme_id, organisation)

    resolved = {}
    for account in _scheme_and_default_accounts(scheme).select_related("scheme"):
        current = resolved.get(account.code)
        if current is None or (current.is_default and not account.is_default):
            resolved[account.code] = account

    accounts = [resolved[code] for code in sorted(resolved)]
    if ac_type:
        accounts = [a for a in accounts if a.ac_type == ac_type]
    return accounts


def resolve_account(scheme, code):
    """Active account for `code` as seen by `scheme` (scheme scope wins)."""
    candidates = list(_scheme_and_default_accounts(scheme).filter(code=code))
    for account in candidates:
        if not account.is_default:
            return account
    if candidates:
        return candidates[0]
    raise NotFoundError(
        f"No active account {code} for scheme {scheme.scheme_number}"
    )


# ----------------------------------------------
# Chart of accounts maintenance
# ----------------------------------------------
def upsert_account(
    scheme_id,
    code,
    ac_type,
    is_active=True,
    *,
    name=None,
    organisation=None,
    fund_type=UNCHANGED,
    parent_id=None,
    is_control_account=None,
    account_id=None,
    user=None,
):
    """
    Create (no `account_id`) or update an account.

    `scheme_id=None` targets the organisation defaults and needs `organisation`.
    An active code must be unique within its own scope: the scheme, or the
    organisation defaults. Leaving out `fund_type` on an update keeps the
    stored fund.
    """
    if scheme_id is None:
        if organisation is None:
            raise ValidationError("An organisation is required for default accounts.")
        scheme = None
        org = organisation
    else:
        scheme = get_scheme(scheme_id, organisation)
        org = scheme.organisation

    code = (code or "").strip()
    account_code_validator(code)
    if ac_type not in dict(AC_TYPES):
        raise ValidationError(f"Unknown account type: {ac_type}")
    if fund_type not in (None, UNCHANGED) and fund_type not in dict(FUND_TYPES):
        raise ValidationError(f"Unknown fund type: {fund_type}")

    with transaction.atomic():
        if account_id is not None:
            try:
                account = Account.objects.select_for_update().get(
                    pk=account_id, organisation=org
                )
            except (Account.DoesNotExist, ValueError, TypeError):
                raise NotFoundError(f"Account {account_id} not found")
            if account.is_system:
                raise ValidationError("System accounts cannot be modified")
            if account.scheme_id != (scheme.pk if scheme else None):
                raise ValidationError("Account belongs to a different scope")
            action = "update"
        else:
            account = Account(organisation=org, scheme=scheme)
            action = "create"

        if is_active:
            clash = Account.objects.filter(
                organisation=org, code=code, is_active=True
            )
            clash = clash.filter(scheme=scheme) if scheme else clash.filter(scheme__isnull=True)
            if account.pk:
                clash = clash.exclude(pk=account.pk)
            if clash.exists():
                scope = f"scheme {scheme.scheme_number}" if scheme else "the organisation defaults"
                raise ValidationError(f"Account code {code} is already in use in {scope}")

        if name is not None:
            name = name.strip()
            if len(name) < 2:
                raise ValidationError("Account name must be at least 2 characters")
            account.name = name
        elif not account.pk:
            raise ValidationError("Account name is required")

        if parent_id is not None:
            try:
                account.parent = Account.objects.get(pk=parent_id, organisation=org)
            except (Account.DoesNotExist, ValueError, TypeError):
                raise NotFoundError(f"Parent account {parent_id} not found")

        account.code = code
        account.ac_type = ac_type
        if fund_type is not UNCHANGED:
            account.fund_type = fund_type
        account.is_active = is_active
        if is_control_account is not None:
            account.is_control_account = is_control_account
        account.save()

        log_action(
            action=action,
            instance=account,
            user=user,
            changes={"code": code, "ac_type": ac_type, "is_active": is_active},
        )

    logger.info("Account %s %s (scope=%s)", action, code, scheme or "default")
    return account


def deactivate_account(account_id, organisation=None, user=None):
    """Soft delete: history stays, new postings are refused."""
    qs = Account.objects.all()
    if organisation is not None:
        qs = qs.for_organisation(organisation)
    try:
        account = qs.get(pk=account_id)
    except (Account.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Account {account_id} not found")

    if account.is_system:
        raise ValidationError("System accounts cannot be deleted")
    if not account.is_active:
        return account

    with transaction.atomic():
        account.is_active = False
        account.save()
        log_action(action="deactivate", instance=account, user=user)

    logger.info("Account %s deactivated", account.code)
    return account


def seed_default_accounts(organisation):
    """Create the default chart for an organisation. Existing codes are kept."""
    created = []
    with transaction.atomic():
        for code, name, ac_type, fund_type, control in DEFAULT_CHART:
            exists = Account.objects.filter(
                organisation=organisation, scheme__isnull=True, code=code, is_active=True
            ).exists()
            if exists:
                continue
            account = Account(
                organisation=organisation,
                code=code,
                name=name,
                ac_type=ac_type,
                fund_type=fund_type,
                is_control_account=control,
                is_system=True,
            )
            account.save()
            created.append(account)
    if created:
        logger.info("Seeded %d default accounts for %s", len(created), organisation)
    return created
