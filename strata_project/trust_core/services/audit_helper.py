import logging

from ..models import AuditLog

logger = logging.getLogger(__name__)


def _organisation_of(instance):
    # scheme-scoped rows (lots, years, opening balances) reach it via the scheme
    organisation = getattr(instance, "organisation", None)
    if organisation is None and getattr(instance, "scheme", None) is not None:
        organisation = instance.scheme.organisation
    return organisation


def log_action(*, action, instance, user=None, organisation=None, changes=None):
    """
    Record a ledger or registry event in the AuditLog table.
    Runs inside the caller's transaction, so a rolled-back write leaves no trail.
    """
    organisation = organisation or _organisation_of(instance)
    if user is not None and not user.is_authenticated:
        user = None

    entry = AuditLog.objects.create(
        organisation=organisation,
        user=user,
        action=action,
        object_type=instance._meta.model_name,
        object_id=str(instance.pk),
        changes=changes,
    )
    logger.debug("audit %s %s(%s)", action, entry.object_type, entry.object_id)
    return entry
