import datetime
import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from ..exceptions import NotFoundError
from ..models import Lot, LotOwnership, Owner
from .audit_helper import log_action
from .validation import to_date

logger = logging.getLogger(__name__)


def transfer_ownership(lot_id, owner_id, start_date, organisation=None, user=None):
    """
    Hand a lot to a new owner from `start_date`.
    The outgoing ownership ends the day before.
    """
    start_date = to_date(start_date, field="start date")

    with transaction.atomic():
        lots = Lot.objects.select_for_update(of=("self",)).select_related("scheme")
        owners = Owner.objects.all()
        if organisation is not None:
            lots = lots.for_organisation(organisation)
            owners = owners.for_organisation(organisation)
        try:
            lot = lots.get(pk=lot_id)
        except (Lot.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Lot {lot_id} not found")
        try:
            owner = owners.get(pk=owner_id)
        except (Owner.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Owner {owner_id} not found")

        current = lot.current_ownership
        if current is not None:
            if current.owner_id == owner.pk:
                raise ValidationError(f"{owner} already owns {lot}")
            if start_date <= current.ownership_start_date:
                raise ValidationError(
                    "New ownership must start after the current one began "
                    f"({current.ownership_start_date})"
                )
            current.ownership_end_date = start_date - datetime.timedelta(days=1)
            current.save()

        ownership = LotOwnership(lot=lot, owner=owner, ownership_start_date=start_date)
        ownership.save()
        log_action(
            action="transfer",
            instance=ownership,
            user=user,
            organisation=lot.scheme.organisation,
            changes={
                "from_owner": current.owner_id if current else None,
                "to_owner": owner.pk,
                "start_date": start_date.isoformat(),
            },
        )

    logger.info("Lot %s transferred to %s from %s", lot, owner, start_date)
    return ownership
