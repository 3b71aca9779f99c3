import logging

from django.db import transaction
from django.db.models import Sum

from ..models import AccountBalanceSnapshot, JournalLine

logger = logging.getLogger(__name__)


# ------------------------------------
# Snapshot update workflows
# ------------------------------------
def update_snapshots_for_entry(entry):
    """Add this entry's lines to the daily snapshot of each touched account."""
    for line in entry.lines.select_related("account"):
        # one row per (scheme, account, day)
        snapshot, _ = AccountBalanceSnapshot.objects.get_or_create(
            scheme=entry.scheme,
            account=line.account,
            snapshot_date=entry.date,
        )
        snapshot.debit_balance += line.debit
        snapshot.credit_balance += line.credit
        snapshot.save()


def rebuild_snapshots(scheme):
    """Drop and recompute a scheme's snapshots from the posted journal."""
    movements = (
        JournalLine.posted.filter(entry__scheme=scheme)
        .values("account_id", "entry__date")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
        .order_by("account_id", "entry__date")
    )
    with transaction.atomic():
        AccountBalanceSnapshot.objects.filter(scheme=scheme).delete()
        rows = [
            AccountBalanceSnapshot(
                scheme=scheme,
                account_id=row["account_id"],
                snapshot_date=row["entry__date"],
                debit_balance=row["debit"] or 0,
                credit_balance=row["credit"] or 0,
            )
            for row in movements
        ]
        AccountBalanceSnapshot.objects.bulk_create(rows)

    logger.info("Rebuilt %d balance snapshots for scheme %s", len(rows), scheme.scheme_number)
    return len(rows)
