import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def recompute_balance_snapshots(scheme_id):
    """Rebuild a scheme's daily balance snapshots from the posted journal."""
    # import lazily to avoid circular imports at module import time
    from .exceptions import NotFoundError
    from .services.lookups import get_scheme
    from .services.snapshots import rebuild_snapshots

    try:
        scheme = get_scheme(scheme_id)
    except NotFoundError:
        logger.warning("Snapshot rebuild skipped: scheme %s no longer exists", scheme_id)
        return 0
    return rebuild_snapshots(scheme)
