import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


@shared_task(
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    max_retries=3,
)
def purge_abandoned_sessions():
    """Delete never-submitted sessions and reopen claims left behind by a crashed finalize."""
    from . import store

    max_age = timedelta(hours=settings.ABANDONED_SESSION_HOURS)
    purged = store.purge_abandoned_sessions(max_age)
    released = store.release_stale_claims(max_age)

    logger.info('Purged %d abandoned sessions, released %d stale claims', purged, released)
    return {'purged': purged, 'released': released}
