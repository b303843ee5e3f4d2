"""Persistence for in-progress test sessions.

A session is claimed by ``finalize_session`` through a conditional UPDATE
(``completed`` False -> True). The database executes that statement
atomically, so exactly one of any number of concurrent finalize requests for
the same session wins, whether they run in one process or many.
"""
import logging

from django.utils import timezone

from .exceptions import AlreadyCompleted, SessionNotFound
from .models import TestResult, TestSession

logger = logging.getLogger(__name__)


def create_session(owner, test_kind, questions, is_diagnostic=False, is_adaptive=False, topic=''):
    return TestSession.objects.create(
        owner=owner,
        test_kind=test_kind,
        questions=questions,
        answers={},
        is_diagnostic=is_diagnostic,
        is_adaptive=is_adaptive,
        topic=topic or '',
        completed=False,
    )


def _raise_missing(session_id, owner):
    if TestResult.objects.filter(session_id=session_id, owner=owner).exists():
        raise AlreadyCompleted()
    raise SessionNotFound()


def get_session(session_id, owner):
    """Load an owned session. A session already turned into a result is AlreadyCompleted."""
    try:
        return TestSession.objects.get(id=session_id, owner=owner)
    except TestSession.DoesNotExist:
        _raise_missing(session_id, owner)


def finalize_session(session_id, owner, answers):
    """Record answers and mark the session completed, exactly once.

    Raises SessionNotFound when the session is missing or belongs to someone
    else, AlreadyCompleted when it was claimed before or has already been
    turned into a result and deleted.
    """
    claimed = (
        TestSession.objects
        .filter(id=session_id, owner=owner, completed=False)
        .update(completed=True, answers=answers, claimed_at=timezone.now())
    )
    if not claimed:
        if TestSession.objects.filter(id=session_id, owner=owner).exists():
            raise AlreadyCompleted()
        _raise_missing(session_id, owner)

    return TestSession.objects.get(id=session_id)


def release_session(session):
    """Undo a claim after a failure that left no result behind."""
    released = (
        TestSession.objects
        .filter(id=session.id, completed=True)
        .update(completed=False, answers={}, claimed_at=None)
    )
    if released:
        logger.warning('Released claim on session %s', session.id)
    return bool(released)


def delete_session(session):
    TestSession.objects.filter(id=session.id).delete()


def purge_abandoned_sessions(max_age):
    """Delete sessions that were started but never submitted within *max_age*."""
    cutoff = timezone.now() - max_age
    deleted, _ = TestSession.objects.filter(completed=False, created_at__lt=cutoff).delete()
    return deleted


def release_stale_claims(max_age):
    """Reopen sessions left claimed by a finalize that died before writing a result.

    The result write and the session delete share one transaction, so a
    claimed session that still exists never has a result.
    """
    cutoff = timezone.now() - max_age
    stale = list(
        TestSession.objects
        .filter(completed=True, claimed_at__lt=cutoff)
        .values_list('id', flat=True)
    )
    for session_id in stale:
        logger.warning('Session %s was claimed but never finalized', session_id)
    if not stale:
        return 0
    return (
        TestSession.objects
        .filter(id__in=stale, completed=True)
        .update(completed=False, answers={}, claimed_at=None)
    )
