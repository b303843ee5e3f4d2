import uuid
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from testprep import store
from testprep.exceptions import AlreadyCompleted, SessionNotFound
from testprep.models import TestResult, TestSession
from tests.helpers import make_learner, make_session


class TestGetSession(TestCase):
    def setUp(self):
        self.learner = make_learner()

    def test_owner_can_load(self):
        session = make_session(self.learner)
        self.assertEqual(store.get_session(session.id, self.learner).id, session.id)

    def test_unknown_id(self):
        with self.assertRaises(SessionNotFound):
            store.get_session(uuid.uuid4(), self.learner)

    def test_other_owner_gets_not_found(self):
        session = make_session(self.learner)
        intruder = make_learner(full_name="Intruder")
        with self.assertRaises(SessionNotFound):
            store.get_session(session.id, intruder)

    def test_session_turned_into_result_is_already_completed(self):
        session = make_session(self.learner)
        session_id = session.id
        TestResult.objects.create(
            owner=self.learner, session_id=session_id, test_kind=session.test_kind,
            taken_at=timezone.now(), overall_score=50, summary='ok',
        )
        session.delete()
        with self.assertRaises(AlreadyCompleted):
            store.get_session(session_id, self.learner)
        with self.assertRaises(AlreadyCompleted):
            store.finalize_session(session_id, self.learner, {})


class TestFinalizeSession(TestCase):
    def setUp(self):
        self.learner = make_learner()
        self.session = make_session(self.learner)

    def test_claim_records_answers(self):
        claimed = store.finalize_session(self.session.id, self.learner, {'q1': 0})
        self.assertTrue(claimed.completed)
        self.assertEqual(claimed.answers, {'q1': 0})
        self.assertIsNotNone(claimed.claimed_at)

    def test_second_claim_loses(self):
        store.finalize_session(self.session.id, self.learner, {'q1': 0})
        with self.assertRaises(AlreadyCompleted):
            store.finalize_session(self.session.id, self.learner, {'q1': 1})
        self.session.refresh_from_db()
        self.assertEqual(self.session.answers, {'q1': 0})

    def test_claim_by_non_owner(self):
        intruder = make_learner(full_name="Intruder")
        with self.assertRaises(SessionNotFound):
            store.finalize_session(self.session.id, intruder, {})
        self.session.refresh_from_db()
        self.assertFalse(self.session.completed)

    def test_release_reopens_the_session(self):
        claimed = store.finalize_session(self.session.id, self.learner, {'q1': 0})
        with self.assertLogs('testprep.store', level='WARNING'):
            self.assertTrue(store.release_session(claimed))
        self.session.refresh_from_db()
        self.assertFalse(self.session.completed)
        self.assertEqual(self.session.answers, {})
        self.assertIsNone(self.session.claimed_at)

    def test_release_of_open_session_is_noop(self):
        self.assertFalse(store.release_session(self.session))


class TestHousekeeping(TestCase):
    def setUp(self):
        self.learner = make_learner()

    def _age(self, session, hours):
        TestSession.objects.filter(id=session.id).update(created_at=timezone.now() - timedelta(hours=hours))

    def test_purge_only_old_open_sessions(self):
        old = make_session(self.learner)
        fresh = make_session(self.learner)
        old_claimed = make_session(self.learner)
        self._age(old, 30)
        self._age(old_claimed, 30)
        store.finalize_session(old_claimed.id, self.learner, {})

        deleted = store.purge_abandoned_sessions(timedelta(hours=24))

        self.assertEqual(deleted, 1)
        self.assertFalse(TestSession.objects.filter(id=old.id).exists())
        self.assertTrue(TestSession.objects.filter(id=fresh.id).exists())
        self.assertTrue(TestSession.objects.filter(id=old_claimed.id).exists())

    def test_release_stale_claims(self):
        session = make_session(self.learner)
        store.finalize_session(session.id, self.learner, {'q1': 0})
        TestSession.objects.filter(id=session.id).update(claimed_at=timezone.now() - timedelta(hours=30))
        recent = make_session(self.learner)
        store.finalize_session(recent.id, self.learner, {})

        with self.assertLogs('testprep.store', level='WARNING'):
            released = store.release_stale_claims(timedelta(hours=24))

        self.assertEqual(released, 1)
        session.refresh_from_db()
        recent.refresh_from_db()
        self.assertFalse(session.completed)
        self.assertTrue(recent.completed)
