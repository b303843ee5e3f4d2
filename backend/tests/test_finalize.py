"""Finalizing a session: grading, persistence and the exactly-once guarantee.

Covers: the end-to-end happy path, aggregate updates, double finalize,
a second finalize arriving while the first is grading, transient grader
fallback, fatal grader failure followed by a retry, persistence failure
rollback, and answers for unknown questions.
"""
from unittest.mock import patch

from django.test import TestCase

from testprep import store
from testprep.exceptions import AlreadyCompleted, GraderFatal, GraderTransient, SessionNotFound
from testprep.finalize import decode_answers, finalize_test
from testprep.grading import LocalGrader
from testprep.models import Learner, LearnerBadge, TestResult, TestSession
from tests.helpers import answers_payload, make_learner, make_session


class FailingGrader:
    name = 'ai'

    def __init__(self, error):
        self.error = error
        self.calls = 0

    def grade(self, questions, answers, test_kind=''):
        self.calls += 1
        raise self.error


class TestFinalizeHappyPath(TestCase):
    def setUp(self):
        self.learner = make_learner()
        self.session = make_session(self.learner, count=2)

    def test_one_of_two_correct(self):
        outcome = finalize_test(
            self.session.id, self.learner, answers_payload({'q1': 0, 'q2': 1}), grader=LocalGrader(),
        )

        result = outcome.result
        self.assertEqual(result.overall_score, 50)
        self.assertEqual(result.xp_gained, 50)
        self.assertEqual(result.graded_by, 'local')
        self.assertEqual(result.session_id, self.session.id)
        self.assertEqual(len(result.question_analysis), 2)
        self.assertTrue(result.question_analysis[0]['isCorrect'])
        self.assertFalse(result.question_analysis[1]['isCorrect'])

        learner = Learner.objects.get(pk=self.learner.pk)
        self.assertEqual(learner.xp, 50)
        self.assertEqual(learner.level, 1)
        self.assertEqual(learner.tests_taken, 1)
        self.assertEqual(learner.average_score, 50)
        self.assertIsNotNone(learner.last_test_taken)

    def test_session_is_deleted(self):
        finalize_test(self.session.id, self.learner, [], grader=LocalGrader())
        self.assertFalse(TestSession.objects.filter(id=self.session.id).exists())

    def test_first_test_badge(self):
        outcome = finalize_test(self.session.id, self.learner, [], grader=LocalGrader())
        self.assertIn('first_test', outcome.badges)
        self.assertTrue(LearnerBadge.objects.filter(learner=self.learner, badge_id='first_test').exists())

    def test_perfect_score_badge(self):
        outcome = finalize_test(
            self.session.id, self.learner, answers_payload({'q1': 0, 'q2': 0}), grader=LocalGrader(),
        )
        self.assertEqual(outcome.result.overall_score, 100)
        self.assertEqual(outcome.result.xp_gained, 100)
        self.assertIn('perfect_score', outcome.badges)

    def test_average_over_two_tests(self):
        finalize_test(
            self.session.id, self.learner, answers_payload({'q1': 0, 'q2': 0}), grader=LocalGrader(),
        )
        second = make_session(self.learner, count=2)
        finalize_test(second.id, self.learner, answers_payload({'q1': 0}), grader=LocalGrader())

        learner = Learner.objects.get(pk=self.learner.pk)
        self.assertEqual(learner.tests_taken, 2)
        self.assertEqual(learner.average_score, 75)
        self.assertEqual(learner.xp, 150)

    def test_level_up(self):
        Learner.objects.filter(pk=self.learner.pk).update(xp=450)
        finalize_test(self.session.id, self.learner, [], grader=LocalGrader())
        learner = Learner.objects.get(pk=self.learner.pk)
        self.assertEqual(learner.xp, 500)
        self.assertEqual(learner.level, 2)

    def test_empty_answers_score_zero(self):
        outcome = finalize_test(self.session.id, self.learner, [], grader=LocalGrader())
        self.assertEqual(outcome.result.overall_score, 0)
        self.assertEqual(outcome.result.question_analysis[0]['userAnswer'], 'Not answered')

    def test_unknown_question_ids_are_ignored(self):
        outcome = finalize_test(
            self.session.id, self.learner, answers_payload({'q1': 0, 'nope': 0}), grader=LocalGrader(),
        )
        self.assertEqual(outcome.result.answers, [{'questionId': 'q1', 'answerIndex': 0}])


class TestFinalizeExactlyOnce(TestCase):
    def setUp(self):
        self.learner = make_learner()
        self.session = make_session(self.learner, count=2)

    def test_double_finalize(self):
        finalize_test(self.session.id, self.learner, [], grader=LocalGrader())
        with self.assertRaises(AlreadyCompleted):
            finalize_test(self.session.id, self.learner, [], grader=LocalGrader())

        self.assertEqual(TestResult.objects.filter(owner=self.learner).count(), 1)
        learner = Learner.objects.get(pk=self.learner.pk)
        self.assertEqual(learner.tests_taken, 1)
        self.assertEqual(learner.xp, 50)

    def test_second_finalize_while_first_is_grading(self):
        learner = self.learner
        session_id = self.session.id
        seen = {}

        class ReentrantGrader(LocalGrader):
            def grade(self, questions, answers, test_kind=''):
                try:
                    finalize_test(session_id, learner, [], grader=LocalGrader())
                except AlreadyCompleted as e:
                    seen['error'] = e
                return super().grade(questions, answers, test_kind)

        outcome = finalize_test(
            session_id, learner, answers_payload({'q1': 0, 'q2': 0}), grader=ReentrantGrader(),
        )

        self.assertIsInstance(seen['error'], AlreadyCompleted)
        self.assertEqual(outcome.result.overall_score, 100)
        self.assertEqual(TestResult.objects.filter(owner=learner).count(), 1)
        self.assertEqual(Learner.objects.get(pk=learner.pk).tests_taken, 1)

    def test_claimed_session_rejects_finalize(self):
        store.finalize_session(self.session.id, self.learner, {})
        with self.assertRaises(AlreadyCompleted):
            finalize_test(self.session.id, self.learner, [], grader=LocalGrader())

    def test_other_learner_cannot_finalize(self):
        intruder = make_learner(full_name="Intruder")
        with self.assertRaises(SessionNotFound):
            finalize_test(self.session.id, intruder, [], grader=LocalGrader())
        self.session.refresh_from_db()
        self.assertFalse(self.session.completed)


class TestFinalizeFailures(TestCase):
    def setUp(self):
        self.learner = make_learner()
        self.session = make_session(self.learner, count=2)

    def test_transient_failure_falls_back_to_local(self):
        grader = FailingGrader(GraderTransient('quota exceeded'))
        with self.assertLogs('testprep.grading', level='WARNING'):
            outcome = finalize_test(
                self.session.id, self.learner, answers_payload({'q1': 0}), grader=grader,
            )
        self.assertEqual(grader.calls, 1)
        self.assertEqual(outcome.result.graded_by, 'local')
        self.assertEqual(outcome.result.overall_score, 50)

    def test_fatal_failure_releases_the_session(self):
        grader = FailingGrader(ValueError('The AI returned malformed JSON.'))
        with self.assertLogs('testprep', level='ERROR'):
            with self.assertRaises(GraderFatal):
                finalize_test(self.session.id, self.learner, answers_payload({'q1': 0}), grader=grader)

        self.session.refresh_from_db()
        self.assertFalse(self.session.completed)
        self.assertFalse(TestResult.objects.exists())
        learner = Learner.objects.get(pk=self.learner.pk)
        self.assertEqual(learner.xp, 0)
        self.assertEqual(learner.tests_taken, 0)

    def test_retry_after_fatal_failure(self):
        with self.assertLogs('testprep', level='ERROR'):
            with self.assertRaises(GraderFatal):
                finalize_test(self.session.id, self.learner, [], grader=FailingGrader(KeyError('x')))

        outcome = finalize_test(
            self.session.id, self.learner, answers_payload({'q1': 0, 'q2': 0}), grader=LocalGrader(),
        )
        self.assertEqual(outcome.result.overall_score, 100)
        self.assertEqual(Learner.objects.get(pk=self.learner.pk).tests_taken, 1)

    def test_persistence_failure_rolls_back(self):
        with patch('testprep.finalize.check_and_award_badges', side_effect=RuntimeError('db down')):
            with self.assertLogs('testprep.store', level='WARNING'):
                with self.assertRaises(RuntimeError):
                    finalize_test(self.session.id, self.learner, [], grader=LocalGrader())

        self.assertFalse(TestResult.objects.exists())
        learner = Learner.objects.get(pk=self.learner.pk)
        self.assertEqual(learner.xp, 0)
        self.assertEqual(learner.tests_taken, 0)
        self.session.refresh_from_db()
        self.assertFalse(self.session.completed)

        outcome = finalize_test(self.session.id, self.learner, [], grader=LocalGrader())
        self.assertEqual(outcome.result.session_id, self.session.id)

    def test_deleted_learner_takes_its_sessions_along(self):
        self.learner.user.delete()
        with self.assertRaises(SessionNotFound):
            finalize_test(self.session.id, self.learner, [], grader=LocalGrader())


class TestDecodeAnswers(TestCase):
    def test_later_answer_wins(self):
        questions = [{'id': 'q1'}, {'id': 'q2'}]
        raw = [
            {'questionId': 'q1', 'answerIndex': 0},
            {'questionId': 'q1', 'answerIndex': 2},
            {'questionId': 'zzz', 'answerIndex': 1},
        ]
        self.assertEqual(decode_answers(raw, questions), {'q1': 2})

    def test_none(self):
        self.assertEqual(decode_answers(None, [{'id': 'q1'}]), {})
