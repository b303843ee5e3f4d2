"""Turn an open session plus submitted answers into a result, exactly once.

Ordering:

1. The session is claimed (answers recorded, ``completed`` set) by a single
   conditional UPDATE before grading. A duplicate or concurrent request loses
   the claim and gets AlreadyCompleted, so grading never runs twice for the
   same attempt.
2. Grading runs outside any lock. Transient AI failures fall back to local
   grading; fatal ones abort.
3. The result, the learner aggregates (row-locked), badges and the session
   delete commit in one transaction.

Any failure after the claim rolls back step 3 and releases the claim, so the
client can retry the whole call and no XP has been awarded.
"""
import logging
from collections import namedtuple

from django.db import transaction
from django.utils import timezone

from . import grading, store
from .exceptions import AlreadyCompleted, LearnerNotFound
from .gamification import apply_result, check_and_award_badges
from .models import Learner, TestResult
from .scoring import compute_score, count_correct, xp_for_score

logger = logging.getLogger(__name__)

FinalizeOutcome = namedtuple('FinalizeOutcome', ['result', 'learner', 'badges'])


def decode_answers(raw_answers, questions):
    """Submitted ``[{questionId, answerIndex}]`` -> ``{questionId: answerIndex}``.

    Answers to questions outside the session are dropped; a later answer to
    the same question overrides an earlier one.
    """
    known = {q['id'] for q in questions}
    answers = {}
    for item in raw_answers or []:
        question_id = str(item.get('questionId'))
        if question_id in known:
            answers[question_id] = item.get('answerIndex')
    return answers


def finalize_test(session_id, owner, raw_answers, grader=None):
    session = store.get_session(session_id, owner)
    if session.completed:
        raise AlreadyCompleted()

    if not Learner.objects.filter(pk=owner.pk).exists():
        raise LearnerNotFound()

    answers = decode_answers(raw_answers, session.questions)
    session = store.finalize_session(session.id, owner, answers)

    try:
        analysis, graded_by = grading.grade_with_fallback(
            session.questions, answers, session.test_kind, grader=grader,
        )
        outcome = _persist(session, owner, answers, analysis, graded_by)
    except Exception:
        store.release_session(session)
        raise

    logger.info(
        'Finalized session %s for learner %s: score=%d xp=%d graded_by=%s',
        session.id, owner.pk, outcome.result.overall_score, outcome.result.xp_gained, graded_by,
    )
    return outcome


def _persist(session, owner, answers, analysis, graded_by):
    question_analysis = analysis['questionAnalysis']
    score = compute_score(count_correct(question_analysis), len(session.questions))
    xp_gained = xp_for_score(score)
    now = timezone.now()

    with transaction.atomic():
        try:
            learner = Learner.objects.select_for_update().get(pk=owner.pk)
        except Learner.DoesNotExist:
            raise LearnerNotFound()

        result = TestResult.objects.create(
            owner=learner,
            session_id=session.id,
            test_kind=session.test_kind,
            is_diagnostic=session.is_diagnostic,
            taken_at=now,
            overall_score=score,
            summary=analysis['summary'],
            answers=[
                {'questionId': question_id, 'answerIndex': index}
                for question_id, index in answers.items()
            ],
            questions=session.questions,
            question_analysis=question_analysis,
            topic_performance=analysis['topicPerformance'],
            xp_gained=xp_gained,
            graded_by=graded_by,
        )

        apply_result(learner, score, xp_gained, now)
        learner.save(update_fields=['xp', 'level', 'average_score', 'tests_taken', 'last_test_taken'])
        badges = check_and_award_badges(learner, score)

        store.delete_session(session)

    return FinalizeOutcome(result=result, learner=learner, badges=badges)
