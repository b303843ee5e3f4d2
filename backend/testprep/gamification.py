from datetime import timedelta

from django.utils import timezone

from .models import LearnerBadge
from .scoring import level_for_xp, next_average

BadgeId = LearnerBadge.BadgeId

BADGE_DETAILS = {
    BadgeId.FIRST_TEST: ('You completed your first test!', '🎉'),
    BadgeId.DAILY_LOGIN: ('Logged in for the first time today.', '☀️'),
    BadgeId.STREAK_3: ('Logged in 3 days in a row.', '🔥'),
    BadgeId.STREAK_7: ('Logged in 7 days in a row.', '🏆'),
    BadgeId.PERFECT_SCORE: ('Achieved a perfect score on a test.', '🎯'),
    BadgeId.LEVEL_5: ('You reached level 5!', '🚀'),
}


def apply_result(learner, score, xp_gained, now=None):
    """Fold one finalized result into the learner's aggregates (in memory).

    The caller holds a row lock on the learner and saves it.
    """
    now = now or timezone.now()
    learner.xp += xp_gained
    learner.level = level_for_xp(learner.xp)
    learner.average_score = next_average(learner.average_score, learner.tests_taken, score)
    learner.tests_taken += 1
    learner.last_test_taken = now
    return learner


def award_badge(learner, badge_id):
    """Unlock a badge once. Returns True when it was newly unlocked."""
    _, created = LearnerBadge.objects.get_or_create(learner=learner, badge_id=badge_id)
    return created


def check_and_award_badges(learner, score):
    """
    Award result-driven badges. Called after the learner aggregates are updated.
    Returns list of newly earned badge ids (for notifications).
    """
    newly_earned = []

    if learner.tests_taken >= 1 and award_badge(learner, BadgeId.FIRST_TEST):
        newly_earned.append(BadgeId.FIRST_TEST.value)

    if score == 100 and award_badge(learner, BadgeId.PERFECT_SCORE):
        newly_earned.append(BadgeId.PERFECT_SCORE.value)

    if learner.level >= 5 and award_badge(learner, BadgeId.LEVEL_5):
        newly_earned.append(BadgeId.LEVEL_5.value)

    return newly_earned


def record_login(learner, now=None):
    """
    Update the daily login streak. A second login on the same calendar day
    changes nothing; a login the day after the previous one extends the
    streak; any longer gap restarts it at 1.
    Returns list of newly earned badge ids.
    """
    now = now or timezone.now()
    today = timezone.localdate(now)
    last = timezone.localdate(learner.last_login) if learner.last_login else None

    if last == today:
        return []

    if last is not None and last == today - timedelta(days=1):
        learner.login_streak += 1
    else:
        learner.login_streak = 1
    learner.last_login = now
    learner.save(update_fields=['login_streak', 'last_login'])

    newly_earned = []
    if award_badge(learner, BadgeId.DAILY_LOGIN):
        newly_earned.append(BadgeId.DAILY_LOGIN.value)
    if learner.login_streak >= 3 and award_badge(learner, BadgeId.STREAK_3):
        newly_earned.append(BadgeId.STREAK_3.value)
    if learner.login_streak >= 7 and award_badge(learner, BadgeId.STREAK_7):
        newly_earned.append(BadgeId.STREAK_7.value)
    return newly_earned
