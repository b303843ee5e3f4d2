import math

XP_PER_LEVEL = 500

# (minimum score, xp awarded), checked top-down
_XP_TIERS = [
    (80, 100),
    (60, 75),
]
XP_BASE = 50


def round_half_up(value):
    """Round to the nearest integer with halves going up (0.5 -> 1, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def compute_score(correct_count, total_questions):
    """Percentage score 0-100. A test with no questions scores 0."""
    if total_questions <= 0:
        return 0
    return round_half_up(correct_count / total_questions * 100)


def xp_for_score(score):
    for threshold, xp in _XP_TIERS:
        if score >= threshold:
            return xp
    return XP_BASE


def level_for_xp(xp):
    return xp // XP_PER_LEVEL + 1


def next_average(old_average, old_count, new_score):
    """Running mean after one more score: round((avg*n + score) / (n+1))."""
    return round_half_up((old_average * old_count + new_score) / (old_count + 1))


def count_correct(question_analysis):
    return sum(1 for item in question_analysis if item.get('isCorrect') is True)
