from django.test import SimpleTestCase

from testprep.scoring import (
    compute_score,
    count_correct,
    level_for_xp,
    next_average,
    round_half_up,
    xp_for_score,
)


class TestComputeScore(SimpleTestCase):
    def test_perfect_score(self):
        self.assertEqual(compute_score(10, 10), 100)

    def test_zero_correct(self):
        self.assertEqual(compute_score(0, 10), 0)

    def test_half_correct(self):
        self.assertEqual(compute_score(1, 2), 50)

    def test_no_questions_scores_zero(self):
        self.assertEqual(compute_score(0, 0), 0)

    def test_thirds_round_to_nearest(self):
        self.assertEqual(compute_score(1, 3), 33)
        self.assertEqual(compute_score(2, 3), 67)

    def test_halves_round_up(self):
        # 1/8 = 12.5%
        self.assertEqual(compute_score(1, 8), 13)
        # 5/8 = 62.5%, banker's rounding would give 62
        self.assertEqual(compute_score(5, 8), 63)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(0.5), 1)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(2.4999), 2)


class TestXp(SimpleTestCase):
    def test_tiers(self):
        self.assertEqual(xp_for_score(100), 100)
        self.assertEqual(xp_for_score(80), 100)
        self.assertEqual(xp_for_score(79), 75)
        self.assertEqual(xp_for_score(60), 75)
        self.assertEqual(xp_for_score(59), 50)
        self.assertEqual(xp_for_score(0), 50)


class TestLevels(SimpleTestCase):
    def test_level_boundaries(self):
        self.assertEqual(level_for_xp(0), 1)
        self.assertEqual(level_for_xp(499), 1)
        self.assertEqual(level_for_xp(500), 2)
        self.assertEqual(level_for_xp(999), 2)
        self.assertEqual(level_for_xp(1000), 3)
        self.assertEqual(level_for_xp(2000), 5)


class TestRunningAverage(SimpleTestCase):
    def test_first_score_is_the_average(self):
        self.assertEqual(next_average(0, 0, 72), 72)

    def test_two_scores(self):
        self.assertEqual(next_average(70, 1, 90), 80)

    def test_rounding(self):
        # (80 * 2 + 81) / 3 = 80.33
        self.assertEqual(next_average(80, 2, 81), 80)
        # (50 + 51) / 2 = 50.5
        self.assertEqual(next_average(50, 1, 51), 51)


class TestCountCorrect(SimpleTestCase):
    def test_only_true_counts(self):
        analysis = [{'isCorrect': True}, {'isCorrect': False}, {'isCorrect': 'yes'}, {}]
        self.assertEqual(count_correct(analysis), 1)
