import uuid

from django.contrib.auth.models import User
from django.db import models


class TestKind(models.TextChoices):
    SAT_DIAGNOSTIC = 'SAT Diagnostic', 'SAT Diagnostic'
    ACT_DIAGNOSTIC = 'ACT Diagnostic', 'ACT Diagnostic'
    AP_DIAGNOSTIC = 'AP Diagnostic', 'AP Diagnostic'
    SAT_MATH = 'SAT Math', 'SAT Math'
    SAT_RW = 'SAT Reading & Writing', 'SAT Reading & Writing'
    SAT_ALGEBRA = 'SAT Algebra', 'SAT Algebra'
    SAT_GEOMETRY = 'SAT Geometry', 'SAT Geometry'
    ACT_MATH = 'ACT Math', 'ACT Math'
    ACT_SCIENCE = 'ACT Science', 'ACT Science'
    ACT_READING = 'ACT Reading', 'ACT Reading'
    ACT_ENGLISH = 'ACT English', 'ACT English'
    AP_CALC_AB = 'AP Calculus AB', 'AP Calculus AB'
    AP_USH = 'AP US History', 'AP US History'
    AP_BIOLOGY = 'AP Biology', 'AP Biology'
    AP_CHEMISTRY = 'AP Chemistry', 'AP Chemistry'
    AP_PHYSICS_1 = 'AP Physics 1', 'AP Physics 1'
    ADAPTIVE_SAT_MATH = 'Adaptive SAT Math', 'Adaptive SAT Math'
    ADAPTIVE_ACT_MATH = 'Adaptive ACT Math', 'Adaptive ACT Math'
    DAILY_QUIZ = 'Daily Quiz', 'Daily Quiz'
    CONCEPT_CHECK_QUIZ = 'Concept Check Quiz', 'Concept Check Quiz'
    SAT_MATH_MOCK = 'SAT Math Mock', 'SAT Math Mock'
    SAT_RW_MOCK = 'SAT Reading & Writing Mock', 'SAT Reading & Writing Mock'
    ACT_MATH_MOCK = 'ACT Math Mock', 'ACT Math Mock'
    ACT_SCIENCE_MOCK = 'ACT Science Mock', 'ACT Science Mock'
    AP_BIOLOGY_MOCK = 'AP Biology Mock', 'AP Biology Mock'


def exam_for_kind(test_kind):
    """Exam family (SAT/ACT/AP) a test kind belongs to, or None for cross-exam quizzes."""
    for exam in ('SAT', 'ACT', 'AP'):
        if exam in test_kind.split():
            return exam
    return None


class Learner(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='learner')
    full_name = models.CharField(max_length=255)
    xp = models.PositiveIntegerField(default=0)
    level = models.PositiveIntegerField(default=1)
    tests_taken = models.PositiveIntegerField(default=0)
    average_score = models.PositiveIntegerField(default=0)
    last_test_taken = models.DateTimeField(null=True, blank=True)
    login_streak = models.PositiveIntegerField(default=0)
    last_login = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.full_name

    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False


class LearnerBadge(models.Model):
    class BadgeId(models.TextChoices):
        FIRST_TEST = 'first_test', 'First Step'
        DAILY_LOGIN = 'daily_login', 'Daily Dedication'
        STREAK_3 = 'streak_3', 'On a Roll'
        STREAK_7 = 'streak_7', 'Week Warrior'
        PERFECT_SCORE = 'perfect_score', 'Perfectionist'
        LEVEL_5 = 'level_5', 'Level 5 Reached'

    learner = models.ForeignKey(Learner, on_delete=models.CASCADE, related_name='badges')
    badge_id = models.CharField(max_length=32, choices=BadgeId.choices)
    unlocked_on = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('learner', 'badge_id')
        ordering = ['unlocked_on']

    def __str__(self):
        return f"{self.learner} - {self.badge_id}"


class BankQuestion(models.Model):
    class Difficulty(models.TextChoices):
        EASY = 'easy', 'Easy'
        MEDIUM = 'medium', 'Medium'
        HARD = 'hard', 'Hard'

    EXAM_CHOICES = [
        ('SAT', 'SAT'),
        ('ACT', 'ACT'),
        ('AP', 'AP'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    exam = models.CharField(max_length=3, choices=EXAM_CHOICES)
    topic = models.CharField(max_length=100)
    difficulty = models.CharField(max_length=10, choices=Difficulty.choices, default=Difficulty.MEDIUM)
    text = models.TextField()
    options = models.JSONField(help_text="Answer options, at least two")
    correct_index = models.PositiveIntegerField(default=0)
    explanation = models.TextField(blank=True, default='')
    passage = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"[{self.exam}/{self.topic}] {self.text[:60]}"


class TestSession(models.Model):
    __test__ = False

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(Learner, on_delete=models.CASCADE, related_name='sessions', db_index=True)
    test_kind = models.CharField(max_length=64)
    questions = models.JSONField(default=list)
    answers = models.JSONField(default=dict, blank=True)
    is_diagnostic = models.BooleanField(default=False)
    is_adaptive = models.BooleanField(default=False)
    topic = models.CharField(max_length=255, blank=True, default='')
    completed = models.BooleanField(default=False, db_index=True)
    claimed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        state = 'completed' if self.completed else 'open'
        return f"{self.owner} - {self.test_kind} ({state})"


class TestResult(models.Model):
    __test__ = False

    class GradedBy(models.TextChoices):
        AI = 'ai', 'AI'
        LOCAL = 'local', 'Local'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(Learner, on_delete=models.CASCADE, related_name='results', db_index=True)
    session_id = models.UUIDField(unique=True)
    test_kind = models.CharField(max_length=64)
    is_diagnostic = models.BooleanField(default=False)
    taken_at = models.DateTimeField()
    overall_score = models.PositiveSmallIntegerField()
    summary = models.TextField()
    answers = models.JSONField(default=list)
    questions = models.JSONField(default=list)
    question_analysis = models.JSONField(default=list)
    topic_performance = models.JSONField(default=list)
    xp_gained = models.PositiveIntegerField(default=0)
    graded_by = models.CharField(max_length=8, choices=GradedBy.choices, default=GradedBy.LOCAL)

    class Meta:
        ordering = ['-taken_at']
        indexes = [
            models.Index(fields=['owner', '-taken_at'], name='idx_result_owner_taken'),
        ]

    def __str__(self):
        return f"{self.owner} | {self.test_kind} | {self.overall_score}"
