from rest_framework import serializers

from .gamification import BADGE_DETAILS
from .models import Learner, LearnerBadge, TestKind, TestResult


class StartTestSerializer(serializers.Serializer):
    testKind = serializers.ChoiceField(choices=TestKind.choices)
    isDiagnostic = serializers.BooleanField(default=False)
    isAdaptive = serializers.BooleanField(default=False)
    topic = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')


class AnswerSerializer(serializers.Serializer):
    questionId = serializers.CharField(max_length=64)
    answerIndex = serializers.IntegerField(allow_null=True)


class FinalizeSerializer(serializers.Serializer):
    answers = AnswerSerializer(many=True, allow_empty=True)


class SessionQuestionSerializer(serializers.Serializer):
    """A question as shown while the test is running: no answer key."""

    id = serializers.CharField()
    text = serializers.CharField()
    options = serializers.ListField(child=serializers.CharField())
    topic = serializers.CharField()
    difficulty = serializers.CharField(allow_null=True)
    passage = serializers.CharField(allow_blank=True)


class TestSessionSerializer(serializers.Serializer):
    __test__ = False

    sessionId = serializers.UUIDField(source='id')
    testKind = serializers.CharField(source='test_kind')
    isDiagnostic = serializers.BooleanField(source='is_diagnostic')
    isAdaptive = serializers.BooleanField(source='is_adaptive')
    questions = SessionQuestionSerializer(many=True)
    totalQuestions = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at')

    def get_totalQuestions(self, obj):
        return len(obj.questions)


class BadgeSerializer(serializers.ModelSerializer):
    badgeId = serializers.CharField(source='badge_id')
    name = serializers.CharField(source='get_badge_id_display')
    description = serializers.SerializerMethodField()
    icon = serializers.SerializerMethodField()
    unlockedOn = serializers.DateTimeField(source='unlocked_on')

    class Meta:
        model = LearnerBadge
        fields = ['badgeId', 'name', 'description', 'icon', 'unlockedOn']

    def get_description(self, obj):
        return BADGE_DETAILS[LearnerBadge.BadgeId(obj.badge_id)][0]

    def get_icon(self, obj):
        return BADGE_DETAILS[LearnerBadge.BadgeId(obj.badge_id)][1]


class LearnerSerializer(serializers.ModelSerializer):
    fullName = serializers.CharField(source='full_name')
    username = serializers.CharField(source='user.username')
    testsTaken = serializers.IntegerField(source='tests_taken')
    averageScore = serializers.IntegerField(source='average_score')
    lastTestTaken = serializers.DateTimeField(source='last_test_taken')
    loginStreak = serializers.IntegerField(source='login_streak')
    lastLogin = serializers.DateTimeField(source='last_login')
    badges = BadgeSerializer(many=True, read_only=True)

    class Meta:
        model = Learner
        fields = [
            'id', 'fullName', 'username', 'xp', 'level', 'testsTaken', 'averageScore',
            'lastTestTaken', 'loginStreak', 'lastLogin', 'badges',
        ]


class TestResultSummarySerializer(serializers.ModelSerializer):
    __test__ = False

    sessionId = serializers.UUIDField(source='session_id')
    testKind = serializers.CharField(source='test_kind')
    isDiagnostic = serializers.BooleanField(source='is_diagnostic')
    takenAt = serializers.DateTimeField(source='taken_at')
    overallScore = serializers.IntegerField(source='overall_score')
    xpGained = serializers.IntegerField(source='xp_gained')

    class Meta:
        model = TestResult
        fields = ['id', 'sessionId', 'testKind', 'isDiagnostic', 'takenAt', 'overallScore', 'xpGained']


class TestResultSerializer(TestResultSummarySerializer):
    __test__ = False

    questionAnalysis = serializers.JSONField(source='question_analysis')
    topicPerformance = serializers.JSONField(source='topic_performance')
    gradedBy = serializers.CharField(source='graded_by')

    class Meta(TestResultSummarySerializer.Meta):
        fields = TestResultSummarySerializer.Meta.fields + [
            'summary', 'answers', 'questions', 'questionAnalysis', 'topicPerformance', 'gradedBy',
        ]
