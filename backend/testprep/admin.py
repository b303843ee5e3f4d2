from django.contrib import admin
from .models import BankQuestion, Learner, LearnerBadge, TestResult, TestSession


@admin.register(BankQuestion)
class BankQuestionAdmin(admin.ModelAdmin):
    list_display = ['text_short', 'exam', 'topic', 'difficulty', 'created_at']
    list_filter = ['exam', 'topic', 'difficulty']
    search_fields = ['text']

    def text_short(self, obj):
        return obj.text[:80]
    text_short.short_description = 'Question'


@admin.register(Learner)
class LearnerAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'xp', 'level', 'tests_taken', 'average_score', 'login_streak']
    search_fields = ['full_name', 'user__username']


@admin.register(TestSession)
class TestSessionAdmin(admin.ModelAdmin):
    list_display = ['owner', 'test_kind', 'completed', 'created_at']
    list_filter = ['completed', 'test_kind']


@admin.register(TestResult)
class TestResultAdmin(admin.ModelAdmin):
    list_display = ['owner', 'test_kind', 'overall_score', 'xp_gained', 'graded_by', 'taken_at']
    list_filter = ['test_kind', 'graded_by']

    def has_change_permission(self, request, obj=None):
        return False


admin.site.register(LearnerBadge)
