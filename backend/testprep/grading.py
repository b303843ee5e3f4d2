"""Graders turn (questions, answers) into an analysis.

An analysis is a dict with ``summary``, ``questionAnalysis`` (one entry per
question, in question order) and ``topicPerformance``. ``answers`` is always a
mapping of question id to the selected option index.
"""
import json
import logging
import re

from google.api_core import exceptions as google_exceptions
from rest_framework import serializers

from . import llm
from .exceptions import GraderFatal, GraderTransient

logger = logging.getLogger(__name__)

NOT_ANSWERED = 'Not answered'
DEFAULT_SUMMARY = (
    'Your results have been analyzed. Review the breakdown below to see your '
    'strengths and areas for improvement.'
)

# Capacity, quota and availability signatures of the AI service
TRANSIENT_PATTERNS = [
    r'quota',
    r'resource[_ ]exhausted',
    r'\brate[ _-]?limit',
    r'too.*many.*requests',
    r'\b429\b',
    r'service.*unavailable',
    r'\b503\b',
    r'overloaded',
    r'deadline.*exceeded',
    r'timed? ?out',
]

TRANSIENT_EXCEPTIONS = (
    google_exceptions.ResourceExhausted,
    google_exceptions.TooManyRequests,
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    TimeoutError,
)


def classify_grader_error(error):
    """Map any grader failure onto GraderTransient or GraderFatal."""
    if isinstance(error, (GraderTransient, GraderFatal)):
        return error
    if isinstance(error, TRANSIENT_EXCEPTIONS):
        return GraderTransient(str(error))
    text = str(error).lower()
    for pattern in TRANSIENT_PATTERNS:
        if re.search(pattern, text):
            return GraderTransient(str(error))
    return GraderFatal()


def _answer_text(question, answers):
    index = answers.get(question.get('id'))
    options = question.get('options') or []
    if isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(options):
        return index, options[index]
    return None, NOT_ANSWERED


def _correct_text(question):
    options = question.get('options') or []
    index = question.get('correctAnswerIndex', 0)
    if isinstance(index, int) and 0 <= index < len(options):
        return options[index]
    return ''


class LocalGrader:
    """Deterministic equality grading. Works for any input and never raises."""

    name = 'local'

    def grade(self, questions, answers, test_kind=''):
        answers = answers or {}
        analysis = []
        topics = {}
        for question in questions:
            index, user_answer = _answer_text(question, answers)
            is_correct = index is not None and index == question.get('correctAnswerIndex')
            topic = question.get('topic') or 'General'
            analysis.append({
                'questionText': question.get('text', ''),
                'userAnswer': user_answer,
                'correctAnswer': _correct_text(question),
                'isCorrect': is_correct,
                'explanation': question.get('explanation') or 'No explanation provided.',
                'topic': topic,
                'questionType': topic,
            })
            stats = topics.setdefault(topic, {'topic': topic, 'correct': 0, 'total': 0})
            stats['total'] += 1
            if is_correct:
                stats['correct'] += 1

        return {
            'summary': self._summary(analysis, list(topics.values())),
            'questionAnalysis': analysis,
            'topicPerformance': list(topics.values()),
        }

    def _summary(self, analysis, topic_performance):
        total = len(analysis)
        if not total:
            return 'This test had no questions to grade.'
        correct = sum(1 for item in analysis if item['isCorrect'])
        summary = f'You answered {correct} of {total} questions correctly.'
        weakest = min(topic_performance, key=lambda t: t['correct'] / t['total'])
        if weakest['correct'] < weakest['total']:
            summary += f' Focus your next study session on {weakest["topic"]}.'
        else:
            summary += ' Great work, keep it up!'
        return summary


class QuestionAnalysisSerializer(serializers.Serializer):
    questionText = serializers.CharField(allow_blank=True)
    userAnswer = serializers.CharField(allow_blank=True)
    correctAnswer = serializers.CharField(allow_blank=True)
    isCorrect = serializers.BooleanField()
    explanation = serializers.CharField(required=False, allow_blank=True, default='No explanation provided.')
    topic = serializers.CharField(required=False, allow_blank=True, default='General')
    questionType = serializers.CharField(required=False, allow_blank=True, default='General')


class TopicPerformanceSerializer(serializers.Serializer):
    topic = serializers.CharField()
    correct = serializers.IntegerField(min_value=0)
    total = serializers.IntegerField(min_value=1)

    def validate(self, attrs):
        if attrs['correct'] > attrs['total']:
            raise serializers.ValidationError('correct cannot exceed total')
        return attrs


class AnalysisSerializer(serializers.Serializer):
    summary = serializers.CharField(allow_blank=True)
    questionAnalysis = QuestionAnalysisSerializer(many=True)
    topicPerformance = TopicPerformanceSerializer(many=True, required=False, default=list)

    def validate_questionAnalysis(self, value):
        expected = self.context.get('expected_count')
        if expected is not None and len(value) != expected:
            raise serializers.ValidationError(
                f'Expected {expected} analysed questions, got {len(value)}.'
            )
        return value


def decode_analysis(raw, expected_count):
    """Strictly decode an AI analysis. Structural mismatches raise GraderFatal."""
    serializer = AnalysisSerializer(data=raw, context={'expected_count': expected_count})
    if not serializer.is_valid():
        logger.error('AI returned a malformed analysis: %s', serializer.errors)
        raise GraderFatal()
    data = serializer.validated_data
    return {
        'summary': data['summary'] or DEFAULT_SUMMARY,
        'questionAnalysis': [dict(item) for item in data['questionAnalysis']],
        'topicPerformance': [dict(item) for item in data['topicPerformance']],
    }


class GeminiGrader:
    SYSTEM_INSTRUCTION = (
        'You are an academic analysis AI. Respond with ONLY a JSON object with the keys '
        'summary (1-2 encouraging, actionable sentences), questionAnalysis (one object per '
        'question, in the given order, with questionText, userAnswer, correctAnswer, isCorrect, '
        'explanation, topic and questionType) and topicPerformance (objects with topic, correct '
        'and total).'
    )

    name = 'ai'

    def __init__(self, model=None):
        self.model = model or llm.build_model(self.SYSTEM_INSTRUCTION)

    def grade(self, questions, answers, test_kind=''):
        answers = answers or {}
        payload = [
            {
                'question': question['text'],
                'correctAnswer': _correct_text(question),
                'userAnswer': _answer_text(question, answers)[1],
                'topic': question.get('topic'),
            }
            for question in questions
        ]
        prompt = (
            f'Analyze this JSON data from a student\'s "{test_kind}" test. '
            f'Provide a detailed analysis.\n\n{json.dumps(payload)}'
        )
        try:
            raw = llm.generate_json(self.model, prompt, temperature=0.2)
        except Exception as e:
            raise classify_grader_error(e) from e
        return decode_analysis(raw, expected_count=len(questions))


def get_default_grader():
    if llm.is_configured():
        return GeminiGrader()
    return LocalGrader()


def grade_with_fallback(questions, answers, test_kind='', grader=None):
    """Grade with *grader*, switching to LocalGrader on transient failures.

    Returns ``(analysis, graded_by)``. Fatal failures propagate as GraderFatal.
    """
    grader = grader or get_default_grader()
    try:
        return grader.grade(questions, answers, test_kind), grader.name
    except Exception as e:
        error = classify_grader_error(e)
        if isinstance(error, GraderFatal):
            logger.exception('Grader %s failed', grader.name)
            if error is e:
                raise
            raise error from e
        logger.warning('Grader %s unavailable (%s), falling back to local grading', grader.name, error)

    fallback = LocalGrader()
    return fallback.grade(questions, answers, test_kind), fallback.name
