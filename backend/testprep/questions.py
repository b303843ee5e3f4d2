"""Question sets for new sessions: AI generation with a local question-bank fallback.

Every question, whatever its source, passes through ``sanitize_questions``
before it can become part of a session.
"""
import logging
import random
import uuid
from collections import defaultdict

from django.conf import settings
from rest_framework import serializers

from . import llm
from .exceptions import QuestionGenerationFailed
from .models import BankQuestion, exam_for_kind

logger = logging.getLogger(__name__)

DEFAULT_EXPLANATION = 'No explanation provided.'
DEFAULT_TOPIC = 'General'


class AnswerIndexField(serializers.Field):
    """Lenient integer parse. Anything that is not a whole number becomes None."""

    def to_internal_value(self, data):
        if isinstance(data, bool):
            return None
        if isinstance(data, int):
            return data
        if isinstance(data, float) and data.is_integer():
            return int(data)
        if isinstance(data, str):
            try:
                return int(data.strip())
            except ValueError:
                return None
        return None

    def to_representation(self, value):
        return value


class QuestionSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    text = serializers.CharField()
    options = serializers.ListField(child=serializers.CharField(), min_length=2)
    correctAnswerIndex = AnswerIndexField(required=False, allow_null=True, default=None)
    explanation = serializers.CharField(required=False, allow_blank=True, default='')
    topic = serializers.CharField(required=False, allow_blank=True, default='')
    difficulty = serializers.ChoiceField(
        choices=BankQuestion.Difficulty.values, required=False, allow_null=True, allow_blank=True, default=None,
    )
    passage = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        index = attrs.get('correctAnswerIndex')
        if index is None or not 0 <= index < len(attrs['options']):
            logger.warning(
                'Invalid correctAnswerIndex (%r) for question %d with %d options. Defaulting to 0.',
                self.initial_data.get('correctAnswerIndex') if isinstance(self.initial_data, dict) else index,
                self.context.get('position', 0), len(attrs['options']),
            )
            attrs['correctAnswerIndex'] = 0
        attrs['explanation'] = attrs.get('explanation') or DEFAULT_EXPLANATION
        attrs['topic'] = attrs.get('topic') or DEFAULT_TOPIC
        attrs['difficulty'] = attrs.get('difficulty') or None
        return attrs


def sanitize_questions(raw_items):
    """Decode a generated batch into question dicts.

    Out-of-range answer indexes are repaired to 0. Items missing text or with
    fewer than two options are dropped. An empty result is fatal.
    """
    if not isinstance(raw_items, list):
        raise QuestionGenerationFailed('AI returned an empty or invalid list of questions.')

    questions = []
    seen_ids = set()
    for position, raw in enumerate(raw_items):
        serializer = QuestionSerializer(data=raw, context={'position': position})
        if not serializer.is_valid():
            logger.warning('Dropping malformed question at index %d: %s', position, serializer.errors)
            continue
        question = dict(serializer.validated_data)
        if not question.get('id') or question['id'] in seen_ids:
            question['id'] = str(uuid.uuid4())
        seen_ids.add(question['id'])
        questions.append(question)

    if not questions:
        raise QuestionGenerationFailed()
    return questions


def question_count(is_diagnostic):
    if is_diagnostic:
        return settings.DIAGNOSTIC_QUESTION_COUNT
    return settings.PRACTICE_QUESTION_COUNT


def _assemble_balanced(candidates, count):
    """Pick `count` items balanced by topic."""
    if len(candidates) <= count:
        picked = list(candidates)
        random.shuffle(picked)
        return picked

    by_topic = defaultdict(list)
    for item in candidates:
        by_topic[item.topic].append(item)

    for topic_list in by_topic.values():
        random.shuffle(topic_list)

    selected = []
    topics = list(by_topic.keys())
    random.shuffle(topics)
    idx = 0
    while len(selected) < count:
        topic = topics[idx % len(topics)]
        if by_topic[topic]:
            selected.append(by_topic[topic].pop())
        else:
            topics.remove(topic)
            if not topics:
                break
            idx = idx % len(topics)
            continue
        idx += 1

    return selected


class BankQuestionGenerator:
    """Local fallback: sample the seeded question bank."""

    def generate(self, test_kind, count, topic=''):
        queryset = BankQuestion.objects.all()
        exam = exam_for_kind(test_kind)
        if exam:
            queryset = queryset.filter(exam=exam)
        candidates = list(queryset)
        if topic:
            on_topic = [q for q in candidates if topic.lower() in q.topic.lower()]
            candidates = on_topic or candidates

        picked = _assemble_balanced(candidates, count)
        return sanitize_questions([
            {
                'id': str(q.id),
                'text': q.text,
                'options': q.options,
                'correctAnswerIndex': q.correct_index,
                'explanation': q.explanation,
                'topic': q.topic,
                'difficulty': q.difficulty,
                'passage': q.passage,
            }
            for q in picked
        ])


class GeminiQuestionGenerator:
    SYSTEM_INSTRUCTION = (
        'You are an expert exam creator for high school standardized tests (SAT, ACT, AP). '
        'Respond with ONLY a JSON array of question objects with the keys id, text, options, '
        'correctAnswerIndex, explanation, topic, difficulty (easy, medium or hard) and passage. '
        'options must be a list of plain strings.'
    )

    def __init__(self, model=None):
        self.model = model or llm.build_model(self.SYSTEM_INSTRUCTION)

    def generate(self, test_kind, count, topic=''):
        prompt = f'Generate {count} authentic-style question(s) for a "{test_kind}" exam.'
        if 'Diagnostic' in test_kind:
            prompt += ' Cover a broad range of fundamental topics and difficulties.'
        if topic:
            prompt += f' Focus specifically on the topic of: "{topic}".'
        return sanitize_questions(llm.generate_json(self.model, prompt))


def generate_questions(test_kind, count, topic=''):
    """Question set for a new session. Falls back to the local bank when the AI is unavailable."""
    if llm.is_configured():
        try:
            return GeminiQuestionGenerator().generate(test_kind, count, topic)
        except Exception:
            logger.warning('AI question generation failed for %s, using the question bank',
                           test_kind, exc_info=True)
    return BankQuestionGenerator().generate(test_kind, count, topic)
