import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from . import store
from .exceptions import AlreadyCompleted, PrepError
from .finalize import finalize_test
from .models import Learner, TestKind, TestResult, exam_for_kind
from .permissions import LearnerJWTAuthentication, IsLearner
from .questions import generate_questions, question_count
from .serializers import (
    FinalizeSerializer,
    LearnerSerializer,
    SessionQuestionSerializer,
    StartTestSerializer,
    TestResultSerializer,
    TestResultSummarySerializer,
    TestSessionSerializer,
)

logger = logging.getLogger(__name__)
learner_auth = [LearnerJWTAuthentication]
learner_perm = [IsLearner]


def _error_response(error):
    return Response({'error': error.message}, status=error.status_code)


def _fresh_learner(learner):
    # The authenticated learner may come from the auth cache.
    return Learner.objects.select_related('user').prefetch_related('badges').get(pk=learner.pk)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def test_kinds(request):
    return Response([
        {'value': value, 'label': label, 'exam': exam_for_kind(value)}
        for value, label in TestKind.choices
    ])


@api_view(['POST'])
@authentication_classes(learner_auth)
@permission_classes(learner_perm)
def start_test(request):
    serializer = StartTestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'error': 'Invalid test request.', 'fields': serializer.errors},
                        status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    try:
        questions = generate_questions(
            data['testKind'], question_count(data['isDiagnostic']), data['topic'],
        )
    except PrepError as e:
        logger.error('Could not build questions for %s: %s', data['testKind'], e)
        return _error_response(e)

    session = store.create_session(
        request.user,
        data['testKind'],
        questions,
        is_diagnostic=data['isDiagnostic'],
        is_adaptive=data['isAdaptive'],
        topic=data['topic'],
    )
    logger.info('Learner %s started %s session %s with %d questions',
                request.user.pk, session.test_kind, session.id, len(questions))

    return Response({
        'sessionId': str(session.id),
        'questions': SessionQuestionSerializer(questions, many=True).data,
        'totalQuestions': len(questions),
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@authentication_classes(learner_auth)
@permission_classes(learner_perm)
def session_detail(request, session_id):
    try:
        session = store.get_session(session_id, request.user)
    except PrepError as e:
        return _error_response(e)

    if session.completed:
        return _error_response(AlreadyCompleted())

    return Response(TestSessionSerializer(session).data)


@api_view(['POST'])
@authentication_classes(learner_auth)
@permission_classes(learner_perm)
def finalize_session(request, session_id):
    serializer = FinalizeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'error': 'Invalid answers payload.', 'fields': serializer.errors},
                        status=status.HTTP_400_BAD_REQUEST)

    try:
        outcome = finalize_test(session_id, request.user, serializer.validated_data['answers'])
    except PrepError as e:
        return _error_response(e)

    return Response({
        'result': TestResultSerializer(outcome.result).data,
        'updatedUser': LearnerSerializer(_fresh_learner(outcome.learner)).data,
        'newBadges': outcome.badges,
    })


@api_view(['GET'])
@authentication_classes(learner_auth)
@permission_classes(learner_perm)
def results_list(request):
    results = TestResult.objects.filter(owner=request.user)
    return Response(TestResultSummarySerializer(results, many=True).data)


@api_view(['GET'])
@authentication_classes(learner_auth)
@permission_classes(learner_perm)
def result_detail(request, result_id):
    result = get_object_or_404(TestResult, id=result_id, owner=request.user)
    return Response(TestResultSerializer(result).data)


@api_view(['GET'])
@authentication_classes(learner_auth)
@permission_classes(learner_perm)
def me(request):
    return Response(LearnerSerializer(_fresh_learner(request.user)).data)
