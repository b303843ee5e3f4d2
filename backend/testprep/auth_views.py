import logging

from django.contrib.auth import authenticate
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework_simplejwt.exceptions import AuthenticationFailed as JWTAuthenticationFailed
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer as BaseTokenRefreshSerializer
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.utils import datetime_from_epoch
from rest_framework_simplejwt.views import TokenRefreshView

from .gamification import record_login
from .models import Learner
from .permissions import LearnerJWTAuthentication, IsLearner

logger = logging.getLogger(__name__)


class AuthRateThrottle(AnonRateThrottle):
    rate = '10/minute'


def _blacklist_learner_token(token):
    """Blacklist a learner token without the User lookup that simplejwt requires.

    simplejwt's built-in blacklist() resolves the token's user through
    USER_ID_CLAIM against the User table, but our tokens carry a Learner UUID.
    """
    jti = token.payload[jwt_settings.JTI_CLAIM]
    exp = token.payload['exp']
    outstanding, _ = OutstandingToken.objects.get_or_create(
        jti=jti,
        defaults={
            'user': None,
            'token': str(token),
            'expires_at': datetime_from_epoch(exp),
        },
    )
    return BlacklistedToken.objects.get_or_create(token=outstanding)


class LearnerTokenRefreshSerializer(BaseTokenRefreshSerializer):
    """Token refresh that validates the Learner instead of Django's User."""

    def validate(self, attrs):
        refresh = self.token_class(attrs["refresh"])

        learner_id = refresh.payload.get('learner_id')
        if learner_id and not Learner.objects.filter(id=learner_id).exists():
            raise JWTAuthenticationFailed('Learner not found')

        data = {"access": str(refresh.access_token)}

        if jwt_settings.ROTATE_REFRESH_TOKENS:
            if jwt_settings.BLACKLIST_AFTER_ROTATION:
                _blacklist_learner_token(refresh)
            refresh.set_jti()
            refresh.set_exp()
            refresh.set_iat()
            data["refresh"] = str(refresh)

        return data


class LearnerTokenRefreshView(TokenRefreshView):
    serializer_class = LearnerTokenRefreshSerializer


def _get_tokens_for_learner(learner):
    refresh = RefreshToken()
    refresh['learner_id'] = str(learner.id)
    refresh['full_name'] = learner.full_name
    return {
        'access': str(refresh.access_token),
        'refresh': str(refresh),
        'learner_id': str(learner.id),
        'full_name': learner.full_name,
    }


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([AuthRateThrottle])
def auth_login(request):
    username = request.data.get('username')
    password = request.data.get('password')
    if not username or not password:
        return Response({'error': 'username and password are required'}, status=status.HTTP_400_BAD_REQUEST)

    user = authenticate(request, username=username, password=password)
    if user is None:
        return Response({'error': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

    learner, created = Learner.objects.get_or_create(
        user=user,
        defaults={'full_name': user.get_full_name() or user.username},
    )
    if created:
        logger.info('Created learner profile %s for user %s', learner.id, user.username)

    new_badges = record_login(learner)

    data = _get_tokens_for_learner(learner)
    data['newBadges'] = new_badges
    return Response(data)


@api_view(['POST'])
@authentication_classes([LearnerJWTAuthentication])
@permission_classes([IsLearner])
def auth_logout(request):
    """Blacklist the refresh token to invalidate the session."""
    refresh_token = request.data.get('refresh')
    if not refresh_token:
        return Response({'error': 'refresh token is required'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        token = RefreshToken(refresh_token)
        _blacklist_learner_token(token)
    except TokenError as e:
        logger.info('Ignoring logout with unusable refresh token: %s', e)

    return Response({'message': 'Logged out'})
