"""JWT authentication for learners.

Access tokens carry a ``learner_id`` claim instead of a Django user id.
The claim is resolved to a ``Learner`` row and the row is cached briefly,
so views receive the learner as ``request.user``. Views that report totals
re-read the learner because a cached copy can be up to a minute old.
"""
from django.core.cache import cache
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import BasePermission
from rest_framework_simplejwt.authentication import JWTAuthentication

from .models import Learner

LEARNER_CLAIM = 'learner_id'
LEARNER_CACHE_SECONDS = 60


def learner_cache_key(learner_id):
    return f'learner_auth_{learner_id}'


class LearnerJWTAuthentication(JWTAuthentication):
    def get_user(self, validated_token):
        learner_id = validated_token.get(LEARNER_CLAIM)
        if not learner_id:
            raise AuthenticationFailed(f'Token contained no {LEARNER_CLAIM}')

        cache_key = learner_cache_key(learner_id)
        learner = cache.get(cache_key)
        if learner is not None:
            return learner

        # A malformed UUID in the claim surfaces as ValidationError/ValueError.
        try:
            learner = Learner.objects.select_related('user').get(id=learner_id)
        except (Learner.DoesNotExist, ValueError, DjangoValidationError):
            raise AuthenticationFailed('Learner not found')

        if not learner.user.is_active:
            raise AuthenticationFailed('Learner account is disabled')

        cache.set(cache_key, learner, timeout=LEARNER_CACHE_SECONDS)
        return learner


class IsLearner(BasePermission):
    """Only requests authenticated as a Learner get through."""

    def has_permission(self, request, view):
        return isinstance(request.user, Learner)
