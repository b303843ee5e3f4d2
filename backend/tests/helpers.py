import heapq
import itertools

from django.contrib.auth.models import User
from rest_framework.test import APIClient

from testprep import store
from testprep.auth_views import _get_tokens_for_learner
from testprep.models import Learner

_usernames = itertools.count(1)


def make_learner(full_name="Test Learner", username=None, password="testpass123", **fields):
    """Create a Django user plus its Learner and return the learner."""
    username = username or f"learner{next(_usernames)}"
    user = User.objects.create_user(username, password=password)
    return Learner.objects.create(user=user, full_name=full_name, **fields)


def authenticated_client(learner=None):
    """Return an APIClient with valid JWT for the given learner."""
    if learner is None:
        learner = make_learner()
    tokens = _get_tokens_for_learner(learner)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    return client, learner


def make_questions(count=2, topics=("Algebra",)):
    """Question dicts with the correct answer always at index 0."""
    return [
        {
            "id": f"q{i + 1}",
            "text": f"Question {i + 1}: 2 + {i} = ?",
            "options": [str(2 + i), "0", "-1", "100"],
            "correctAnswerIndex": 0,
            "explanation": f"2 + {i} is {2 + i}.",
            "topic": topics[i % len(topics)],
            "difficulty": "easy",
            "passage": "",
        }
        for i in range(count)
    ]


def make_session(owner, count=2, test_kind="SAT Math", **kwargs):
    return store.create_session(owner, test_kind, make_questions(count), **kwargs)


def answers_payload(mapping):
    """{questionId: answerIndex} -> submitted wire format."""
    return [{"questionId": qid, "answerIndex": index} for qid, index in mapping.items()]


class _Handle:
    def __init__(self, clock, when, callback):
        self.clock = clock
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class VirtualClock:
    """Deterministic stand-in for an event loop's ``call_later``."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    def call_later(self, delay, callback):
        handle = _Handle(self, self.now + delay, callback)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    @property
    def pending(self):
        return [h for _, _, h in self._queue if not h.cancelled]

    def advance(self, seconds):
        """Run every callback due within the next *seconds*, in time order."""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self.now = when
            if not handle.cancelled:
                handle.callback()
        self.now = target
