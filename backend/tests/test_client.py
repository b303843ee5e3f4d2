from unittest.mock import MagicMock

from django.test import SimpleTestCase

from testprep.client import ApiError, PrepApiClient
from testprep.navigator import Outcome, SessionNavigator
from tests.helpers import VirtualClock, make_questions


def _response(status_code, payload):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


class TestPrepApiClient(SimpleTestCase):
    def setUp(self):
        self.http = MagicMock()
        self.http.headers = {}
        self.client = PrepApiClient('https://prep.example.com/api/', access_token='abc', http=self.http)

    def test_bearer_token(self):
        self.assertEqual(self.http.headers['Authorization'], 'Bearer abc')

    def test_login_stores_access_token(self):
        self.http.request.return_value = _response(200, {'access': 'new', 'refresh': 'r'})
        self.client.login('alice', 'pw')
        self.http.request.assert_called_once_with(
            'POST', 'https://prep.example.com/api/auth/login/',
            json={'username': 'alice', 'password': 'pw'}, timeout=120,
        )
        self.assertEqual(self.http.headers['Authorization'], 'Bearer new')

    def test_start_test_payload(self):
        self.http.request.return_value = _response(201, {'sessionId': 's1', 'questions': [], 'totalQuestions': 0})
        self.client.start_test('SAT Math', topic='Algebra')
        _, kwargs = self.http.request.call_args
        self.assertEqual(kwargs['json'], {
            'testKind': 'SAT Math', 'isDiagnostic': False, 'isAdaptive': False, 'topic': 'Algebra',
        })

    def test_error_response(self):
        self.http.request.return_value = _response(400, {'error': 'This test has already been completed.'})
        with self.assertRaises(ApiError) as ctx:
            self.client.finalize('s1', [])
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, 'This test has already been completed.')

    def test_finalize_as_navigator_submit_hook(self):
        self.http.request.return_value = _response(200, {'result': {'overallScore': 100}})
        clock = VirtualClock()
        nav = SessionNavigator('s1', make_questions(1), self.client.finalize, clock, duration=1)
        nav.select_answer(0)
        clock.advance(1)

        self.assertIs(nav.outcome, Outcome.COMPLETED)
        self.http.request.assert_called_once_with(
            'POST', 'https://prep.example.com/api/sessions/s1/finalize/',
            json={'answers': [{'questionId': 'q1', 'answerIndex': 0}]}, timeout=120,
        )
