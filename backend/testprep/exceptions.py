from rest_framework import status


class PrepError(Exception):
    """Base for domain errors that map onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'An unknown server error occurred.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(PrepError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Not found.'


class SessionNotFound(NotFound):
    default_message = 'Test session not found or not authorized.'


class LearnerNotFound(NotFound):
    default_message = 'User not found.'


class AlreadyCompleted(PrepError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'This test has already been completed.'


class GraderTransient(PrepError):
    """Capacity, quota or rate-limit failure of the AI grader. Never reaches the client."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'The grading service is temporarily unavailable.'


class GraderFatal(PrepError):
    default_message = 'Something went wrong while analyzing your test results. Please try again in a moment.'


class QuestionGenerationFailed(PrepError):
    default_message = 'Failed to generate test questions.'
