"""
Domain errors surfaced to API callers

Each error carries a machine-readable code and the HTTP status the API
answers with. "Already completed" is a normal outcome, reported through
result flags, not an exception.
"""


class DoughJoError(Exception):
    """Base class for per-request, recoverable failures"""

    error = "doughjo_error"
    status_code = 400

    def __init__(self, message: str = None):
        self.message = message or self.__class__.__doc__
        super().__init__(self.message)


class NotAuthenticated(DoughJoError):
    """No user context for this request"""

    error = "not_authenticated"
    status_code = 401


class NoQuizAvailable(DoughJoError):
    """No lesson with quiz questions is available"""

    error = "no_quiz_available"
    status_code = 404


class LessonNotFound(DoughJoError):
    """Lesson not found"""

    error = "lesson_not_found"
    status_code = 404


class ProfileNotFound(DoughJoError):
    """Profile not found"""

    error = "profile_not_found"
    status_code = 404


class InvalidLessonContent(DoughJoError):
    """Lesson content is neither a quiz nor paged narrative"""

    error = "invalid_lesson_content"
    status_code = 422


class StoreUnavailable(DoughJoError):
    """The data store could not be reached. Please try again."""

    error = "store_unavailable"
    status_code = 503


def require_user(user_id):
    """Return user_id, or raise NotAuthenticated when it is missing"""
    if not user_id:
        raise NotAuthenticated()
    return user_id
