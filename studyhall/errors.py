"""
Error Taxonomy
Application exceptions and their JSON error handlers
"""
import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class StudyHallError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

    def to_dict(self):
        data = dict(self.payload)
        data['error'] = self.message
        return data


class ValidationError(StudyHallError):
    """Bad user input (message, attempt, photo URL, answers)"""
    status_code = 400


class AuthorizationError(StudyHallError):
    """Caller lacks the admin claim or a valid admin session"""
    status_code = 403


class NotFoundError(StudyHallError):
    status_code = 404


class RateLimitedError(StudyHallError):
    status_code = 429


class ConfigurationError(StudyHallError):
    """A backend credential or setting is missing"""
    status_code = 500


class BackendError(StudyHallError):
    """Upstream service (GitHub) failed or answered unexpectedly"""
    status_code = 502


class QuizStateError(StudyHallError):
    """Operation not allowed in the quiz session's current state"""
    status_code = 409


def register_error_handlers(app):
    """Render StudyHallError subclasses as JSON"""

    @app.errorhandler(StudyHallError)
    def handle_studyhall_error(error):
        if error.status_code >= 500:
            logger.error('%s: %s', type(error).__name__, error.message)
        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        return response
