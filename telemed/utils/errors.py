"""
API error types and the Flask handlers that render them.

Every failure leaves the API in the same envelope used for successful
responses::

    {"success": false, "message": "...", "errors": {"field": ["..."]}}

``errors`` is only present for validation failures.
"""
from flask import jsonify, request
from werkzeug.exceptions import HTTPException


class APIError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self):
        data = {
            'success': False,
            'message': self.message
        }
        if self.errors:
            data['errors'] = self.errors
        return data


class ValidationError(APIError):
    """Malformed or missing fields; ``errors`` maps field name to messages."""
    status_code = 400
    default_message = 'Validation failed'

    @classmethod
    def for_field(cls, field, message):
        return cls(errors={field: [message]})


class AuthenticationError(APIError):
    status_code = 401
    default_message = 'Authentication required'


class AuthorizationError(APIError):
    status_code = 403
    default_message = 'Not authorized to perform this action'


class NotFoundError(APIError):
    status_code = 404
    default_message = 'Resource not found'


def register_error_handlers(app):
    from ..models import db
    from .log_utils import log_error

    @app.errorhandler(APIError)
    def handle_api_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({
            'success': False,
            'message': error.description
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        app.logger.exception(f"Unhandled error on {request.method} {request.path}")
        log_error(
            f'Unhandled error on {request.method} {request.path}',
            exception=error
        )
        return jsonify({
            'success': False,
            'message': APIError.default_message
        }), 500
