"""Domain error taxonomy.

Every error carries a stable ``code`` and a human-readable message. The Flask
error handler in ``app.py`` turns them into ``{"error": ..., "code": ...}``
responses with ``status_code``.
"""


class ApiError(Exception):
    status_code = 500
    code = 'internal_error'
    default_message = 'An internal error occurred'

    def __init__(self, message=None, field=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.field = field

    def to_dict(self):
        body = {"error": self.message, "code": self.code}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(ApiError):
    status_code = 400
    code = 'validation_error'
    default_message = 'Invalid input'


class AuthenticationRequired(ApiError):
    status_code = 401
    code = 'authentication_required'
    default_message = 'Authentication required'


class AuthorizationDenied(ApiError):
    status_code = 403
    code = 'authorization_denied'
    default_message = 'You are not allowed to perform this action'


class NotFound(ApiError):
    status_code = 404
    code = 'not_found'
    default_message = 'Resource not found'


class Conflict(ApiError):
    status_code = 409
    code = 'conflict'
    default_message = 'The resource was modified concurrently, please retry'


class TransientStorageError(ApiError):
    status_code = 503
    code = 'storage_unavailable'
    default_message = 'Storage is temporarily unavailable, please retry'


class BlobStoreError(TransientStorageError):
    default_message = 'Could not store the uploaded file, please retry'
