"""Service-layer errors.

Services raise these; the handler registered in ``create_app`` turns them
into ``{"error": ..., "code": ...}`` JSON responses.
"""


class ServiceError(Exception):
    code = 'INTERNAL'
    status_code = 500
    default_message = 'Internal error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class NotFoundError(ServiceError):
    code = 'NOT_FOUND'
    status_code = 404
    default_message = 'Resource not found'


class ForbiddenError(ServiceError):
    code = 'FORBIDDEN'
    status_code = 403
    default_message = 'Insufficient permissions'


class ValidationError(ServiceError):
    code = 'VALIDATION'
    status_code = 400
    default_message = 'Invalid input'


class UnauthorizedError(ServiceError):
    code = 'UNAUTHORIZED'
    status_code = 401
    default_message = 'Not logged in'
