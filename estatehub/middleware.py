from flask import request, jsonify
from flask_login import current_user
from functools import wraps
from estatehub.permissions import has_permission
import logging

logger = logging.getLogger(__name__)

# Exact paths that never require login
LOGIN_WHITELIST = [
    '/',
    '/favicon.ico',
    '/api/auth/login',
    '/api/auth/register',
    '/api/auth/me',
    # Gateway callbacks authenticate by signature, not by session.
    '/api/payments/callback',
    '/api/payments/midtrans/notification',
]


def is_public_browse_path(path: str) -> bool:
    if path == '/api/listings':
        return True
    if path.startswith('/api/listings/') and path != '/api/listings/mine':
        return True
    return False


def setup_auth_middleware(app):

    @app.before_request
    def require_login():
        path = request.path
        method = request.method.upper()

        # Allow whitelist paths
        if path in LOGIN_WHITELIST:
            return None

        # Allow anonymous browsing for safe methods
        if method in (
            'GET',
            'HEAD',
                'OPTIONS') and is_public_browse_path(path):
            return None

        if not current_user.is_authenticated:
            return jsonify({'error': 'Not logged in',
                            'code': 'UNAUTHORIZED',
                            'login_required': True}), 401

        return None


def permission_required(permission):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({'error': 'Not logged in',
                                'code': 'UNAUTHORIZED'}), 401

            if not has_permission(current_user.role, permission):
                logger.warning(
                    "User %s lacks permission %s, current role: %s",
                    current_user.id,
                    permission.value,
                    current_user.role.value,
                )
                return jsonify({'error': 'Insufficient permissions',
                                'code': 'FORBIDDEN'}), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
