from flask import request
from flask_login import current_user

from estatehub.models import UserRole
from estatehub.permissions import has_permission


class RequestContext:
    """Who is calling and from where.

    Built once per request at the blueprint boundary and passed explicitly
    into service functions, so services never read ``current_user``.
    """

    def __init__(self, user_id=None, role=None, ip=None, user_agent=None):
        self.user_id = user_id
        self.role = role
        self.ip = ip
        self.user_agent = user_agent

    @property
    def is_authenticated(self):
        return self.user_id is not None

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def can(self, permission):
        return has_permission(self.role, permission)

    def __repr__(self):
        role = self.role.value if self.role else None
        return f'<RequestContext user={self.user_id} role={role}>'


def build_request_context():
    ip = request.remote_addr
    user_agent = request.headers.get('User-Agent')
    if current_user.is_authenticated:
        return RequestContext(
            user_id=current_user.id,
            role=current_user.role,
            ip=ip,
            user_agent=user_agent,
        )
    return RequestContext(ip=ip, user_agent=user_agent)
