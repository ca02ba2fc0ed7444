"""Role to permission table.

Every role check in the API goes through ``has_permission``; blueprints
declare the permission they need with ``permission_required``.
"""
import enum

from estatehub.models import UserRole


class Permission(enum.Enum):
    LISTING_CREATE = 'listing:create'
    LISTING_UPDATE = 'listing:update'
    LISTING_UPDATE_ANY = 'listing:update_any'
    LISTING_VIEW_ANY = 'listing:view_any'
    PAYMENT_CREATE = 'payment:create'
    CONTACT_REQUEST = 'contact:request'
    REVIEW_CREATE = 'review:create'
    ADMIN_ACCESS = 'admin:access'


_MEMBER_PERMISSIONS = frozenset({
    Permission.LISTING_CREATE,
    Permission.LISTING_UPDATE,
    Permission.PAYMENT_CREATE,
    Permission.CONTACT_REQUEST,
    Permission.REVIEW_CREATE,
})

ROLE_PERMISSIONS = {
    UserRole.USER: _MEMBER_PERMISSIONS,
    UserRole.SELLER: _MEMBER_PERMISSIONS,
    # Demo accounts can look around and try the contact flow but not
    # publish or pay.
    UserRole.DEMO: frozenset({
        Permission.CONTACT_REQUEST,
    }),
    UserRole.ADMIN: frozenset(Permission),
}


def has_permission(role, permission):
    if role is None:
        return False
    return permission in ROLE_PERMISSIONS.get(role, frozenset())
