from estatehub.errors import NotFoundError, ValidationError
from estatehub.extensions import db
from estatehub.models import (
    ContactRequest,
    Listing,
    ListingStatus,
    Payment,
    PaymentStatus,
    SubscriptionStatus,
    User,
    UserRole,
)
from estatehub.services.audit_service import log_admin_action
from estatehub.services.subscription_service import revoke_subscription
from sqlalchemy import func
import logging

logger = logging.getLogger(__name__)


def _get_listing(listing_id):
    listing = db.session.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError('Listing not found')
    return listing


def _get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return user


def approve_listing(ctx, listing_id):
    # Any status can be approved, including sold/archived.
    listing = _get_listing(listing_id)
    previous = listing.status
    listing.status = ListingStatus.PUBLISHED
    db.session.commit()

    log_admin_action(
        ctx,
        action='approve_property',
        target_type='property',
        target_id=listing.id,
        details={'from': previous.value},
    )
    return listing


def reject_listing(ctx, listing_id, reason=None):
    listing = _get_listing(listing_id)
    listing.status = ListingStatus.ARCHIVED
    db.session.commit()

    log_admin_action(
        ctx,
        action='reject_property',
        target_type='property',
        target_id=listing.id,
        details={'reason': reason},
    )
    return listing


def promote_to_seller(ctx, user_id):
    user = _get_user(user_id)
    if user.role == UserRole.ADMIN:
        raise ValidationError('Cannot change an admin role')
    previous = user.role
    user.role = UserRole.SELLER
    db.session.commit()

    log_admin_action(
        ctx,
        action='promote_to_seller',
        target_type='user',
        target_id=user.id,
        details={'from': previous.value},
    )
    return user


def revoke_user_subscription(ctx, user_id):
    user = _get_user(user_id)
    previous = user.subscription_status
    revoke_subscription(user.id, SubscriptionStatus.CANCELLED)

    log_admin_action(
        ctx,
        action='revoke_subscription',
        target_type='user',
        target_id=user.id,
        details={'from': previous.value},
    )
    return user


def list_users(limit, offset, role=None):
    query = User.query
    if role is not None:
        query = query.filter(User.role == role)
    total = query.count()
    users = query.order_by(
        User.created_at.desc(), User.id.desc()
    ).limit(limit).offset(offset).all()
    return users, total


def dashboard_stats():
    listing_counts = dict(
        db.session.query(Listing.status, func.count(Listing.id))
        .group_by(Listing.status).all()
    )
    revenue = db.session.query(
        func.coalesce(func.sum(Payment.amount), 0)
    ).filter(Payment.status == PaymentStatus.SUCCESS).scalar()

    return {
        'total_users': User.query.count(),
        'total_sellers': User.query.filter_by(role=UserRole.SELLER).count(),
        'premium_users': User.query.filter_by(
            subscription_status=SubscriptionStatus.ACTIVE).count(),
        'listings': {
            status.value: listing_counts.get(status, 0)
            for status in ListingStatus
        },
        'successful_payments': Payment.query.filter_by(
            status=PaymentStatus.SUCCESS).count(),
        'revenue': int(revenue or 0),
        'contact_requests': ContactRequest.query.count(),
    }
