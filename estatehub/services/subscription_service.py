"""Premium subscription window.

All writes to ``User.subscription_*`` and ``User.is_premium`` go through
this module so the cached premium flag stays equal to
"status is ACTIVE and expiry is in the future".
"""
from estatehub.errors import NotFoundError, ValidationError
from estatehub.extensions import db
from estatehub.models import User, SubscriptionStatus
from estatehub.services.audit_service import log_major_event
from datetime import datetime, timedelta
import logging

logger = logging.getLogger(__name__)


def has_active_subscription(user, now=None):
    if user is None:
        return False
    now = now or datetime.utcnow()
    return (
        user.subscription_status == SubscriptionStatus.ACTIVE
        and user.subscription_expires_at is not None
        and user.subscription_expires_at > now
    )


def expire_if_lapsed(user, now=None):
    """Move a lapsed ACTIVE user to EXPIRED. Returns True if changed."""
    now = now or datetime.utcnow()
    if user.subscription_status != SubscriptionStatus.ACTIVE:
        return False
    if has_active_subscription(user, now):
        return False
    user.subscription_status = SubscriptionStatus.EXPIRED
    user.is_premium = False
    db.session.commit()
    log_major_event(
        'subscription_expired',
        user_id=user.id,
        expired_at=user.subscription_expires_at,
    )
    return True


def grant_subscription(user_id, days, now=None):
    """Activate premium for ``days`` counted from now.

    A second grant restarts the window from now; it does not stack on the
    remaining time.
    """
    if days is None or int(days) <= 0:
        raise ValidationError('Subscription days must be positive')

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')

    now = now or datetime.utcnow()
    user.subscription_status = SubscriptionStatus.ACTIVE
    user.subscription_expires_at = now + timedelta(days=int(days))
    user.is_premium = True
    db.session.commit()

    logger.info(
        "Subscription granted user_id=%s days=%s expires_at=%s",
        user.id, days, user.subscription_expires_at.isoformat())
    log_major_event(
        'subscription_granted',
        user_id=user.id,
        days=int(days),
        expires_at=user.subscription_expires_at,
    )
    return user


def revoke_subscription(user_id, status=SubscriptionStatus.CANCELLED):
    """Explicit revocation. A failed payment never calls this."""
    if status == SubscriptionStatus.ACTIVE:
        raise ValidationError('Cannot revoke to active status')

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')

    user.subscription_status = status
    user.is_premium = False
    db.session.commit()

    log_major_event(
        'subscription_revoked',
        user_id=user.id,
        status=status.value,
    )
    return user


def sweep_expired_subscriptions(now=None):
    now = now or datetime.utcnow()
    lapsed = User.query.filter(
        User.subscription_status == SubscriptionStatus.ACTIVE,
        db.or_(
            User.subscription_expires_at.is_(None),
            User.subscription_expires_at <= now,
        ),
    ).all()

    for user in lapsed:
        user.subscription_status = SubscriptionStatus.EXPIRED
        user.is_premium = False
    db.session.commit()

    if lapsed:
        logger.info("Expired %d lapsed subscriptions", len(lapsed))
        log_major_event(
            'subscription_sweep',
            count=len(lapsed),
            user_ids=[u.id for u in lapsed],
        )
    return len(lapsed)
