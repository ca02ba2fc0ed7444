from estatehub.errors import ForbiddenError, NotFoundError
from estatehub.extensions import db
from estatehub.models import (
    ContactRequest,
    ContactRequestStatus,
    Listing,
    User,
)
from estatehub.services.subscription_service import (
    expire_if_lapsed,
    has_active_subscription,
)
from sqlalchemy.exc import IntegrityError
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def _get_or_create_request(user_id, listing):
    contact_request = ContactRequest.query.filter_by(
        user_id=user_id,
        listing_id=listing.id,
    ).first()
    if contact_request:
        return contact_request

    try:
        with db.session.begin_nested():
            contact_request = ContactRequest(
                user_id=user_id,
                listing_id=listing.id,
                seller_phone=listing.seller_phone,
                seller_whatsapp=listing.seller_whatsapp,
                status=ContactRequestStatus.PENDING,
            )
            db.session.add(contact_request)
    except IntegrityError:
        # A concurrent request created the row first.
        logger.info(
            "Contact request for user=%s listing=%s already exists",
            user_id, listing.id)
        contact_request = ContactRequest.query.filter_by(
            user_id=user_id,
            listing_id=listing.id,
        ).one()
    return contact_request


def request_contact(ctx, listing_id, now=None):
    """Reveal the seller's phone/WhatsApp to a premium user.

    The first call for a (user, listing) pair snapshots the listing's
    contact fields; later calls return that snapshot and only refresh
    ``viewed_at``.
    """
    now = now or datetime.utcnow()

    user = db.session.get(User, ctx.user_id) if ctx.user_id else None
    if user is not None:
        expire_if_lapsed(user, now)
    if not has_active_subscription(user, now):
        raise ForbiddenError(
            'Premium subscription required to view contact info')

    listing = db.session.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError('Listing not found')

    contact_request = _get_or_create_request(user.id, listing)
    contact_request.status = ContactRequestStatus.VIEWED
    contact_request.viewed_at = now
    db.session.commit()

    logger.info(
        "Contact revealed user_id=%s listing_id=%s request_id=%s",
        user.id, listing.id, contact_request.id)

    return {
        'phone': contact_request.seller_phone,
        'whatsapp': contact_request.seller_whatsapp,
    }


def get_contact_history(ctx, limit, offset):
    return ContactRequest.query.filter_by(
        user_id=ctx.user_id,
    ).order_by(
        ContactRequest.created_at.desc(), ContactRequest.id.desc()
    ).limit(limit).offset(offset).all()
