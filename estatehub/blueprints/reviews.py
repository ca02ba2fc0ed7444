import logging

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from estatehub.extensions import db
from estatehub.middleware import permission_required
from estatehub.models import Review, Listing, ListingStatus
from estatehub.permissions import Permission
from estatehub.utils import (
    get_json_body,
    get_listing_rating_summary,
    get_text,
    page_params,
)

logger = logging.getLogger(__name__)
bp = Blueprint('reviews', __name__)


def _published_listing_or_404(listing_id):
    return Listing.query.filter_by(
        id=listing_id,
        status=ListingStatus.PUBLISHED
    ).first_or_404()


@bp.route('/api/listings/<int:listing_id>/reviews', methods=['GET'])
def list_reviews(listing_id):
    _published_listing_or_404(listing_id)
    limit, offset = page_params(
        request.args.get('limit', type=int),
        request.args.get('offset', type=int),
    )

    reviews = Review.query.filter_by(listing_id=listing_id).order_by(
        Review.created_at.desc(), Review.id.desc()
    ).limit(limit).offset(offset).all()
    summary = get_listing_rating_summary([listing_id]).get(
        listing_id, {'avg': 0.0, 'count': 0, 'percents': {}})

    return jsonify({
        'items': [{
            'id': r.id,
            'user_id': r.user_id,
            'user_name': r.user.name if r.user else None,
            'rating': r.rating,
            'comment': r.comment,
            'created_at': r.created_at.isoformat(),
        } for r in reviews],
        'summary': summary,
    })


@bp.route('/api/listings/<int:listing_id>/reviews', methods=['POST'])
@login_required
@permission_required(Permission.REVIEW_CREATE)
def create_review(listing_id):
    listing = _published_listing_or_404(listing_id)

    if listing.user_id == current_user.id:
        return jsonify({'error': 'You cannot review your own listing',
                        'code': 'FORBIDDEN'}), 403

    data = get_json_body()
    rating = data.get('rating')
    comment = get_text(data, 'comment') or None

    if (isinstance(rating, bool) or not isinstance(rating, int)
            or not (1 <= rating <= 5)):
        return jsonify({'error': 'Rating must be between 1 and 5',
                        'code': 'VALIDATION'}), 400

    # Check if already reviewed.
    existing = Review.query.filter_by(
        listing_id=listing_id,
        user_id=current_user.id,
    ).first()
    if existing:
        return jsonify({'error': 'You have already reviewed this listing',
                        'code': 'VALIDATION'}), 400

    review = Review(
        listing_id=listing_id,
        user_id=current_user.id,
        rating=rating,
        comment=comment,
    )
    db.session.add(review)
    db.session.commit()

    logger.info(
        "Review created id=%s listing=%s user=%s rating=%s",
        review.id, listing_id, current_user.id, rating)

    return jsonify({'ok': True, 'review_id': review.id}), 201
