from flask import Blueprint, request, jsonify
from flask_login import login_required
from estatehub.context import build_request_context
from estatehub.errors import ValidationError
from estatehub.middleware import permission_required
from estatehub.models import PropertyType
from estatehub.permissions import Permission
from estatehub.services import listing_service
from estatehub.services.search_service import search_listings
from estatehub.utils import get_json_body, page_params, parse_enum
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('listings', __name__)


def listing_to_dict(listing):
    return {
        'id': listing.id,
        'user_id': listing.user_id,
        'title': listing.title,
        'description': listing.description,
        'property_type': listing.property_type.value,
        'address': listing.address,
        'city': listing.city,
        'province': listing.province,
        'postal_code': listing.postal_code,
        'latitude': (
            float(listing.latitude) if listing.latitude is not None
            else None),
        'longitude': (
            float(listing.longitude) if listing.longitude is not None
            else None),
        'bedrooms': listing.bedrooms,
        'bathrooms': listing.bathrooms,
        'land_size': listing.land_size,
        'building_size': listing.building_size,
        'year_built': listing.year_built,
        'price': listing.price,
        'currency': listing.currency,
        'status': listing.status.value,
        'images': list(listing.images or []),
        'image_count': listing.image_count,
        'views': listing.views,
        'created_at': listing.created_at.isoformat(),
        'updated_at': listing.updated_at.isoformat(),
    }


def _int_arg(name):
    raw = request.args.get(name)
    if raw is None or raw.strip() == '':
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f'{name} must be an integer')


@bp.route('/api/listings', methods=['GET'])
def search():
    property_type = request.args.get('property_type', '').strip()
    limit, offset = page_params(_int_arg('limit'), _int_arg('offset'))

    result = search_listings(
        city=request.args.get('city'),
        property_type=(
            parse_enum(PropertyType, property_type, 'property_type')
            if property_type else None),
        min_price=_int_arg('min_price'),
        max_price=_int_arg('max_price'),
        bedrooms=_int_arg('bedrooms'),
        limit=limit,
        offset=offset,
    )

    return jsonify({
        'items': [listing_to_dict(p) for p in result['items']],
        'total': result['total'],
        'limit': result['limit'],
        'offset': result['offset'],
    })


@bp.route('/api/listings/mine', methods=['GET'])
@login_required
def my_listings():
    ctx = build_request_context()
    limit, offset = page_params(_int_arg('limit'), _int_arg('offset'))
    items = listing_service.get_my_listings(ctx, limit, offset)
    return jsonify({'items': [listing_to_dict(p) for p in items]})


@bp.route('/api/listings/<int:listing_id>', methods=['GET'])
def get_listing(listing_id):
    ctx = build_request_context()
    listing = listing_service.get_listing(ctx, listing_id)
    return jsonify({'listing': listing_to_dict(listing)})


@bp.route('/api/listings', methods=['POST'])
@login_required
@permission_required(Permission.LISTING_CREATE)
def create_listing():
    ctx = build_request_context()
    listing = listing_service.create_listing(ctx, get_json_body())
    return jsonify({'ok': True, 'listing': listing_to_dict(listing)}), 201


@bp.route('/api/listings/<int:listing_id>', methods=['PATCH', 'PUT'])
@login_required
@permission_required(Permission.LISTING_UPDATE)
def update_listing(listing_id):
    ctx = build_request_context()
    listing = listing_service.update_listing(
        ctx, listing_id, get_json_body())
    return jsonify({'success': True, 'listing': listing_to_dict(listing)})
