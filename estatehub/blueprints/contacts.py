from flask import Blueprint, request, jsonify
from flask_login import login_required
from estatehub.context import build_request_context
from estatehub.errors import ValidationError
from estatehub.middleware import permission_required
from estatehub.permissions import Permission
from estatehub.services import contact_service
from estatehub.utils import get_json_body, page_params, parse_optional_int

bp = Blueprint('contacts', __name__)


@bp.route('/api/contacts/request', methods=['POST'])
@login_required
@permission_required(Permission.CONTACT_REQUEST)
def request_contact():
    ctx = build_request_context()
    listing_id = parse_optional_int(get_json_body(), 'listing_id')
    if listing_id is None:
        raise ValidationError('listing_id is required')
    return jsonify(contact_service.request_contact(ctx, listing_id))


@bp.route('/api/contacts/history', methods=['GET'])
@login_required
def history():
    ctx = build_request_context()
    limit, offset = page_params(
        request.args.get('limit', type=int),
        request.args.get('offset', type=int),
    )
    items = contact_service.get_contact_history(ctx, limit, offset)
    return jsonify({
        'items': [{
            'id': r.id,
            'listing_id': r.listing_id,
            'listing_title': r.listing.title if r.listing else None,
            'phone': r.seller_phone,
            'whatsapp': r.seller_whatsapp,
            'status': r.status.value,
            'created_at': r.created_at.isoformat(),
            'viewed_at': r.viewed_at.isoformat() if r.viewed_at else None,
        } for r in items]
    })
