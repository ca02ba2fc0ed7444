from flask import Blueprint, request, jsonify
from flask_login import login_required
from estatehub.blueprints.auth import user_to_dict
from estatehub.context import build_request_context
from estatehub.middleware import permission_required
from estatehub.models import UserRole
from estatehub.permissions import Permission
from estatehub.services import moderation_service
from estatehub.services.audit_service import list_admin_logs
from estatehub.utils import get_json_body, get_text, page_params, parse_enum
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__)


def _page_args():
    return page_params(
        request.args.get('limit', type=int),
        request.args.get('offset', type=int),
    )


@bp.route('/api/admin/stats', methods=['GET'])
@login_required
@permission_required(Permission.ADMIN_ACCESS)
def dashboard():
    return jsonify(moderation_service.dashboard_stats())


@bp.route('/api/admin/users', methods=['GET'])
@login_required
@permission_required(Permission.ADMIN_ACCESS)
def list_users():
    limit, offset = _page_args()
    role_filter = (request.args.get('role') or '').strip()
    role = parse_enum(UserRole, role_filter, 'role') if role_filter else None

    users, total = moderation_service.list_users(limit, offset, role)
    return jsonify({
        'items': [user_to_dict(u) for u in users],
        'total': total,
        'limit': limit,
        'offset': offset,
    })


@bp.route('/api/admin/logs', methods=['GET'])
@login_required
@permission_required(Permission.ADMIN_ACCESS)
def admin_logs():
    limit, offset = _page_args()
    action = (request.args.get('action') or '').strip() or None
    entries = list_admin_logs(limit, offset, action)
    return jsonify({
        'items': [{
            'id': e.id,
            'admin_id': e.admin_id,
            'action': e.action,
            'target_type': e.target_type,
            'target_id': e.target_id,
            'details': e.get_details(),
            'ip_address': e.ip_address,
            'created_at': e.created_at.isoformat(),
        } for e in entries]
    })


@bp.route('/api/admin/listings/<int:listing_id>/approve', methods=['POST'])
@login_required
@permission_required(Permission.ADMIN_ACCESS)
def approve_listing(listing_id):
    ctx = build_request_context()
    listing = moderation_service.approve_listing(ctx, listing_id)
    return jsonify({'success': True, 'status': listing.status.value})


@bp.route('/api/admin/listings/<int:listing_id>/reject', methods=['POST'])
@login_required
@permission_required(Permission.ADMIN_ACCESS)
def reject_listing(listing_id):
    ctx = build_request_context()
    reason = get_text(get_json_body(), 'reason') or None
    listing = moderation_service.reject_listing(ctx, listing_id, reason)
    return jsonify({'success': True, 'status': listing.status.value})


@bp.route('/api/admin/users/<int:user_id>/promote', methods=['POST'])
@login_required
@permission_required(Permission.ADMIN_ACCESS)
def promote_to_seller(user_id):
    ctx = build_request_context()
    user = moderation_service.promote_to_seller(ctx, user_id)
    return jsonify({'success': True, 'role': user.role.value})


@bp.route('/api/admin/users/<int:user_id>/revoke-subscription',
          methods=['POST'])
@login_required
@permission_required(Permission.ADMIN_ACCESS)
def revoke_subscription(user_id):
    ctx = build_request_context()
    user = moderation_service.revoke_user_subscription(ctx, user_id)
    return jsonify({
        'success': True,
        'subscription_status': user.subscription_status.value,
    })
