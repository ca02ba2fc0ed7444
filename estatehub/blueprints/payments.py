from flask import Blueprint, request, jsonify
from flask_login import login_required
from estatehub.context import build_request_context
from estatehub.errors import ValidationError
from estatehub.middleware import permission_required
from estatehub.permissions import Permission
from estatehub.services import payment_service
from estatehub.services.midtrans_service import GatewayOutcome, format_currency
from estatehub.utils import get_json_body, get_text, parse_enum
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('payments', __name__)


def payment_to_dict(payment):
    return {
        'id': payment.id,
        'order_id': payment.order_id,
        'transaction_id': payment.transaction_id,
        'amount': payment.amount,
        'amount_display': format_currency(payment.amount),
        'currency': payment.currency,
        'status': payment.status.value,
        'subscription_days': payment.subscription_days,
        'created_at': payment.created_at.isoformat(),
        'completed_at': (
            payment.completed_at.isoformat() if payment.completed_at
            else None),
    }


@bp.route('/api/payments/orders', methods=['POST'])
@login_required
@permission_required(Permission.PAYMENT_CREATE)
def create_order():
    ctx = build_request_context()
    data = get_json_body()
    payment, snap_token = payment_service.create_order(
        ctx,
        amount=data.get('amount'),
        subscription_days=data.get('subscription_days'),
    )
    return jsonify({
        'order_id': payment.order_id,
        'payment_id': payment.id,
        'amount': payment.amount,
        'snap_token': snap_token,
    }), 201


@bp.route('/api/payments/callback', methods=['POST'])
def handle_callback():
    data = get_json_body()
    order_id = get_text(data, 'order_id')
    transaction_id = get_text(data, 'transaction_id')
    if not order_id or not transaction_id:
        raise ValidationError('order_id and transaction_id are required')
    status = parse_enum(GatewayOutcome, data.get('status'), 'status')

    payment_service.process_signed_callback(
        order_id,
        transaction_id,
        status,
        data.get('amount'),
        data.get('signature_key'),
    )
    return jsonify({'success': True})


@bp.route('/api/payments/midtrans/notification', methods=['POST'])
def midtrans_notification():
    payload = get_json_body()
    logger.info(
        "Midtrans notification order_id=%s status=%s from %s",
        payload.get('order_id'),
        payload.get('transaction_status'),
        request.remote_addr,
    )
    payment_service.process_midtrans_notification(payload)
    return jsonify({'success': True})


@bp.route('/api/payments/orders/<order_id>', methods=['GET'])
@login_required
def get_status(order_id):
    ctx = build_request_context()
    payment = payment_service.get_payment_status(ctx, order_id)
    return jsonify({'payment': payment_to_dict(payment)})
