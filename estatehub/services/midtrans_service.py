"""Midtrans gateway adapter.

Turns Midtrans notification payloads into the internal
success/pending/failed outcome and checks their signature. No HTTP calls
are made; the Snap token is a sandbox placeholder.
"""
from flask import current_app
import base64
import enum
import hashlib
import hmac
import json
import logging

logger = logging.getLogger(__name__)


class GatewayOutcome(enum.Enum):
    SUCCESS = 'success'
    PENDING = 'pending'
    FAILED = 'failed'


# Midtrans transaction_status vocabulary
_STATUS_MAP = {
    'capture': GatewayOutcome.SUCCESS,
    'settlement': GatewayOutcome.SUCCESS,
    'pending': GatewayOutcome.PENDING,
    'deny': GatewayOutcome.FAILED,
    'cancel': GatewayOutcome.FAILED,
    'expire': GatewayOutcome.FAILED,
}


def get_midtrans_config():
    cfg = current_app.config
    return {
        'server_key': cfg['MIDTRANS_SERVER_KEY'],
        'client_key': cfg['MIDTRANS_CLIENT_KEY'],
        'is_production': cfg.get('MIDTRANS_IS_PRODUCTION', False),
    }


def compute_signature(order_id, status_code, gross_amount,
                      server_key):
    data = (
        f"{order_id}{status_code}{gross_amount}{server_key}"
    )
    return hashlib.sha512(data.encode('utf-8')).hexdigest()


def verify_signature(order_id, status_code, gross_amount, server_key,
                     signature) -> bool:
    if not signature or not isinstance(signature, str):
        return False
    expected = compute_signature(
        order_id, status_code, gross_amount, server_key)
    return hmac.compare_digest(expected, signature)


def map_transaction_status(transaction_status) -> GatewayOutcome:
    """Unknown statuses map to PENDING, never to SUCCESS."""
    key = str(transaction_status or '').strip().lower()
    return _STATUS_MAP.get(key, GatewayOutcome.PENDING)


def normalize_callback(payload):
    raw_status = str(payload.get('transaction_status') or '').strip().lower()
    outcome = map_transaction_status(raw_status)
    if raw_status not in _STATUS_MAP:
        logger.warning(
            "Unrecognized Midtrans status %r for order %s; treating as "
            "pending",
            payload.get('transaction_status'),
            payload.get('order_id'),
        )
    return {
        'order_id': payload.get('order_id'),
        'transaction_id': payload.get('transaction_id'),
        'status': outcome,
        'amount': payload.get('gross_amount'),
    }


def create_payment_request(order_id, amount, customer_email, customer_name,
                           description):
    return {
        'order_id': order_id,
        'amount': amount,
        'customer_email': customer_email,
        'customer_name': customer_name,
        'item_details': [
            {
                'id': 'premium-subscription',
                'price': amount,
                'quantity': 1,
                'name': description,
            },
        ],
    }


def generate_snap_token(payment_request):
    # TODO: call the Snap API (POST /snap/v1/transactions) when
    # MIDTRANS_IS_PRODUCTION is set.
    raw = json.dumps(payment_request, separators=(',', ':'))
    token = base64.b64encode(raw.encode('utf-8')).decode('ascii')
    logger.info(
        "Generated snap token for order %s", payment_request['order_id'])
    return token


def format_currency(amount) -> str:
    """IDR display format, e.g. ``Rp 1.500.000``."""
    whole = int(round(float(amount)))
    sign = '-' if whole < 0 else ''
    grouped = f"{abs(whole):,}".replace(',', '.')
    return f"{sign}Rp {grouped}"
