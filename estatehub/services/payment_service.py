from estatehub.errors import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from estatehub.extensions import db
from estatehub.models import Payment, PaymentStatus, User
from estatehub.services import midtrans_service
from estatehub.services.audit_service import log_major_event
from estatehub.services.midtrans_service import GatewayOutcome
from estatehub.services.subscription_service import grant_subscription
from flask import current_app
from datetime import datetime
import logging
import time
import uuid

logger = logging.getLogger(__name__)


def _new_order_id(user_id):
    millis = int(time.time() * 1000)
    return f"ORDER-{user_id}-{millis}-{uuid.uuid4().hex[:6].upper()}"


def _parse_amount(raw):
    """Gateway amounts arrive as strings like "100000.00"."""
    if raw is None or raw == '':
        return None
    try:
        return int(round(float(raw)))
    except (TypeError, ValueError):
        raise ValidationError('amount must be numeric')


def create_order(ctx, amount=None, subscription_days=None):
    if not ctx.is_authenticated:
        raise UnauthorizedError()
    cfg = current_app.config
    if amount is None:
        amount = cfg['SUBSCRIPTION_PRICE']
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError('amount must be a positive integer')
    if subscription_days is None:
        subscription_days = cfg['SUBSCRIPTION_DEFAULT_DAYS']
    if (isinstance(subscription_days, bool)
            or not isinstance(subscription_days, int)
            or subscription_days <= 0):
        raise ValidationError('subscription_days must be a positive integer')

    user = db.session.get(User, ctx.user_id)
    if user is None:
        raise NotFoundError('User not found')

    description = f"Premium subscription ({subscription_days} days)"
    payment = Payment(
        user_id=user.id,
        amount=amount,
        currency=cfg['DEFAULT_CURRENCY'],
        order_id=_new_order_id(user.id),
        status=PaymentStatus.PENDING,
        subscription_days=subscription_days,
        description=description,
    )
    db.session.add(payment)
    db.session.commit()

    snap_token = midtrans_service.generate_snap_token(
        midtrans_service.create_payment_request(
            payment.order_id,
            amount,
            user.email,
            user.name or user.email,
            description,
        )
    )

    log_major_event(
        'payment_created',
        user_id=user.id,
        order_id=payment.order_id,
        amount=amount,
        subscription_days=subscription_days,
    )
    return payment, snap_token


def _find_payment(order_id=None, transaction_id=None):
    payment = None
    if transaction_id:
        payment = Payment.query.filter_by(
            transaction_id=transaction_id).first()
    if payment is None and order_id:
        payment = Payment.query.filter_by(order_id=order_id).first()
    return payment


def handle_callback(order_id, transaction_id, status, amount=None):
    """Apply a normalized gateway outcome to its payment.

    A payment leaves PENDING at most once; callbacks for an already
    settled payment are acknowledged without side effects.
    """
    payment = _find_payment(order_id, transaction_id)
    if payment is None:
        logger.warning(
            "Callback for unknown payment order_id=%s transaction_id=%s",
            order_id, transaction_id)
        raise NotFoundError('Payment not found')

    if transaction_id and not payment.transaction_id:
        payment.transaction_id = transaction_id

    if payment.is_terminal:
        logger.info(
            "Ignoring %s callback for settled payment %s (status=%s)",
            status.value, payment.order_id, payment.status.value)
        db.session.commit()
        return payment

    paid_amount = _parse_amount(amount)
    if status == GatewayOutcome.SUCCESS and paid_amount is None:
        db.session.rollback()
        raise ValidationError('amount is required for a successful payment')
    if status == GatewayOutcome.SUCCESS and paid_amount != payment.amount:
        db.session.rollback()
        logger.error(
            "Amount mismatch for %s: expected %s, got %s",
            payment.order_id, payment.amount, paid_amount)
        raise ValidationError('Paid amount does not match the order')

    if status == GatewayOutcome.SUCCESS:
        payment.status = PaymentStatus.SUCCESS
        payment.completed_at = datetime.utcnow()
        # Commits the payment row together with the subscription.
        grant_subscription(payment.user_id, payment.subscription_days)
        log_major_event(
            'payment_success',
            order_id=payment.order_id,
            user_id=payment.user_id,
            amount=payment.amount,
        )
    elif status == GatewayOutcome.FAILED:
        # An existing subscription is left as it is.
        payment.status = PaymentStatus.FAILED
        payment.completed_at = datetime.utcnow()
        db.session.commit()
        log_major_event(
            'payment_failed',
            order_id=payment.order_id,
            user_id=payment.user_id,
        )
    else:
        db.session.commit()

    return payment


def process_midtrans_notification(payload):
    required = ('order_id', 'status_code', 'gross_amount', 'signature_key')
    missing = [k for k in required if not payload.get(k)]
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")

    server_key = midtrans_service.get_midtrans_config()['server_key']
    if not midtrans_service.verify_signature(
            str(payload['order_id']),
            str(payload['status_code']),
            str(payload['gross_amount']),
            server_key,
            payload['signature_key']):
        logger.warning(
            "Rejected Midtrans notification with bad signature for order %s",
            payload.get('order_id'))
        raise ForbiddenError('Invalid signature')

    normalized = midtrans_service.normalize_callback(payload)
    return handle_callback(
        normalized['order_id'],
        normalized['transaction_id'],
        normalized['status'],
        normalized['amount'],
    )


def process_signed_callback(order_id, transaction_id, status, amount,
                            signature):
    """Normalized callback, signed like a Midtrans notification.

    The signed string is ``order_id + status + amount + server_key`` with
    ``status`` the outcome value and ``amount`` exactly as sent.
    """
    server_key = midtrans_service.get_midtrans_config()['server_key']
    signed_amount = '' if amount is None else str(amount)
    if not midtrans_service.verify_signature(
            order_id, status.value, signed_amount, server_key, signature):
        logger.warning(
            "Rejected callback with bad signature for order %s", order_id)
        raise ForbiddenError('Invalid signature')

    return handle_callback(order_id, transaction_id, status, amount)


def get_payment_status(ctx, order_id):
    payment = Payment.query.filter_by(order_id=order_id).first()
    if payment is None:
        raise NotFoundError('Payment not found')
    if payment.user_id != ctx.user_id and not ctx.is_admin:
        raise NotFoundError('Payment not found')
    return payment
