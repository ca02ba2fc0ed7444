from datetime import datetime, timedelta

import pytest

from conftest import ctx_for
from estatehub.context import RequestContext
from estatehub.errors import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from estatehub.extensions import db
from estatehub.models import Payment, PaymentStatus, SubscriptionStatus, User
from estatehub.services.midtrans_service import (
    GatewayOutcome,
    compute_signature,
)
from estatehub.services.payment_service import (
    create_order,
    get_payment_status,
    handle_callback,
    process_midtrans_notification,
    process_signed_callback,
)

SERVER_KEY = 'SB-Mid-server-test'


def _notification(order_id, transaction_status, gross_amount='100000.00',
                   status_code='200', transaction_id='trx-1',
                   server_key=SERVER_KEY):
    return {
        'order_id': order_id,
        'transaction_id': transaction_id,
        'transaction_status': transaction_status,
        'status_code': status_code,
        'gross_amount': gross_amount,
        'signature_key': compute_signature(
            order_id, status_code, gross_amount, server_key),
    }


class TestCreateOrder:

    def test_defaults_from_config(self, make_user):
        user = make_user()

        payment, snap_token = create_order(ctx_for(user))

        assert payment.status == PaymentStatus.PENDING
        assert payment.amount == 100000
        assert payment.subscription_days == 30
        assert payment.currency == 'IDR'
        assert payment.order_id.startswith(f'ORDER-{user.id}-')
        assert snap_token

    def test_order_ids_are_unique(self, make_user):
        user = make_user()
        first, _ = create_order(ctx_for(user))
        second, _ = create_order(ctx_for(user))
        assert first.order_id != second.order_id

    def test_anonymous_rejected(self, app):
        with pytest.raises(UnauthorizedError):
            create_order(RequestContext())

    @pytest.mark.parametrize('amount,days', [
        (0, 30),
        (-100, 30),
        ('100000', 30),
        (100000, 0),
        (100000, True),
    ])
    def test_invalid_order_rejected(self, make_user, amount, days):
        user = make_user()
        with pytest.raises(ValidationError):
            create_order(ctx_for(user), amount=amount, subscription_days=days)
        assert Payment.query.count() == 0


class TestHandleCallback:

    def test_success_grants_subscription(self, make_user, make_payment):
        user = make_user()
        make_payment(user, subscription_days=30)
        before = datetime.utcnow()

        payment = handle_callback(
            'ORDER-TEST-1', 'trx-1', GatewayOutcome.SUCCESS, '100000')

        assert payment.status == PaymentStatus.SUCCESS
        assert payment.transaction_id == 'trx-1'
        assert payment.completed_at is not None
        user = db.session.get(User, user.id)
        assert user.subscription_status == SubscriptionStatus.ACTIVE
        assert user.is_premium is True
        expected = before + timedelta(days=30)
        assert abs(user.subscription_expires_at - expected) < \
            timedelta(minutes=1)

    def test_failure_leaves_existing_subscription(
            self, premium_user, make_payment):
        expires_at = premium_user.subscription_expires_at
        make_payment(premium_user)

        payment = handle_callback(
            'ORDER-TEST-1', 'trx-1', GatewayOutcome.FAILED)

        assert payment.status == PaymentStatus.FAILED
        user = db.session.get(User, premium_user.id)
        assert user.subscription_status == SubscriptionStatus.ACTIVE
        assert user.subscription_expires_at == expires_at

    def test_failure_for_free_user_keeps_free(self, make_user, make_payment):
        user = make_user()
        make_payment(user)

        handle_callback('ORDER-TEST-1', 'trx-1', GatewayOutcome.FAILED)

        user = db.session.get(User, user.id)
        assert user.subscription_status == SubscriptionStatus.FREE

    def test_pending_changes_nothing(self, make_user, make_payment):
        user = make_user()
        make_payment(user)

        payment = handle_callback(
            'ORDER-TEST-1', 'trx-1', GatewayOutcome.PENDING)

        assert payment.status == PaymentStatus.PENDING
        assert db.session.get(User, user.id).subscription_status == \
            SubscriptionStatus.FREE

    def test_unknown_payment(self, app):
        with pytest.raises(NotFoundError):
            handle_callback('ORDER-NOPE', 'trx-x', GatewayOutcome.SUCCESS)

    def test_lookup_by_transaction_id(self, make_user, make_payment):
        user = make_user()
        make_payment(user, transaction_id='trx-known')

        payment = handle_callback(
            'some-other-order', 'trx-known', GatewayOutcome.SUCCESS,
            '100000')
        assert payment.order_id == 'ORDER-TEST-1'
        assert payment.status == PaymentStatus.SUCCESS

    def test_settled_payment_is_not_reapplied(self, make_user, make_payment):
        user = make_user()
        make_payment(user)
        handle_callback(
            'ORDER-TEST-1', 'trx-1', GatewayOutcome.SUCCESS, '100000')
        first_expiry = db.session.get(User, user.id).subscription_expires_at

        payment = handle_callback(
            'ORDER-TEST-1', 'trx-1', GatewayOutcome.FAILED)
        assert payment.status == PaymentStatus.SUCCESS
        payment = handle_callback(
            'ORDER-TEST-1', 'trx-1', GatewayOutcome.SUCCESS, '100000')
        assert payment.status == PaymentStatus.SUCCESS
        assert db.session.get(User, user.id).subscription_expires_at == \
            first_expiry

    def test_amount_mismatch_rejected(self, make_user, make_payment):
        user = make_user()
        make_payment(user, amount=100000)

        with pytest.raises(ValidationError):
            handle_callback(
                'ORDER-TEST-1', 'trx-1', GatewayOutcome.SUCCESS, '1.00')

        payment = Payment.query.filter_by(order_id='ORDER-TEST-1').one()
        assert payment.status == PaymentStatus.PENDING
        assert db.session.get(User, user.id).subscription_status == \
            SubscriptionStatus.FREE

    def test_success_without_amount_rejected(self, make_user, make_payment):
        user = make_user()
        make_payment(user)

        with pytest.raises(ValidationError):
            handle_callback('ORDER-TEST-1', 'trx-1', GatewayOutcome.SUCCESS)

        payment = Payment.query.filter_by(order_id='ORDER-TEST-1').one()
        assert payment.status == PaymentStatus.PENDING
        assert payment.transaction_id is None
        assert db.session.get(User, user.id).subscription_status == \
            SubscriptionStatus.FREE

    def test_decimal_amount_string_matches(self, make_user, make_payment):
        user = make_user()
        make_payment(user, amount=100000)
        payment = handle_callback(
            'ORDER-TEST-1', 'trx-1', GatewayOutcome.SUCCESS, '100000.00')
        assert payment.status == PaymentStatus.SUCCESS


class TestMidtransNotification:

    def test_settlement_with_valid_signature(self, make_user, make_payment):
        user = make_user()
        make_payment(user)

        payment = process_midtrans_notification(
            _notification('ORDER-TEST-1', 'settlement'))

        assert payment.status == PaymentStatus.SUCCESS
        assert db.session.get(User, user.id).subscription_status == \
            SubscriptionStatus.ACTIVE

    def test_bad_signature_changes_nothing(self, make_user, make_payment):
        user = make_user()
        make_payment(user)
        payload = _notification(
            'ORDER-TEST-1', 'settlement', server_key='wrong-key')

        with pytest.raises(ForbiddenError):
            process_midtrans_notification(payload)

        payment = Payment.query.filter_by(order_id='ORDER-TEST-1').one()
        assert payment.status == PaymentStatus.PENDING
        assert payment.transaction_id is None

    def test_missing_signature(self, make_user, make_payment):
        make_payment(make_user())
        payload = _notification('ORDER-TEST-1', 'settlement')
        del payload['signature_key']
        with pytest.raises(ValidationError):
            process_midtrans_notification(payload)

    def test_expire_marks_failed(self, make_user, make_payment):
        make_payment(make_user())
        payment = process_midtrans_notification(
            _notification('ORDER-TEST-1', 'expire', status_code='407'))
        assert payment.status == PaymentStatus.FAILED

    def test_unknown_status_stays_pending(self, make_user, make_payment):
        make_payment(make_user())
        payment = process_midtrans_notification(
            _notification('ORDER-TEST-1', 'refund'))
        assert payment.status == PaymentStatus.PENDING


class TestSignedCallback:

    def test_valid_signature_applies_outcome(self, make_user, make_payment):
        user = make_user()
        make_payment(user)
        signature = compute_signature(
            'ORDER-TEST-1', 'success', '100000', SERVER_KEY)

        payment = process_signed_callback(
            'ORDER-TEST-1', 'trx-1', GatewayOutcome.SUCCESS, '100000',
            signature)

        assert payment.status == PaymentStatus.SUCCESS
        assert db.session.get(User, user.id).subscription_status == \
            SubscriptionStatus.ACTIVE

    @pytest.mark.parametrize('signature', [
        None,
        '',
        'f' * 128,
        compute_signature('ORDER-TEST-1', 'success', '100000', 'other-key'),
        # Signed for a different outcome.
        compute_signature('ORDER-TEST-1', 'failed', '100000', SERVER_KEY),
    ])
    def test_bad_signature_leaves_user_free(
            self, make_user, make_payment, signature):
        user = make_user()
        make_payment(user)

        with pytest.raises(ForbiddenError):
            process_signed_callback(
                'ORDER-TEST-1', 'forged-123', GatewayOutcome.SUCCESS,
                '100000', signature)

        payment = Payment.query.filter_by(order_id='ORDER-TEST-1').one()
        assert payment.status == PaymentStatus.PENDING
        assert payment.transaction_id is None
        assert db.session.get(User, user.id).subscription_status == \
            SubscriptionStatus.FREE

    def test_signature_without_amount_is_still_refused(
            self, make_user, make_payment):
        make_payment(make_user())
        signature = compute_signature(
            'ORDER-TEST-1', 'success', '', SERVER_KEY)

        with pytest.raises(ValidationError):
            process_signed_callback(
                'ORDER-TEST-1', 'trx-1', GatewayOutcome.SUCCESS, None,
                signature)


class TestPaymentStatus:

    def test_owner_and_admin_can_read(
            self, make_user, admin_user, make_payment):
        user = make_user()
        make_payment(user)
        assert get_payment_status(ctx_for(user), 'ORDER-TEST-1').user_id == \
            user.id
        assert get_payment_status(
            ctx_for(admin_user), 'ORDER-TEST-1') is not None

    def test_other_user_sees_not_found(self, make_user, make_payment):
        make_payment(make_user())
        with pytest.raises(NotFoundError):
            get_payment_status(ctx_for(make_user()), 'ORDER-TEST-1')
