import pytest

from conftest import ctx_for
from estatehub.errors import NotFoundError, ValidationError
from estatehub.models import (
    AdminLog,
    ListingStatus,
    PaymentStatus,
    SubscriptionStatus,
    UserRole,
)
from estatehub.services.audit_service import list_admin_logs
from estatehub.services.moderation_service import (
    approve_listing,
    dashboard_stats,
    list_users,
    promote_to_seller,
    reject_listing,
    revoke_user_subscription,
)


class TestListingModeration:

    @pytest.mark.parametrize('status', list(ListingStatus))
    def test_approve_from_any_status(
            self, admin_user, seller, make_listing, status):
        listing = make_listing(seller, status=status)

        approve_listing(ctx_for(admin_user), listing.id)

        assert listing.status == ListingStatus.PUBLISHED
        log = AdminLog.query.one()
        assert log.action == 'approve_property'
        assert log.target_type == 'property'
        assert log.target_id == listing.id
        assert log.admin_id == admin_user.id
        assert log.get_details() == {'from': status.value}

    def test_reject_archives_and_records_reason(
            self, admin_user, seller, make_listing):
        listing = make_listing(seller, status=ListingStatus.DRAFT)

        reject_listing(ctx_for(admin_user), listing.id, 'Blurry photos')

        assert listing.status == ListingStatus.ARCHIVED
        log = AdminLog.query.one()
        assert log.action == 'reject_property'
        assert log.get_details() == {'reason': 'Blurry photos'}

    def test_missing_listing(self, admin_user):
        with pytest.raises(NotFoundError):
            approve_listing(ctx_for(admin_user), 9999)
        with pytest.raises(NotFoundError):
            reject_listing(ctx_for(admin_user), 9999)
        assert AdminLog.query.count() == 0

    def test_log_records_caller_ip(self, admin_user, seller, make_listing):
        listing = make_listing(seller)
        approve_listing(ctx_for(admin_user, ip='10.0.0.7'), listing.id)
        assert AdminLog.query.one().ip_address == '10.0.0.7'


class TestUserModeration:

    def test_promote_sets_seller_role(self, admin_user, make_user):
        user = make_user()

        promote_to_seller(ctx_for(admin_user), user.id)

        assert user.role == UserRole.SELLER
        log = AdminLog.query.one()
        assert log.action == 'promote_to_seller'
        assert log.target_type == 'user'
        assert log.target_id == user.id

    def test_promote_unknown_user(self, admin_user):
        with pytest.raises(NotFoundError):
            promote_to_seller(ctx_for(admin_user), 9999)

    def test_promote_admin_refused(self, admin_user, make_user):
        other_admin = make_user(role=UserRole.ADMIN)
        with pytest.raises(ValidationError):
            promote_to_seller(ctx_for(admin_user), other_admin.id)
        assert other_admin.role == UserRole.ADMIN

    def test_revoke_subscription(self, admin_user, premium_user):
        revoke_user_subscription(ctx_for(admin_user), premium_user.id)

        assert premium_user.subscription_status == \
            SubscriptionStatus.CANCELLED
        assert AdminLog.query.one().action == 'revoke_subscription'

    def test_list_users_by_role(self, admin_user, seller, make_user):
        make_user()
        users, total = list_users(50, 0, role=UserRole.SELLER)
        assert total == 1
        assert [u.id for u in users] == [seller.id]

        _, everyone = list_users(50, 0)
        assert everyone == 3


class TestAuditLog:

    def test_logs_newest_first_and_filterable(
            self, admin_user, seller, make_listing, make_user):
        listing = make_listing(seller, status=ListingStatus.DRAFT)
        user = make_user()
        ctx = ctx_for(admin_user)

        approve_listing(ctx, listing.id)
        promote_to_seller(ctx, user.id)

        logs = list_admin_logs(50, 0)
        assert len(logs) == 2
        assert [l.action for l in logs] == [
            'promote_to_seller', 'approve_property']

        logs = list_admin_logs(50, 0, action='approve_property')
        assert [l.action for l in logs] == ['approve_property']


class TestDashboardStats:

    def test_counts(self, admin_user, seller, premium_user, make_listing,
                    make_payment):
        make_listing(seller)
        make_listing(seller, status=ListingStatus.DRAFT)
        make_payment(premium_user, amount=100000,
                     status=PaymentStatus.SUCCESS)
        make_payment(premium_user, amount=50000, order_id='ORDER-TEST-2')

        stats = dashboard_stats()

        assert stats['total_users'] == 3
        assert stats['total_sellers'] == 1
        assert stats['premium_users'] == 1
        assert stats['listings']['published'] == 1
        assert stats['listings']['draft'] == 1
        assert stats['listings']['sold'] == 0
        assert stats['successful_payments'] == 1
        assert stats['revenue'] == 100000
        assert stats['contact_requests'] == 0
