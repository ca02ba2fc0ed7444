"""
Shared fixtures for the estatehub test suite.

Each test gets a fresh app on an in-memory SQLite database, a test client,
and small factories for users, listings and payments.
"""
import os

# Keep test runs from writing log files into the working tree.
os.environ.setdefault('LOG_FILE', '')
os.environ.setdefault('MAJOR_EVENTS_LOG', '')

from datetime import datetime, timedelta

import pytest
from flask import g, request_started

from estatehub import create_app
from estatehub.config import TestConfig
from estatehub.context import RequestContext
from estatehub.extensions import db
from estatehub.models import (
    Listing,
    ListingStatus,
    Payment,
    PaymentStatus,
    PropertyType,
    SubscriptionStatus,
    User,
    UserRole,
)

DEFAULT_PASSWORD = 'secret123'

SAMPLE_IMAGES = [
    f'https://img.example.com/listing/{i}.jpg' for i in range(1, 6)
]


def _reset_login_cache(sender, **extra):
    g.pop('_login_user', None)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    # Requests reuse the fixture's app context, so Flask-Login's cached
    # user in ``g`` has to be dropped before each one.
    request_started.connect(_reset_login_cache, app)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
    request_started.disconnect(_reset_login_cache, app)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make_user(role=UserRole.USER,
                   subscription_status=SubscriptionStatus.FREE,
                   expires_in_days=None,
                   email=None,
                   phone='+6281100000000',
                   whatsapp='+6281100000001'):
        counter['n'] += 1
        user = User(
            email=email or f'user{counter["n"]}@example.com',
            name=f'User {counter["n"]}',
            phone=phone,
            whatsapp=whatsapp,
            role=role,
            subscription_status=subscription_status,
        )
        user.set_password(DEFAULT_PASSWORD)
        if expires_in_days is not None:
            user.subscription_expires_at = (
                datetime.utcnow() + timedelta(days=expires_in_days))
        user.is_premium = (
            subscription_status == SubscriptionStatus.ACTIVE
            and expires_in_days is not None and expires_in_days > 0
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def premium_user(make_user):
    return make_user(
        subscription_status=SubscriptionStatus.ACTIVE, expires_in_days=30)


@pytest.fixture
def admin_user(make_user):
    return make_user(role=UserRole.ADMIN)


@pytest.fixture
def seller(make_user):
    return make_user(
        role=UserRole.SELLER,
        phone='+6282345678901',
        whatsapp='+6282345678902',
    )


@pytest.fixture
def make_listing(app):
    def _make_listing(owner,
                      status=ListingStatus.PUBLISHED,
                      city='Jakarta',
                      property_type=PropertyType.HOUSE,
                      price=1500000000,
                      bedrooms=3,
                      created_at=None,
                      title='Rumah Minimalis Modern'):
        listing = Listing(
            user_id=owner.id,
            title=title,
            property_type=property_type,
            address='Jl. Sudirman No. 1',
            city=city,
            province='DKI Jakarta',
            price=price,
            bedrooms=bedrooms,
            status=status,
            images=list(SAMPLE_IMAGES),
            image_count=len(SAMPLE_IMAGES),
            seller_phone=owner.phone,
            seller_whatsapp=owner.whatsapp,
        )
        if created_at is not None:
            listing.created_at = created_at
        db.session.add(listing)
        db.session.commit()
        return listing

    return _make_listing


@pytest.fixture
def make_payment(app):
    def _make_payment(user, amount=100000, order_id='ORDER-TEST-1',
                      transaction_id=None, subscription_days=30,
                      status=PaymentStatus.PENDING):
        payment = Payment(
            user_id=user.id,
            amount=amount,
            order_id=order_id,
            transaction_id=transaction_id,
            subscription_days=subscription_days,
            status=status,
        )
        db.session.add(payment)
        db.session.commit()
        return payment

    return _make_payment


def ctx_for(user, ip='127.0.0.1'):
    return RequestContext(user_id=user.id, role=user.role, ip=ip)


def login(client, user, password=DEFAULT_PASSWORD):
    response = client.post('/api/auth/login', json={
        'email': user.email,
        'password': password,
    })
    assert response.status_code == 200, response.get_json()
    return response


def listing_payload(**overrides):
    payload = {
        'title': 'Rumah Mewah di Jakarta Selatan',
        'description': 'Rumah modern dengan taman luas',
        'property_type': 'house',
        'address': 'Jl. Sudirman No. 123',
        'city': 'Jakarta',
        'province': 'DKI Jakarta',
        'price': 2500000000,
        'bedrooms': 4,
        'images': list(SAMPLE_IMAGES),
    }
    payload.update(overrides)
    return payload
