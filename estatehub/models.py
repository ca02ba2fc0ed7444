from estatehub.extensions import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from sqlalchemy import CheckConstraint, UniqueConstraint
import enum
import json


class UserRole(enum.Enum):
    USER = 'user'
    ADMIN = 'admin'
    SELLER = 'seller'
    DEMO = 'demo'


class SubscriptionStatus(enum.Enum):
    FREE = 'free'
    ACTIVE = 'active'
    EXPIRED = 'expired'
    CANCELLED = 'cancelled'


class PropertyType(enum.Enum):
    HOUSE = 'house'
    APARTMENT = 'apartment'
    LAND = 'land'
    COMMERCIAL = 'commercial'
    TOWNHOUSE = 'townhouse'


class ListingStatus(enum.Enum):
    DRAFT = 'draft'
    PUBLISHED = 'published'
    SOLD = 'sold'
    ARCHIVED = 'archived'


class PaymentStatus(enum.Enum):
    PENDING = 'pending'
    SUCCESS = 'success'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


class ContactRequestStatus(enum.Enum):
    PENDING = 'pending'
    VIEWED = 'viewed'
    # No transition into CONTACTED exists yet.
    CONTACTED = 'contacted'


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(320), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(100), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    whatsapp = db.Column(db.String(20), nullable=True)
    role = db.Column(
        db.Enum(UserRole),
        nullable=False,
        default=UserRole.USER)

    # Subscription & payment
    subscription_status = db.Column(
        db.Enum(SubscriptionStatus),
        nullable=False,
        default=SubscriptionStatus.FREE)
    subscription_expires_at = db.Column(db.DateTime, nullable=True)
    # Cached: ACTIVE and not yet expired.
    is_premium = db.Column(db.Boolean, default=False, nullable=False)

    # Profile
    profile_photo = db.Column(db.String(512), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(100), nullable=True)
    province = db.Column(db.String(100), nullable=True)
    postal_code = db.Column(db.String(10), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    listings = db.relationship(
        'Listing',
        backref='owner',
        lazy='dynamic',
        cascade='all, delete-orphan')
    payments = db.relationship(
        'Payment',
        backref='user',
        lazy='dynamic',
        cascade='all, delete-orphan')
    contact_requests = db.relationship(
        'ContactRequest',
        backref='user',
        lazy='dynamic',
        cascade='all, delete-orphan')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f'<User {self.email}>'


class Listing(db.Model):
    __tablename__ = 'listings'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)

    # Basic info
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    property_type = db.Column(db.Enum(PropertyType), nullable=False)

    # Location
    address = db.Column(db.Text, nullable=False)
    city = db.Column(db.String(100), nullable=False, index=True)
    province = db.Column(db.String(100), nullable=False)
    postal_code = db.Column(db.String(10), nullable=True)
    latitude = db.Column(db.Numeric(10, 8), nullable=True)
    longitude = db.Column(db.Numeric(11, 8), nullable=True)

    # Details
    bedrooms = db.Column(db.Integer, nullable=True)
    bathrooms = db.Column(db.Integer, nullable=True)
    land_size = db.Column(db.Integer, nullable=True)  # m2
    building_size = db.Column(db.Integer, nullable=True)  # m2
    year_built = db.Column(db.Integer, nullable=True)

    # Smallest currency unit, e.g. whole rupiah
    price = db.Column(db.BigInteger, nullable=False)
    currency = db.Column(db.String(3), default='IDR', nullable=False)

    status = db.Column(
        db.Enum(ListingStatus),
        default=ListingStatus.DRAFT,
        nullable=False,
        index=True)

    # Ordered list of image URLs
    images = db.Column(db.JSON, nullable=False, default=list)
    image_count = db.Column(db.Integer, default=0, nullable=False)

    seller_phone = db.Column(db.String(20), nullable=True)
    seller_whatsapp = db.Column(db.String(20), nullable=True)

    views = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    image_rows = db.relationship(
        'ListingImage',
        backref='listing',
        order_by='ListingImage.display_order',
        lazy='dynamic',
        cascade='all, delete-orphan')
    reviews = db.relationship(
        'Review',
        backref='listing',
        lazy='dynamic',
        cascade='all, delete-orphan')

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_listing_price'),
    )

    def __repr__(self):
        return f'<Listing {self.id} status={self.status}>'


class ListingImage(db.Model):
    __tablename__ = 'listing_images'

    id = db.Column(db.Integer, primary_key=True)
    listing_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'listings.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    image_url = db.Column(db.String(512), nullable=False)
    display_order = db.Column(db.Integer, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    def __repr__(self):
        return (
            f"<ListingImage listing={self.listing_id} "
            f"order={self.display_order}>"
        )


class Payment(db.Model):
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    amount = db.Column(db.BigInteger, nullable=False)
    currency = db.Column(db.String(3), default='IDR', nullable=False)
    payment_method = db.Column(db.String(50), nullable=True)

    # Gateway identifiers
    order_id = db.Column(db.String(100), unique=True, nullable=False)
    # Filled in when the gateway reports it.
    transaction_id = db.Column(db.String(100), unique=True, nullable=True)
    status = db.Column(
        db.Enum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False)

    subscription_days = db.Column(db.Integer, default=30, nullable=False)

    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint('amount >= 0', name='check_payment_amount'),
        CheckConstraint(
            'subscription_days > 0',
            name='check_payment_subscription_days'),
    )

    @property
    def is_terminal(self):
        return self.status != PaymentStatus.PENDING

    def __repr__(self):
        return f'<Payment {self.order_id} status={self.status}>'


class ContactRequest(db.Model):
    __tablename__ = 'contact_requests'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    listing_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'listings.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)

    # Snapshot at grant time; later listing edits do not touch it.
    seller_phone = db.Column(db.String(20), nullable=True)
    seller_whatsapp = db.Column(db.String(20), nullable=True)

    status = db.Column(
        db.Enum(ContactRequestStatus),
        default=ContactRequestStatus.PENDING,
        nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    viewed_at = db.Column(db.DateTime, nullable=True)

    listing = db.relationship('Listing', foreign_keys=[listing_id])

    __table_args__ = (
        UniqueConstraint(
            'user_id',
            'listing_id',
            name='uq_contact_request_user_listing'),
    )

    def __repr__(self):
        return (
            f"<ContactRequest user={self.user_id} "
            f"listing={self.listing_id} status={self.status}>"
        )


class Review(db.Model):
    __tablename__ = 'reviews'

    id = db.Column(db.Integer, primary_key=True)
    listing_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'listings.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    user = db.relationship('User', foreign_keys=[user_id])

    __table_args__ = (
        CheckConstraint(
            'rating >= 1 AND rating <= 5',
            name='check_rating_range'),
        UniqueConstraint(
            'user_id',
            'listing_id',
            name='uq_user_listing_review'),
    )

    def __repr__(self):
        return f'<Review {self.id} for listing {self.listing_id}>'


class AdminLog(db.Model):
    __tablename__ = 'admin_logs'

    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='SET NULL'),
        nullable=True,
        index=True)
    # e.g., approve_property, promote_to_seller
    action = db.Column(db.String(100), nullable=False)
    # user, property, payment
    target_type = db.Column(db.String(50), nullable=True)
    target_id = db.Column(db.Integer, nullable=True)
    # JSON format detail payload
    details_json = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)

    admin = db.relationship('User', foreign_keys=[admin_id])

    def set_details(self, data):
        self.details_json = json.dumps(data, ensure_ascii=False)

    def get_details(self):
        if self.details_json:
            return json.loads(self.details_json)
        return {}

    def __repr__(self):
        return f'<AdminLog {self.id} action={self.action}>'
