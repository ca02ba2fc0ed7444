from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9a1c7e2b10"
down_revision = None
branch_labels = None
depends_on = None

# db.Enum(SomeEnum) persists member names.
USER_ROLE = sa.Enum("USER", "ADMIN", "SELLER", "DEMO", name="userrole")
SUBSCRIPTION_STATUS = sa.Enum(
    "FREE", "ACTIVE", "EXPIRED", "CANCELLED", name="subscriptionstatus")
PROPERTY_TYPE = sa.Enum(
    "HOUSE", "APARTMENT", "LAND", "COMMERCIAL", "TOWNHOUSE",
    name="propertytype")
LISTING_STATUS = sa.Enum(
    "DRAFT", "PUBLISHED", "SOLD", "ARCHIVED", name="listingstatus")
PAYMENT_STATUS = sa.Enum(
    "PENDING", "SUCCESS", "FAILED", "CANCELLED", name="paymentstatus")
CONTACT_STATUS = sa.Enum(
    "PENDING", "VIEWED", "CONTACTED", name="contactrequeststatus")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("whatsapp", sa.String(length=20), nullable=True),
        sa.Column("role", USER_ROLE, nullable=False),
        sa.Column("subscription_status", SUBSCRIPTION_STATUS,
                  nullable=False),
        sa.Column("subscription_expires_at", sa.DateTime(), nullable=True),
        sa.Column("is_premium", sa.Boolean(), nullable=False),
        sa.Column("profile_photo", sa.String(length=512), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("province", sa.String(length=100), nullable=True),
        sa.Column("postal_code", sa.String(length=10), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_email", ["email"], unique=True)

    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("property_type", PROPERTY_TYPE, nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("province", sa.String(length=100), nullable=False),
        sa.Column("postal_code", sa.String(length=10), nullable=True),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Integer(), nullable=True),
        sa.Column("land_size", sa.Integer(), nullable=True),
        sa.Column("building_size", sa.Integer(), nullable=True),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("price", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", LISTING_STATUS, nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("image_count", sa.Integer(), nullable=False),
        sa.Column("seller_phone", sa.String(length=20), nullable=True),
        sa.Column("seller_whatsapp", sa.String(length=20), nullable=True),
        sa.Column("views", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("price >= 0", name="check_listing_price"),
    )
    with op.batch_alter_table("listings", schema=None) as batch_op:
        batch_op.create_index("ix_listings_user_id", ["user_id"])
        batch_op.create_index("ix_listings_city", ["city"])
        batch_op.create_index("ix_listings_status", ["status"])
        batch_op.create_index("ix_listings_created_at", ["created_at"])

    op.create_table(
        "listing_images",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("listing_id", sa.Integer(),
                  sa.ForeignKey("listings.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("image_url", sa.String(length=512), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    with op.batch_alter_table("listing_images", schema=None) as batch_op:
        batch_op.create_index("ix_listing_images_listing_id", ["listing_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("order_id", sa.String(length=100), nullable=False,
                  unique=True),
        sa.Column("transaction_id", sa.String(length=100), nullable=True,
                  unique=True),
        sa.Column("status", PAYMENT_STATUS, nullable=False),
        sa.Column("subscription_days", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("amount >= 0", name="check_payment_amount"),
        sa.CheckConstraint(
            "subscription_days > 0",
            name="check_payment_subscription_days"),
    )
    with op.batch_alter_table("payments", schema=None) as batch_op:
        batch_op.create_index("ix_payments_user_id", ["user_id"])

    op.create_table(
        "contact_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("listing_id", sa.Integer(),
                  sa.ForeignKey("listings.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("seller_phone", sa.String(length=20), nullable=True),
        sa.Column("seller_whatsapp", sa.String(length=20), nullable=True),
        sa.Column("status", CONTACT_STATUS, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("viewed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint(
            "user_id", "listing_id",
            name="uq_contact_request_user_listing"),
    )
    with op.batch_alter_table("contact_requests", schema=None) as batch_op:
        batch_op.create_index("ix_contact_requests_user_id", ["user_id"])
        batch_op.create_index(
            "ix_contact_requests_listing_id", ["listing_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("listing_id", sa.Integer(),
                  sa.ForeignKey("listings.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("user_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "rating >= 1 AND rating <= 5", name="check_rating_range"),
        sa.UniqueConstraint(
            "user_id", "listing_id", name="uq_user_listing_review"),
    )
    with op.batch_alter_table("reviews", schema=None) as batch_op:
        batch_op.create_index("ix_reviews_listing_id", ["listing_id"])
        batch_op.create_index("ix_reviews_user_id", ["user_id"])

    op.create_table(
        "admin_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("admin_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="SET NULL"),
                  nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("target_type", sa.String(length=50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("details_json", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    with op.batch_alter_table("admin_logs", schema=None) as batch_op:
        batch_op.create_index("ix_admin_logs_admin_id", ["admin_id"])
        batch_op.create_index("ix_admin_logs_created_at", ["created_at"])


def downgrade():
    op.drop_table("admin_logs")
    op.drop_table("reviews")
    op.drop_table("contact_requests")
    op.drop_table("payments")
    op.drop_table("listing_images")
    op.drop_table("listings")
    op.drop_table("users")
