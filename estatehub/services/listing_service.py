from estatehub.errors import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from estatehub.extensions import db
from estatehub.models import (
    Listing,
    ListingImage,
    ListingStatus,
    PropertyType,
    User,
)
from estatehub.permissions import Permission
from estatehub.utils import parse_enum, parse_optional_int
from flask import current_app
from urllib.parse import urlparse
import logging

logger = logging.getLogger(__name__)

OPTIONAL_INT_FIELDS = (
    'bedrooms',
    'bathrooms',
    'land_size',
    'building_size',
    'year_built',
)

UPDATABLE_FIELDS = {
    'title',
    'description',
    'price',
    'status',
    'images',
    'bedrooms',
    'bathrooms',
    'seller_phone',
    'seller_whatsapp',
}

# Owners may move their own listings between these; publishing is a
# moderation decision.
OWNER_SETTABLE_STATUSES = {
    ListingStatus.DRAFT,
    ListingStatus.SOLD,
    ListingStatus.ARCHIVED,
}


def _require_text(data, key, min_length=1):
    value = data.get(key)
    if not isinstance(value, str) or len(value.strip()) < min_length:
        if min_length > 1:
            raise ValidationError(
                f'{key} must be at least {min_length} characters')
        raise ValidationError(f'{key} cannot be empty')
    return value.strip()


def _optional_text(data, key, max_length=None):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{key} must be a string')
    value = value.strip()
    if max_length and len(value) > max_length:
        raise ValidationError(f'{key} must be at most {max_length} characters')
    return value or None


def _validate_price(value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError('price must be an integer')
    if value < 0:
        raise ValidationError('price cannot be negative')
    return value


def _optional_coordinate(data, key, bound):
    value = data.get(key)
    if value is None or value == '':
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{key} must be a number')
    if not -bound <= value <= bound:
        raise ValidationError(f'{key} is out of range')
    return value


def _is_url(value):
    if not isinstance(value, str):
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def _validate_images(images):
    minimum = current_app.config.get('MIN_LISTING_IMAGES', 5)
    if not isinstance(images, list):
        raise ValidationError('images must be a list of URLs')
    if len(images) < minimum:
        raise ValidationError(f'Minimum {minimum} photos required')
    bad = [i for i, url in enumerate(images) if not _is_url(url)]
    if bad:
        raise ValidationError(f'images[{bad[0]}] is not a valid URL')
    return [url.strip() for url in images]


def _replace_images(listing, urls):
    listing.images = list(urls)
    listing.image_count = len(urls)
    ListingImage.query.filter_by(listing_id=listing.id).delete()
    for order, url in enumerate(urls):
        db.session.add(ListingImage(
            listing_id=listing.id,
            image_url=url,
            display_order=order,
        ))


def create_listing(ctx, data):
    """Validate and store a new listing. It always starts as DRAFT."""
    if not ctx.is_authenticated:
        raise UnauthorizedError()
    title = _require_text(data, 'title', min_length=5)
    property_type = parse_enum(
        PropertyType, data.get('property_type'), 'property_type')
    address = _require_text(data, 'address')
    city = _require_text(data, 'city')
    province = _require_text(data, 'province')
    if 'price' not in data:
        raise ValidationError('price is required')
    price = _validate_price(data.get('price'))
    images = _validate_images(data.get('images'))

    optional_ints = {
        key: parse_optional_int(data, key, minimum=0)
        for key in OPTIONAL_INT_FIELDS
    }
    latitude = _optional_coordinate(data, 'latitude', 90)
    longitude = _optional_coordinate(data, 'longitude', 180)

    owner = db.session.get(User, ctx.user_id)
    if owner is None:
        raise NotFoundError('User not found')

    seller_phone = _optional_text(data, 'seller_phone', 20) or owner.phone
    seller_whatsapp = (
        _optional_text(data, 'seller_whatsapp', 20) or owner.whatsapp)

    listing = Listing(
        user_id=owner.id,
        title=title,
        description=_optional_text(data, 'description'),
        property_type=property_type,
        address=address,
        city=city,
        province=province,
        postal_code=_optional_text(data, 'postal_code', 10),
        latitude=latitude,
        longitude=longitude,
        price=price,
        currency=current_app.config.get('DEFAULT_CURRENCY', 'IDR'),
        status=ListingStatus.DRAFT,
        seller_phone=seller_phone,
        seller_whatsapp=seller_whatsapp,
        **optional_ints,
    )
    db.session.add(listing)
    db.session.flush()

    _replace_images(listing, images)
    db.session.commit()

    logger.info(
        "Listing created id=%s owner=%s images=%s",
        listing.id, owner.id, listing.image_count)
    return listing


def update_listing(ctx, listing_id, data):
    listing = db.session.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError('Listing not found')

    can_update_any = ctx.can(Permission.LISTING_UPDATE_ANY)
    if listing.user_id != ctx.user_id and not can_update_any:
        logger.warning(
            "User %s attempted to update listing %s",
            ctx.user_id, listing_id)
        raise ForbiddenError('No permission to modify this listing')

    unknown = set(data) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(
            f"Unknown fields: {', '.join(sorted(unknown))}")

    # Everything is validated before the listing is touched.
    changes = {}
    if 'title' in data:
        changes['title'] = _require_text(data, 'title', min_length=5)
    if 'description' in data:
        changes['description'] = _optional_text(data, 'description')
    if 'price' in data:
        changes['price'] = _validate_price(data['price'])
    if 'bedrooms' in data:
        changes['bedrooms'] = parse_optional_int(data, 'bedrooms', minimum=0)
    if 'bathrooms' in data:
        changes['bathrooms'] = parse_optional_int(
            data, 'bathrooms', minimum=0)
    if 'seller_phone' in data:
        changes['seller_phone'] = _optional_text(data, 'seller_phone', 20)
    if 'seller_whatsapp' in data:
        changes['seller_whatsapp'] = _optional_text(
            data, 'seller_whatsapp', 20)
    if 'status' in data:
        status = parse_enum(ListingStatus, data['status'], 'status')
        if status not in OWNER_SETTABLE_STATUSES and not can_update_any:
            raise ForbiddenError('Only an admin can publish a listing')
        changes['status'] = status
    images = _validate_images(data['images']) if 'images' in data else None

    for field, value in changes.items():
        setattr(listing, field, value)
    if images is not None:
        _replace_images(listing, images)

    db.session.commit()
    logger.info(
        "Listing updated id=%s by=%s fields=%s",
        listing.id, ctx.user_id, sorted(data))
    return listing


def get_listing(ctx, listing_id):
    listing = db.session.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError('Listing not found')
    if listing.status != ListingStatus.PUBLISHED:
        is_owner = ctx.user_id is not None and listing.user_id == ctx.user_id
        if not is_owner and not ctx.can(Permission.LISTING_VIEW_ANY):
            raise NotFoundError('Listing not found')
    return listing


def get_my_listings(ctx, limit, offset):
    return Listing.query.filter_by(
        user_id=ctx.user_id,
    ).order_by(
        Listing.created_at.desc(), Listing.id.desc()
    ).limit(limit).offset(offset).all()
