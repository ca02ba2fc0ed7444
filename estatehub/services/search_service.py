from estatehub.models import Listing, ListingStatus, PropertyType
import re
import logging

logger = logging.getLogger(__name__)


def _sanitize_query(query):
    if not query:
        return None
    q = str(query).replace('\x00', '').strip()
    if not q:
        return None
    q = re.sub(r'\s+', ' ', q).strip()
    return q[:100] if len(q) > 100 else q


def _escape_like(value):
    return (
        value.replace('\\', '\\\\')
        .replace('%', '\\%')
        .replace('_', '\\_')
    )


def search_listings(
        city=None,
        property_type=None,
        min_price=None,
        max_price=None,
        bedrooms=None,
        limit=50,
        offset=0):
    """Published listings matching every supplied filter, newest first.

    ``None`` means "no filter"; zero is a real bound.
    """
    query = Listing.query.filter(Listing.status == ListingStatus.PUBLISHED)

    city_safe = _sanitize_query(city)
    if city_safe:
        query = query.filter(
            Listing.city.ilike(f'%{_escape_like(city_safe)}%', escape='\\'))

    if property_type is not None:
        if not isinstance(property_type, PropertyType):
            raise TypeError('property_type must be a PropertyType')
        query = query.filter(Listing.property_type == property_type)

    if min_price is not None:
        query = query.filter(Listing.price >= min_price)
    if max_price is not None:
        query = query.filter(Listing.price <= max_price)
    if bedrooms is not None:
        query = query.filter(Listing.bedrooms == bedrooms)

    total = query.count()
    items = query.order_by(
        Listing.created_at.desc(), Listing.id.desc()
    ).limit(limit).offset(offset).all()

    return {
        'items': items,
        'total': total,
        'limit': limit,
        'offset': offset,
    }
