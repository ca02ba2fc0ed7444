from flask import current_app, request
from sqlalchemy import func
from estatehub.errors import ValidationError
from estatehub.extensions import db
from estatehub.models import Review


def get_json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def get_text(data, key, strip=True):
    """String field of a JSON body; missing or null reads as ''."""
    value = data.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f'{key} must be a string')
    return value.strip() if strip else value


def parse_enum(enum_class, raw, field_name):
    """Accept an enum member, its value or its name (any case)."""
    if isinstance(raw, enum_class):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError(f'{field_name} is required')
    key = raw.strip()
    for member in enum_class:
        if key.lower() == member.value or key.upper() == member.name:
            return member
    allowed = ', '.join(m.value for m in enum_class)
    raise ValidationError(f'{field_name} must be one of: {allowed}')


def parse_optional_int(data, key, minimum=None):
    value = data.get(key)
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{key} must be an integer')
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{key} must be an integer')
    if minimum is not None and value < minimum:
        raise ValidationError(f'{key} must be at least {minimum}')
    return value


def page_params(limit=None, offset=None):
    default = current_app.config.get('ITEMS_PER_PAGE', 50)
    maximum = current_app.config.get('MAX_ITEMS_PER_PAGE', 100)
    limit = default if not limit or limit < 1 else min(limit, maximum)
    offset = 0 if not offset or offset < 0 else offset
    return limit, offset


def get_listing_rating_summary(listing_ids):
    if not listing_ids:
        return {}

    rows = db.session.query(
        Review.listing_id,
        Review.rating,
        func.count(Review.id)
    ).filter(
        Review.listing_id.in_(listing_ids)
    ).group_by(Review.listing_id, Review.rating).all()

    summary = {}
    for listing_id, rating, count in rows:
        entry = summary.setdefault(listing_id, {
            'count': 0,
            'sum': 0,
            'percents': {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
        })
        entry['count'] += count
        entry['sum'] += rating * count
        entry['percents'][rating] = entry['percents'].get(rating, 0) + count

    # Normalize to avg + percents
    for listing_id, entry in summary.items():
        total = entry['count']
        avg = (entry['sum'] / total) if total else 0.0
        percents = {
            k: int(round((v / total) * 100)) if total else 0
            for k, v in entry['percents'].items()
        }
        summary[listing_id] = {
            'avg': avg,
            'count': total,
            'percents': percents
        }

    return summary
