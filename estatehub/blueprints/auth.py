from flask import Blueprint, jsonify
from flask_login import (
    login_user,
    logout_user,
    login_required,
    current_user,
)
from estatehub.extensions import db
from estatehub.models import User, UserRole
from estatehub.services.subscription_service import has_active_subscription
from estatehub.utils import get_json_body, get_text
from datetime import datetime
import logging
import re

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__)

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def user_to_dict(user):
    return {
        'id': user.id,
        'email': user.email,
        'name': user.name,
        'phone': user.phone,
        'whatsapp': user.whatsapp,
        'role': user.role.value,
        'subscription_status': user.subscription_status.value,
        'subscription_expires_at': (
            user.subscription_expires_at.isoformat()
            if user.subscription_expires_at else None
        ),
        'is_premium': has_active_subscription(user),
        'is_active': user.is_active,
        'created_at': user.created_at.isoformat(),
    }


@bp.route('/api/auth/login', methods=['POST'])
def login():
    data = get_json_body()
    email = get_text(data, 'email').lower()
    password = get_text(data, 'password', strip=False)

    if not email or not password:
        return jsonify({'error': 'Email and password cannot be empty',
                        'code': 'VALIDATION'}), 400

    user = User.query.filter_by(email=email).first()

    if user and user.check_password(password) and user.is_active:
        login_user(user, remember=True)
        user.last_login_at = datetime.utcnow()
        db.session.commit()
        logger.info("Login success user_id=%s", user.id)
        return jsonify({'ok': True, 'user': user_to_dict(user)})

    logger.info(
        "Login failed for %s: %s",
        email, 'invalid_credentials' if user else 'user_not_found')
    return jsonify({'error': 'Invalid email or password',
                    'code': 'UNAUTHORIZED'}), 401


@bp.route('/api/auth/register', methods=['POST'])
def register():
    data = get_json_body()
    email = get_text(data, 'email').lower()
    password = get_text(data, 'password', strip=False)
    name = get_text(data, 'name') or None
    phone = get_text(data, 'phone') or None
    whatsapp = get_text(data, 'whatsapp') or None

    if not email or not password:
        return jsonify({'error': 'Email and password cannot be empty',
                        'code': 'VALIDATION'}), 400
    if not EMAIL_RE.match(email):
        return jsonify({'error': 'Invalid email address',
                        'code': 'VALIDATION'}), 400
    if len(password) < 6:
        return jsonify({'error': 'Password must be at least 6 characters',
                        'code': 'VALIDATION'}), 400

    # Check if email already exists
    if User.query.filter_by(email=email).first():
        return jsonify({'error': 'Email already registered',
                        'code': 'VALIDATION'}), 400

    # Self-registration always yields a plain user; sellers are promoted.
    user = User(
        email=email,
        name=name,
        phone=phone,
        whatsapp=whatsapp,
        role=UserRole.USER,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    logger.info("User registered user_id=%s", user.id)

    # Auto login
    login_user(user, remember=True)

    return jsonify({'ok': True, 'user': user_to_dict(user)}), 201


@bp.route('/api/auth/logout', methods=['POST'])
@login_required
def logout():
    logger.info("Logout user_id=%s", current_user.id)
    logout_user()
    return jsonify({'success': True})


@bp.route('/api/auth/me', methods=['GET'])
def me():
    if not current_user.is_authenticated:
        return jsonify({'user': None})
    return jsonify({'user': user_to_dict(current_user)})
