from estatehub.extensions import db
from estatehub.models import AdminLog
from flask import has_request_context, request
import logging
import json
import os

logger = logging.getLogger(__name__)
major_logger = logging.getLogger('major_events')
if not major_logger.handlers:
    major_log_path = os.environ.get('MAJOR_EVENTS_LOG', 'major_events.log')
    handler = (
        logging.FileHandler(major_log_path) if major_log_path
        else logging.NullHandler()
    )
    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)
    major_logger.addHandler(handler)
    major_logger.setLevel(logging.INFO)
    major_logger.propagate = False

MAJOR_ACTION_PREFIXES = (
    'approve_',
    'reject_',
    'promote_',
    'revoke_',
    'payment_',
    'subscription_',
)


def _should_log_major(action: str) -> bool:
    if not action:
        return False
    return action.startswith(MAJOR_ACTION_PREFIXES)


def _brief(payload):
    if payload is None:
        return None
    try:
        brief = json.dumps(payload, ensure_ascii=False, separators=(',', ':'),
                           default=str)
    except (TypeError, ValueError):
        return None
    if len(brief) > 600:
        brief = brief[:600] + '...'
    return brief


def log_major_event(action, **fields):
    """Record a payment/subscription event that has no admin actor."""
    if not _should_log_major(action):
        return
    major_logger.info("action=%s fields=%s", action, _brief(fields))


def log_admin_action(
        ctx,
        action,
        target_type=None,
        target_id=None,
        details=None):
    """Append an AdminLog row. Rows are never updated afterwards."""
    try:
        entry = AdminLog(
            admin_id=ctx.user_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            ip_address=ctx.ip,
        )

        if details:
            entry.set_details(details)

        db.session.add(entry)
        db.session.commit()

        path = None
        method = None
        if has_request_context():
            path = request.path
            method = request.method

        payload_brief = _brief(details)

        logger.info(
            "ADMIN action=%s admin_id=%s target_type=%s "
            "target_id=%s method=%s path=%s details=%s",
            action,
            ctx.user_id,
            target_type,
            target_id,
            method,
            path,
            payload_brief,
        )

        if _should_log_major(action):
            major_logger.info(
                "action=%s admin_id=%s target_type=%s "
                "target_id=%s method=%s path=%s details=%s",
                action,
                ctx.user_id,
                target_type,
                target_id,
                method,
                path,
                payload_brief,
            )

        return entry

    except Exception as e:
        logger.error(f"Failed to log admin action: {e}", exc_info=True)
        db.session.rollback()
        return None


def list_admin_logs(limit, offset, action=None):
    query = AdminLog.query
    if action:
        query = query.filter(AdminLog.action == action)
    return query.order_by(
        AdminLog.created_at.desc(), AdminLog.id.desc()
    ).limit(limit).offset(offset).all()
