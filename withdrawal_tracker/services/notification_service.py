import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.enums import NotificationType
from withdrawal_tracker.models.notification import Notification

logger = logging.getLogger(__name__)

TEMPLATES = {
    NotificationType.REQUEST_SUBMITTED: (
        "New withdrawal request",
        "Request {ref_number} for {beneficiary_name} is waiting for your review.",
    ),
    NotificationType.REQUEST_ASSIGNED: (
        "Request assigned to you",
        "Request {ref_number} is now at {stage_label} and assigned to you.",
    ),
    NotificationType.REQUEST_APPROVED: (
        "Request approved",
        "Request {ref_number} was approved and moved to {stage_label}.",
    ),
    NotificationType.REQUEST_RETURNED: (
        "Request returned for modification",
        "Request {ref_number} was returned by the operations team: {comments}",
    ),
    NotificationType.REQUEST_REJECTED: (
        "Request rejected",
        "Request {ref_number} was rejected at {stage_label}: {comments}",
    ),
    NotificationType.REQUEST_DISBURSED: (
        "Request disbursed",
        "Request {ref_number} has been disbursed.",
    ),
}


def get_user_notifications(user_id, is_read=None):
    q = Notification.query.filter_by(user_id=user_id)
    if is_read is not None:
        q = q.filter_by(is_read=is_read)
    return q.order_by(Notification.created_at.desc())

def mark_notification_read(notification):
    notification.is_read = True
    db.session.commit()
    return notification

def mark_all_read_for_user(user_id):
    updated = Notification.query.filter_by(user_id=user_id, is_read=False).update({"is_read": True})
    db.session.commit()
    return updated


class _SafeContext(dict):
    def __missing__(self, key):
        return ""


def notify(notif_type, recipient_user_id, context=None):
    """Queue an in-app notification. Never raises; returns the row or ``None``."""
    if not recipient_user_id:
        return None
    context = context or {}
    title, template = TEMPLATES.get(notif_type, ("Withdrawal request update", "{message}"))
    notif = Notification(
        user_id=recipient_user_id,
        type=notif_type,
        title=title,
        message=template.format_map(_SafeContext(context)),
        details=context,
        created_at=datetime.utcnow(),
    )
    try:
        db.session.add(notif)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning("Could not notify %s (%s)", recipient_user_id, notif_type, exc_info=True)
        return None
    return notif
