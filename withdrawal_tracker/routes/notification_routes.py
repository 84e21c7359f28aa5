from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.notification import Notification
from withdrawal_tracker.services.notification_service import (
    get_user_notifications,
    mark_notification_read,
    mark_all_read_for_user,
)
from withdrawal_tracker.utils.auth_utils import current_user
from withdrawal_tracker.utils.pagination import paginate_query
from withdrawal_tracker.utils.response_formatter import success_response, error_response

bp = Blueprint("notifications", __name__, url_prefix="/api/v1/notifications")


@bp.route("", methods=["GET"])
@jwt_required()
def get_notifications():
    user = current_user()
    if not user:
        return error_response("UNAUTHORIZED", "Unknown or inactive user", status=401)

    unread_only = request.args.get("unread", "").lower() in ("1", "true", "yes")
    query = get_user_notifications(user.id, is_read=False if unread_only else None)
    items, pagination = paginate_query(query, request.args.get("page"), request.args.get("limit"))

    return success_response({
        "notifications": [n.to_dict() for n in items],
        "pagination": pagination,
    })


@bp.route("/<notif_id>/read", methods=["PATCH"])
@jwt_required()
def read_notification(notif_id):
    user = current_user()
    if not user:
        return error_response("UNAUTHORIZED", "Unknown or inactive user", status=401)

    notif = db.session.get(Notification, notif_id)
    if not notif or notif.user_id != user.id:
        return error_response("NOT_FOUND", "Notification not found", status=404)

    return success_response({"notification": mark_notification_read(notif).to_dict()})


@bp.route("/read-all", methods=["PATCH"])
@jwt_required()
def read_all_notifications():
    user = current_user()
    if not user:
        return error_response("UNAUTHORIZED", "Unknown or inactive user", status=401)

    updated = mark_all_read_for_user(user.id)
    return success_response({"updated": updated})
