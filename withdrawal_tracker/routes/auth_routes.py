from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from withdrawal_tracker.schemas.user_schema import LoginSchema
from withdrawal_tracker.services.auth_service import authenticate_user, generate_access_token, generate_tokens_for_user
from withdrawal_tracker.services.permissions import role_display_name
from withdrawal_tracker.services.workflow_service import get_workflow_manager
from withdrawal_tracker.utils.auth_utils import current_user
from withdrawal_tracker.utils.response_formatter import success_response, error_response

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@bp.route("/login", methods=["POST"])
def login():
    data = LoginSchema().load(request.get_json() or {})
    user = authenticate_user(data["email"], data["password"])
    access, refresh = generate_tokens_for_user(user)

    return success_response({
        "access_token": access,
        "refresh_token": refresh,
        "user": user.to_dict(),
    })


@bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    user = current_user()
    if not user:
        return error_response("UNAUTHORIZED", "Unknown or inactive user", status=401)
    return success_response({"access_token": generate_access_token(user)})


@bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    user = current_user()
    if not user:
        return error_response("UNAUTHORIZED", "Unknown or inactive user", status=401)

    permissions = get_workflow_manager().permissions
    payload = user.to_dict()
    payload["role_display_name"] = role_display_name(user.role)
    payload["available_actions"] = permissions.available_actions(user.role)
    return success_response({"user": payload})
