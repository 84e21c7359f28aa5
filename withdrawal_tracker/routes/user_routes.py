from flask import Blueprint, request

from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.enums import UserRole
from withdrawal_tracker.models.user import User
from withdrawal_tracker.schemas.user_schema import CreateUserSchema, UpdateUserSchema, UserPublicSchema
from withdrawal_tracker.services.auth_service import register_user, update_user
from withdrawal_tracker.utils.auth_utils import roles_required
from withdrawal_tracker.utils.response_formatter import success_response, error_response

bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@bp.route("", methods=["GET"])
@roles_required(UserRole.ADMIN)
def list_users(user):
    q = User.query.order_by(User.created_at.desc())

    role = request.args.get("role")
    if role:
        q = q.filter(User.role == role)

    region = request.args.get("region")
    if region:
        q = q.filter(User.regional_assignment == region)

    search = request.args.get("q", "").strip()
    if search:
        q = q.filter((User.email.ilike(f"%{search}%")) | (User.full_name.ilike(f"%{search}%")))

    return success_response({"users": UserPublicSchema(many=True).dump(q.all())})


@bp.route("", methods=["POST"])
@roles_required(UserRole.ADMIN)
def create_user(user):
    data = CreateUserSchema().load(request.get_json() or {})
    created = register_user(
        data["email"],
        data["password"],
        data["full_name"],
        data["role"],
        regional_assignment=data["regional_assignment"],
    )
    return success_response({"user": UserPublicSchema().dump(created)}, status=201)


@bp.route("/<user_id>", methods=["PATCH"])
@roles_required(UserRole.ADMIN)
def patch_user(user_id, user):
    target = db.session.get(User, user_id)
    if not target:
        return error_response("NOT_FOUND", "User not found", status=404)

    data = UpdateUserSchema().load(request.get_json() or {})
    updated = update_user(target, **data)
    return success_response({"user": UserPublicSchema().dump(updated)})
