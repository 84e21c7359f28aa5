from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from withdrawal_tracker.models.enums import Decision
from withdrawal_tracker.schemas.request_schema import (
    CommentSchema,
    CreateRequestSchema,
    ReassignSchema,
    RequestListQuerySchema,
    TransitionSchema,
    UpdateFieldsSchema,
)
from withdrawal_tracker.services.comment_service import add_comment, get_request_comments
from withdrawal_tracker.services.permissions import PERM_VIEW_AUDIT_LOG, PERM_VIEW_DASHBOARD
from withdrawal_tracker.services.request_service import (
    build_request_query,
    get_assigned_requests,
    get_created_requests,
    get_dashboard_stats,
    get_regional_stats,
)
from withdrawal_tracker.services.workflow_service import get_workflow_manager, modification_comment
from withdrawal_tracker.utils.auth_utils import current_user
from withdrawal_tracker.utils.exceptions import AUDIT_WRITE_FAILED
from withdrawal_tracker.utils.pagination import paginate_query
from withdrawal_tracker.utils.response_formatter import success_response, error_response

bp = Blueprint("requests", __name__, url_prefix="/api/v1/requests")


def _actor():
    user = current_user()
    if not user:
        return None, error_response("UNAUTHORIZED", "Unknown or inactive user", status=401)
    return user, None


# ==========================================================
#  POST /requests
# ==========================================================
@bp.route("", methods=["POST"])
@jwt_required()
def create_request():
    user, err = _actor()
    if err:
        return err

    data = CreateRequestSchema().load(request.get_json() or {})
    draft = data.pop("draft", False)

    req = get_workflow_manager().create_request(data, user.id, draft=draft)
    return success_response({"request": req.to_dict()}, message="Request created", status=201)


# ==========================================================
#  GET /requests
#  Filters: stage, region, country, assigned_to, created_by,
#           priority, currency, search, page, limit
# ==========================================================
@bp.route("", methods=["GET"])
@jwt_required()
def list_requests():
    user, err = _actor()
    if err:
        return err

    args = RequestListQuerySchema().load(request.args.to_dict())
    page, limit, search = args.pop("page"), args.pop("limit"), args.pop("search")

    items, pagination = paginate_query(build_request_query(args, search), page, limit)
    return success_response({
        "requests": [r.to_dict() for r in items],
        "pagination": pagination,
    })


@bp.route("/assigned", methods=["GET"])
@jwt_required()
def assigned_requests():
    user, err = _actor()
    if err:
        return err
    return success_response({"requests": [r.to_dict() for r in get_assigned_requests(user.id)]})


@bp.route("/created", methods=["GET"])
@jwt_required()
def created_requests():
    user, err = _actor()
    if err:
        return err
    return success_response({"requests": [r.to_dict() for r in get_created_requests(user.id)]})


@bp.route("/<request_id>", methods=["GET"])
@jwt_required()
def get_request(request_id):
    user, err = _actor()
    if err:
        return err

    manager = get_workflow_manager()
    req = manager.get_request(request_id)
    payload = req.to_dict()
    payload["allowed_actions"] = manager.permissions.allowed_actions_for_stage(
        user.role, req.current_stage, req.created_by, user.id
    )
    return success_response({"request": payload})


# ==========================================================
#  PATCH /requests/<id>  (edit descriptive fields)
# ==========================================================
@bp.route("/<request_id>", methods=["PATCH"])
@jwt_required()
def update_request(request_id):
    user, err = _actor()
    if err:
        return err

    patch = UpdateFieldsSchema().load(request.get_json() or {})
    expected_version = patch.pop("expected_version", None)

    req, changed = get_workflow_manager().update_fields(
        request_id, patch, user.id, expected_version=expected_version
    )
    return success_response({"request": req.to_dict(), "changed_fields": changed})


# ==========================================================
#  POST /requests/<id>/transition
# ==========================================================
@bp.route("/<request_id>/transition", methods=["POST"])
@jwt_required()
def transition_request(request_id):
    user, err = _actor()
    if err:
        return err

    data = TransitionSchema().load(request.get_json() or {})
    comments = data["comments"]
    if data["decision"] == Decision.APPROVE and data["modified_fields"] is not None and not comments.strip():
        comments = modification_comment(data["modified_fields"])

    outcome = get_workflow_manager().transition(
        request_id,
        data["decision"],
        comments,
        user.id,
        expected_version=data["expected_version"],
    )

    warnings = []
    if not outcome.audit_logged:
        current_app.logger.warning("Audit trail incomplete for request %s", request_id)
        warnings.append(AUDIT_WRITE_FAILED)

    return success_response({
        "request": outcome.request.to_dict(),
        "previous_stage": outcome.previous_stage,
        "fallback_level": outcome.assignment.fallback_level if outcome.assignment else None,
    }, warnings=warnings)


@bp.route("/<request_id>/assignee", methods=["PATCH"])
@jwt_required()
def reassign_request(request_id):
    user, err = _actor()
    if err:
        return err

    data = ReassignSchema().load(request.get_json() or {})
    req = get_workflow_manager().reassign(
        request_id,
        data["user_id"],
        user.id,
        comments=data["comments"],
        expected_version=data["expected_version"],
    )
    return success_response({"request": req.to_dict()})


@bp.route("/<request_id>/audit", methods=["GET"])
@jwt_required()
def request_audit_trail(request_id):
    user, err = _actor()
    if err:
        return err

    manager = get_workflow_manager()
    if not manager.permissions.has_permission(user.role, PERM_VIEW_AUDIT_LOG):
        return error_response("FORBIDDEN", "Audit log access required", status=403)

    manager.get_request(request_id)
    return success_response({"entries": [e.to_dict() for e in manager.audit.for_request(request_id)]})


@bp.route("/<request_id>/comments", methods=["GET"])
@jwt_required()
def list_comments(request_id):
    user, err = _actor()
    if err:
        return err

    get_workflow_manager().get_request(request_id)
    return success_response({"comments": [c.to_dict() for c in get_request_comments(request_id)]})


@bp.route("/<request_id>/comments", methods=["POST"])
@jwt_required()
def create_comment(request_id):
    user, err = _actor()
    if err:
        return err

    data = CommentSchema().load(request.get_json() or {})
    comment = add_comment(get_workflow_manager(), request_id, user.id, data["comment_text"], data["comment_type"])
    return success_response({"comment": comment.to_dict()}, status=201)


@bp.route("/<request_id>/actions", methods=["GET"])
@jwt_required()
def request_actions(request_id):
    user, err = _actor()
    if err:
        return err

    manager = get_workflow_manager()
    req = manager.get_request(request_id)
    return success_response({
        "stage": req.current_stage,
        "actions": manager.permissions.allowed_actions_for_stage(
            user.role, req.current_stage, req.created_by, user.id
        ),
    })


@bp.route("/stats/dashboard", methods=["GET"])
@jwt_required()
def dashboard_stats():
    user, err = _actor()
    if err:
        return err

    if not get_workflow_manager().permissions.has_permission(user.role, PERM_VIEW_DASHBOARD):
        return error_response("FORBIDDEN", "Dashboard access required", status=403)

    mine = request.args.get("mine", "").lower() in ("1", "true", "yes")
    return success_response({"stats": get_dashboard_stats(user.id if mine else None)})


@bp.route("/stats/regional", methods=["GET"])
@jwt_required()
def regional_stats():
    user, err = _actor()
    if err:
        return err

    if not get_workflow_manager().permissions.has_permission(user.role, PERM_VIEW_DASHBOARD):
        return error_response("FORBIDDEN", "Dashboard access required", status=403)

    return success_response({"regions": get_regional_stats()})
