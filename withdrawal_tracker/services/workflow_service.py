"""Withdrawal request workflow.

Five working stages, one terminal stage::

    submitted -> under_loan_review -> under_operations_review -> approved -> disbursed
                                         |            ^
                                  reject v            | approve
                                 returned_for_modification

Rejecting anywhere other than operations review leaves the request where it
is (with a fresh assignee and the rejection reason recorded).
"""
import logging
from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.enums import (
    AuditAction,
    CommentType,
    Decision,
    NotificationType,
    Priority,
    WorkflowStage,
)
from withdrawal_tracker.models.request_comment import RequestComment
from withdrawal_tracker.models.user import User
from withdrawal_tracker.models.withdrawal_request import WithdrawalRequest, gen_request_id
from withdrawal_tracker.services.assignment_service import FALLBACK_ROLE, Assignment, role_for_stage
from withdrawal_tracker.services.permissions import action_for_decision
from withdrawal_tracker.services.regional_router import REGIONAL_TEAMS, normalize_country, region_for
from withdrawal_tracker.utils.exceptions import (
    AssignmentFailure,
    Conflict,
    InvalidTransition,
    NotFound,
    Unauthorized,
    UnsupportedCountry,
    ValidationFailure,
)
from withdrawal_tracker.utils.validation import generate_sequential_numbers

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 2000

TRANSITIONS = {
    WorkflowStage.SUBMITTED: {
        Decision.APPROVE: WorkflowStage.UNDER_LOAN_REVIEW,
        Decision.REJECT: WorkflowStage.SUBMITTED,
    },
    WorkflowStage.UNDER_LOAN_REVIEW: {
        Decision.APPROVE: WorkflowStage.UNDER_OPERATIONS_REVIEW,
        Decision.REJECT: WorkflowStage.UNDER_LOAN_REVIEW,
    },
    WorkflowStage.RETURNED_FOR_MODIFICATION: {
        Decision.APPROVE: WorkflowStage.UNDER_OPERATIONS_REVIEW,
        Decision.REJECT: WorkflowStage.RETURNED_FOR_MODIFICATION,
    },
    WorkflowStage.UNDER_OPERATIONS_REVIEW: {
        Decision.APPROVE: WorkflowStage.APPROVED,
        Decision.REJECT: WorkflowStage.RETURNED_FOR_MODIFICATION,
    },
    WorkflowStage.APPROVED: {
        Decision.APPROVE: WorkflowStage.DISBURSED,
        Decision.REJECT: WorkflowStage.APPROVED,
    },
}

# descriptive fields only; identity and money fields are fixed at creation
EDITABLE_FIELDS = ("value_date", "project_details", "reference_documentation", "priority")


def next_stage(stage, decision):
    try:
        return TRANSITIONS[stage][decision]
    except KeyError:
        raise InvalidTransition(stage, decision) from None


def stage_label(stage):
    return WorkflowStage.LABELS.get(stage, stage)


def compose_status(decision, current_stage, new_stage, comments=None, region=None):
    """Human readable status line for a request after a decision."""
    if decision == Decision.REJECT:
        if current_stage == WorkflowStage.UNDER_OPERATIONS_REVIEW:
            base = "Operations team rejected - Returned to loan administrator for modifications"
        else:
            base = f"Rejected at {stage_label(current_stage)} stage"
        return f"{base} - {comments}" if comments else base

    if new_stage == WorkflowStage.UNDER_LOAN_REVIEW:
        return "Submitted by archive team - Pending loan administrator review"
    if new_stage == WorkflowStage.UNDER_OPERATIONS_REVIEW:
        team = REGIONAL_TEAMS.get(region, {}).get("name", "operations team")
        if current_stage == WorkflowStage.RETURNED_FOR_MODIFICATION:
            return f"Modified request resubmitted - Forwarded to {team} for review"
        return f"Loan administrator approved - Forwarded to {team} for review"
    if new_stage == WorkflowStage.APPROVED:
        return "Operations team approved - Ready for core banking disbursement"
    if new_stage == WorkflowStage.DISBURSED:
        return "Core banking completed disbursement - Request fulfilled"
    return f"Approved - {stage_label(new_stage)}"


def stage_audit_fields(stage, user_id, comments, timestamp):
    """Reviewer columns to stamp for the stage a request is leaving."""
    if stage in (WorkflowStage.UNDER_LOAN_REVIEW, WorkflowStage.RETURNED_FOR_MODIFICATION):
        return {
            "loan_admin_reviewed_by": user_id,
            "loan_admin_reviewed_at": timestamp,
            "loan_admin_comments": comments,
        }
    if stage == WorkflowStage.UNDER_OPERATIONS_REVIEW:
        return {
            "regional_ops_reviewed_by": user_id,
            "regional_ops_reviewed_at": timestamp,
            "regional_ops_comments": comments,
        }
    if stage == WorkflowStage.APPROVED:
        return {
            "core_banking_processed_by": user_id,
            "core_banking_processed_at": timestamp,
        }
    return {}


def modification_comment(changed_fields, note=None):
    """Auto-generated approval comment for the edit-then-approve sequence."""
    suffix = f" {note}" if note else ""
    if changed_fields:
        return f"Request modified and approved. Changes: {', '.join(changed_fields)}{suffix}"
    return f"Request approved without modifications{suffix}"


def validate_decision(decision, comments):
    if decision not in Decision.ALL:
        raise ValidationFailure(
            f"Unknown decision '{decision}'",
            details={"field": "decision", "allowed": list(Decision.ALL)},
        )
    comments = (comments or "").strip()
    if decision == Decision.REJECT and not comments:
        raise ValidationFailure("A reason is required to reject a request", details={"field": "comments"})
    if len(comments) > MAX_COMMENT_LENGTH:
        raise ValidationFailure(
            f"Comments cannot exceed {MAX_COMMENT_LENGTH} characters",
            details={"field": "comments"},
        )
    return comments


@dataclass
class TransitionOutcome:
    request: WithdrawalRequest
    previous_stage: str
    audit_logged: bool
    assignment: object = None


def _json_value(value):
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if value is not None and not isinstance(value, (str, int, float, bool)):
        return str(value)
    return value


class WorkflowManager:
    def __init__(self, permissions, resolver, audit, notifier=None):
        self.permissions = permissions
        self.resolver = resolver
        self.audit = audit
        self.notifier = notifier

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------
    def get_request(self, request_id):
        req = db.session.get(WithdrawalRequest, request_id)
        if req is None:
            raise NotFound(f"Request {request_id} not found", details={"request_id": request_id})
        return req

    def get_actor(self, actor_id):
        user = db.session.get(User, actor_id) if actor_id else None
        if user is None or not user.is_active:
            raise Unauthorized("Unknown or inactive user", details={"user_id": actor_id})
        return user

    def _resolve_assignee(self, stage, region):
        if role_for_stage(stage) is None:
            return None
        assignment = self.resolver.assignee_for(stage, region)
        if assignment is None:
            raise AssignmentFailure(stage, region)
        return assignment

    def _stamp_assignee(self, assignment, timestamp):
        if assignment is None:
            return
        assignee = db.session.get(User, assignment.user_id)
        if assignee is not None:
            assignee.last_assigned_at = timestamp

    def _commit(self, request_id):
        try:
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            logger.warning("Concurrent update detected on request %s", request_id)
            raise Conflict(details={"request_id": request_id})
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to persist request %s", request_id)
            raise

    def _check_version(self, req, expected_version):
        if expected_version is not None and int(expected_version) != req.version:
            raise Conflict(
                "Request has changed since it was loaded",
                details={"request_id": req.id, "expected_version": expected_version, "current_version": req.version},
            )

    def _notify(self, notif_type, recipient, context):
        if self.notifier is None or not recipient:
            return
        self.notifier(notif_type, recipient, context)

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------
    def create_request(self, data, creator_id, draft=False):
        creator = self.get_actor(creator_id)
        if not self.permissions.can_perform_action(creator.role, "create"):
            raise Unauthorized(f"Role '{creator.role}' cannot create requests")

        region = region_for(data.get("country"))
        if region is None:
            raise UnsupportedCountry(data.get("country"))

        if draft:
            # a draft stays with whoever is writing it
            stage = WorkflowStage.SUBMITTED
            assignment = Assignment(creator.id, FALLBACK_ROLE)
        else:
            stage = WorkflowStage.UNDER_LOAN_REVIEW
            assignment = self._resolve_assignee(stage, region)

        generated = generate_sequential_numbers()
        beneficiary = data["beneficiary_name"]
        if draft:
            status = f"Draft - {beneficiary} - Awaiting submission"
        else:
            status = f"New request - {beneficiary} - Pending loan review"

        now = datetime.utcnow()
        req = WithdrawalRequest(
            id=gen_request_id(),
            project_number=data.get("project_number") or generated["project_number"],
            ref_number=data.get("ref_number") or generated["ref_number"],
            country=normalize_country(data["country"]),
            region=region,
            beneficiary_name=beneficiary,
            amount=data["amount"],
            currency=data["currency"],
            swift_code=data.get("swift_code"),
            iban=data.get("iban"),
            value_date=data.get("value_date"),
            project_details=data.get("project_details"),
            reference_documentation=data.get("reference_documentation"),
            priority=data.get("priority") or Priority.MEDIUM,
            current_stage=stage,
            status=status,
            assigned_to=assignment.user_id if assignment else None,
            created_by=creator.id,
            created_at=now,
            updated_at=now,
        )
        db.session.add(req)
        self._stamp_assignee(assignment, now)
        self._commit(req.id)
        logger.info("Created request %s (%s, region=%s) by %s", req.id, stage, region, creator.id)

        self.audit.append(
            request_id=req.id,
            actor_user_id=creator.id,
            action_type=AuditAction.CREATE,
            new_stage=stage,
            new_status=status,
            amount_involved=req.amount,
            metadata={
                "country": req.country,
                "region": region,
                "currency": req.currency,
                "assigned_to": req.assigned_to,
                "fallback_level": assignment.fallback_level if assignment else None,
            },
        )
        self._notify(NotificationType.REQUEST_SUBMITTED, req.assigned_to, {
            "request_id": req.id,
            "ref_number": req.ref_number,
            "beneficiary_name": req.beneficiary_name,
            "stage_label": stage_label(stage),
        })
        return req

    def transition(self, request_id, decision, comments, actor_id, expected_version=None):
        comments = validate_decision(decision, comments)

        req = self.get_request(request_id)
        actor = self.get_actor(actor_id)
        current = req.current_stage
        action = action_for_decision(decision, current)
        if not self.permissions.can_perform_action(actor.role, action, current, req.created_by, actor.id):
            raise Unauthorized(
                f"Role '{actor.role}' cannot {action} a request at {stage_label(current)}",
                details={"role": actor.role, "action": action, "stage": current},
            )

        target = next_stage(current, decision)
        self._check_version(req, expected_version)
        assignment = self._resolve_assignee(target, req.region)

        previous_status = req.status
        status = compose_status(decision, current, target, comments, req.region)
        now = datetime.utcnow()

        req.current_stage = target
        req.assigned_to = assignment.user_id if assignment else None
        req.status = status
        req.updated_at = now
        for column, value in stage_audit_fields(current, actor.id, comments or None, now).items():
            setattr(req, column, value)
        if decision == Decision.REJECT:
            req.rejection_reason = comments
        if target == WorkflowStage.DISBURSED:
            req.completed_at = now
        if comments:
            db.session.add(RequestComment(
                request_id=req.id,
                user_id=actor.id,
                comment_text=comments,
                comment_type=CommentType.DECISION,
                created_at=now,
            ))
        self._stamp_assignee(assignment, now)
        self._commit(req.id)
        logger.info(
            "Request %s: %s by %s (%s -> %s), assigned to %s",
            req.id, decision, actor.id, current, target, req.assigned_to,
        )

        logged = self.audit.append(
            request_id=req.id,
            actor_user_id=actor.id,
            action_type=action,
            previous_stage=current,
            new_stage=target,
            previous_status=previous_status,
            new_status=status,
            amount_involved=req.amount,
            comments=comments or None,
            metadata={
                "decision": decision,
                "region": req.region,
                "assigned_to": req.assigned_to,
                "fallback_level": assignment.fallback_level if assignment else None,
            },
        )
        if not logged:
            logger.warning("Request %s transitioned but audit entry was not written", req.id)

        self._notify_transition(req, decision, current, target, comments)
        return TransitionOutcome(request=req, previous_stage=current, audit_logged=logged, assignment=assignment)

    def _notify_transition(self, req, decision, current, target, comments):
        context = {
            "request_id": req.id,
            "ref_number": req.ref_number,
            "beneficiary_name": req.beneficiary_name,
            "stage_label": stage_label(target),
            "comments": comments,
        }
        if target == WorkflowStage.DISBURSED:
            self._notify(NotificationType.REQUEST_DISBURSED, req.created_by, context)
            return
        if decision == Decision.REJECT and target == WorkflowStage.RETURNED_FOR_MODIFICATION:
            self._notify(NotificationType.REQUEST_RETURNED, req.assigned_to, context)
            return
        if decision == Decision.REJECT:
            context["stage_label"] = stage_label(current)
            self._notify(NotificationType.REQUEST_REJECTED, req.assigned_to, context)
            return
        self._notify(NotificationType.REQUEST_ASSIGNED, req.assigned_to, context)
        if target == WorkflowStage.APPROVED:
            self._notify(NotificationType.REQUEST_APPROVED, req.created_by, context)

    def update_fields(self, request_id, patch, actor_id, expected_version=None):
        """Edit descriptive fields. Returns ``(request, changed_field_names)``."""
        forbidden = sorted(set(patch) - set(EDITABLE_FIELDS))
        if forbidden:
            raise ValidationFailure(
                "These fields cannot be changed after creation",
                details={"fields": forbidden},
            )

        req = self.get_request(request_id)
        actor = self.get_actor(actor_id)
        if not self.permissions.can_perform_action(actor.role, "edit", req.current_stage, req.created_by, actor.id):
            raise Unauthorized(
                f"Role '{actor.role}' cannot edit a request at {stage_label(req.current_stage)}",
                details={"role": actor.role, "action": "edit", "stage": req.current_stage},
            )
        self._check_version(req, expected_version)

        old_values, new_values = {}, {}
        for field in EDITABLE_FIELDS:
            if field in patch and patch[field] != getattr(req, field):
                old_values[field] = _json_value(getattr(req, field))
                new_values[field] = _json_value(patch[field])
                setattr(req, field, patch[field])
        changed = list(new_values)
        if not changed:
            return req, []

        req.updated_at = datetime.utcnow()
        self._commit(req.id)
        logger.info("Request %s fields %s updated by %s", req.id, changed, actor.id)

        self.audit.append(
            request_id=req.id,
            actor_user_id=actor.id,
            action_type=AuditAction.UPDATE,
            previous_stage=req.current_stage,
            new_stage=req.current_stage,
            previous_status=req.status,
            new_status=req.status,
            amount_involved=req.amount,
            comments=f"Modified {', '.join(changed)}",
            metadata={"old_values": old_values, "new_values": new_values},
        )
        return req, changed

    def reassign(self, request_id, user_id, actor_id, comments=None, expected_version=None):
        """Hand a request to a specific active user without moving its stage."""
        req = self.get_request(request_id)
        actor = self.get_actor(actor_id)
        if not self.permissions.can_perform_action(actor.role, "assign", req.current_stage):
            raise Unauthorized(
                f"Role '{actor.role}' cannot reassign requests",
                details={"role": actor.role, "action": "assign", "stage": req.current_stage},
            )
        if req.current_stage in WorkflowStage.TERMINAL:
            raise InvalidTransition(req.current_stage, "assign")

        assignee = db.session.get(User, user_id) if user_id else None
        if assignee is None:
            raise NotFound(f"User {user_id} not found", details={"user_id": user_id})
        if not assignee.is_active:
            raise ValidationFailure("Requests can only be assigned to active users", details={"field": "user_id"})
        self._check_version(req, expected_version)

        previous = req.assigned_to
        if previous == assignee.id:
            return req

        now = datetime.utcnow()
        req.assigned_to = assignee.id
        req.updated_at = now
        assignee.last_assigned_at = now
        self._commit(req.id)
        logger.info("Request %s reassigned from %s to %s by %s", req.id, previous, assignee.id, actor.id)

        comments = (comments or "").strip() or None
        self.audit.append(
            request_id=req.id,
            actor_user_id=actor.id,
            action_type=AuditAction.ASSIGN,
            previous_stage=req.current_stage,
            new_stage=req.current_stage,
            previous_status=req.status,
            new_status=req.status,
            amount_involved=req.amount,
            comments=comments,
            metadata={"previous_assignee": previous, "new_assignee": assignee.id},
        )
        self._notify(NotificationType.REQUEST_ASSIGNED, assignee.id, {
            "request_id": req.id,
            "ref_number": req.ref_number,
            "beneficiary_name": req.beneficiary_name,
            "stage_label": stage_label(req.current_stage),
            "comments": comments,
        })
        return req


def get_workflow_manager():
    return current_app.extensions["workflow_manager"]
