from decimal import Decimal

from sqlalchemy import or_

from withdrawal_tracker.models.enums import WorkflowStage
from withdrawal_tracker.models.withdrawal_request import WithdrawalRequest
from withdrawal_tracker.services.regional_router import normalize_country

PENDING_STAGES = (
    WorkflowStage.SUBMITTED,
    WorkflowStage.UNDER_LOAN_REVIEW,
    WorkflowStage.UNDER_OPERATIONS_REVIEW,
    WorkflowStage.RETURNED_FOR_MODIFICATION,
)

FILTER_COLUMNS = {
    "stage": WithdrawalRequest.current_stage,
    "region": WithdrawalRequest.region,
    "country": WithdrawalRequest.country,
    "assigned_to": WithdrawalRequest.assigned_to,
    "created_by": WithdrawalRequest.created_by,
    "priority": WithdrawalRequest.priority,
    "currency": WithdrawalRequest.currency,
}


def build_request_query(filters=None, search=None):
    q = WithdrawalRequest.query

    for key, value in (filters or {}).items():
        column = FILTER_COLUMNS.get(key)
        if column is None or not value or value == "all":
            continue
        if key == "country":
            value = normalize_country(value)
        q = q.filter(column == value)

    if search:
        term = f"%{search.strip()}%"
        q = q.filter(
            or_(
                WithdrawalRequest.beneficiary_name.ilike(term),
                WithdrawalRequest.project_number.ilike(term),
                WithdrawalRequest.ref_number.ilike(term),
                WithdrawalRequest.country.ilike(term),
            )
        )

    return q.order_by(WithdrawalRequest.created_at.desc())


def get_assigned_requests(user_id):
    return build_request_query({"assigned_to": user_id}).all()


def get_created_requests(user_id):
    return build_request_query({"created_by": user_id}).all()


def get_dashboard_stats(user_id=None):
    q = WithdrawalRequest.query
    if user_id:
        q = q.filter(or_(WithdrawalRequest.assigned_to == user_id, WithdrawalRequest.created_by == user_id))
    rows = q.with_entities(WithdrawalRequest.current_stage, WithdrawalRequest.amount).all()

    by_stage = {stage: 0 for stage in WorkflowStage.ALL}
    total_amount = Decimal("0")
    for stage, amount in rows:
        by_stage[stage] = by_stage.get(stage, 0) + 1
        total_amount += amount or 0

    total = len(rows)
    return {
        "total_requests": total,
        "pending_review": by_stage[WorkflowStage.UNDER_LOAN_REVIEW],
        "operations_review": by_stage[WorkflowStage.UNDER_OPERATIONS_REVIEW],
        "returned_for_modification": by_stage[WorkflowStage.RETURNED_FOR_MODIFICATION],
        "approved": by_stage[WorkflowStage.APPROVED],
        "disbursed": by_stage[WorkflowStage.DISBURSED],
        "by_stage": by_stage,
        "total_amount": float(total_amount),
        "average_amount": float(total_amount / total) if total else 0.0,
    }


def get_regional_stats():
    rows = WithdrawalRequest.query.with_entities(
        WithdrawalRequest.region, WithdrawalRequest.current_stage, WithdrawalRequest.amount
    ).all()

    stats = {}
    for region, stage, amount in rows:
        entry = stats.setdefault(region, {
            "total": 0,
            "pending": 0,
            "approved": 0,
            "disbursed": 0,
            "total_amount": 0.0,
        })
        entry["total"] += 1
        entry["total_amount"] += float(amount or 0)
        if stage in PENDING_STAGES:
            entry["pending"] += 1
        elif stage == WorkflowStage.APPROVED:
            entry["approved"] += 1
        elif stage == WorkflowStage.DISBURSED:
            entry["disbursed"] += 1
    return stats
