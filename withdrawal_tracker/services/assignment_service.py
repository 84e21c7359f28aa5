import logging
from dataclasses import dataclass

from sqlalchemy import case

from withdrawal_tracker.models.enums import UserRole, WorkflowStage
from withdrawal_tracker.models.user import User

logger = logging.getLogger(__name__)

FALLBACK_ROLE = "role"
FALLBACK_ADMIN = "admin"
FALLBACK_ANY_ACTIVE = "any_active"

STAGE_ROLES = {
    WorkflowStage.SUBMITTED: UserRole.ARCHIVE_TEAM,
    WorkflowStage.UNDER_LOAN_REVIEW: UserRole.LOAN_ADMINISTRATOR,
    WorkflowStage.RETURNED_FOR_MODIFICATION: UserRole.LOAN_ADMINISTRATOR,
    WorkflowStage.UNDER_OPERATIONS_REVIEW: UserRole.OPERATIONS_TEAM,
    WorkflowStage.APPROVED: UserRole.CORE_BANKING,
}

# stages whose role is split by regional team
REGIONAL_STAGES = {WorkflowStage.UNDER_OPERATIONS_REVIEW}


@dataclass(frozen=True)
class Assignment:
    user_id: str
    fallback_level: str

    @property
    def is_fallback(self):
        return self.fallback_level != FALLBACK_ROLE


def role_for_stage(stage):
    return STAGE_ROLES.get(stage)


class AssignmentResolver:
    """Picks the user responsible for a request at a given stage.

    Candidates are tried in a fixed order: the stage's role (restricted to the
    request's region for operations review), then any active admin, then any
    active user. Within a step the least recently assigned user wins, with
    users who were never assigned first and ``id`` as the tie-breaker.

    The user directory is queried on every call.
    """

    def assignee_for(self, stage, region=None):
        role = role_for_stage(stage)
        if role is None:
            logger.info("Stage %s has no responsible role", stage)
            return None

        query = User.query.filter_by(role=role, is_active=True)
        if stage in REGIONAL_STAGES:
            query = query.filter_by(regional_assignment=region)
        user = self._first(query)
        if user:
            logger.debug("Assigned %s stage %s (region=%s) to %s", role, stage, region, user.id)
            return Assignment(user.id, FALLBACK_ROLE)

        logger.warning(
            "No active %s for stage %s (region=%s); falling back to admin",
            role, stage, region,
        )
        user = self._first(User.query.filter_by(role=UserRole.ADMIN, is_active=True))
        if user:
            return Assignment(user.id, FALLBACK_ADMIN)

        logger.warning("No active admin for stage %s; falling back to any active user", stage)
        user = self._first(User.query.filter_by(is_active=True))
        if user:
            return Assignment(user.id, FALLBACK_ANY_ACTIVE)

        logger.error("No active users available to take stage %s (region=%s)", stage, region)
        return None

    def _first(self, query):
        never_assigned_first = case((User.last_assigned_at.is_(None), 0), else_=1)
        return query.order_by(never_assigned_first, User.last_assigned_at.asc(), User.id.asc()).first()
