from datetime import datetime, timedelta

from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.enums import Region, UserRole, WorkflowStage
from withdrawal_tracker.services.assignment_service import (
    FALLBACK_ADMIN,
    FALLBACK_ANY_ACTIVE,
    FALLBACK_ROLE,
    AssignmentResolver,
    role_for_stage,
)


def test_role_for_stage():
    assert role_for_stage(WorkflowStage.SUBMITTED) == UserRole.ARCHIVE_TEAM
    assert role_for_stage(WorkflowStage.UNDER_LOAN_REVIEW) == UserRole.LOAN_ADMINISTRATOR
    assert role_for_stage(WorkflowStage.RETURNED_FOR_MODIFICATION) == UserRole.LOAN_ADMINISTRATOR
    assert role_for_stage(WorkflowStage.UNDER_OPERATIONS_REVIEW) == UserRole.OPERATIONS_TEAM
    assert role_for_stage(WorkflowStage.APPROVED) == UserRole.CORE_BANKING
    assert role_for_stage(WorkflowStage.DISBURSED) is None


def test_terminal_stage_has_no_assignee(app, staff):
    assert AssignmentResolver().assignee_for(WorkflowStage.DISBURSED, Region.AFRICA) is None


def test_operations_review_is_regional(app, staff):
    resolver = AssignmentResolver()
    for region, key in (
        (Region.AFRICA, "ops_africa"),
        (Region.ASIA, "ops_asia"),
        (Region.EUROPE_LATIN_AMERICA, "ops_ela"),
    ):
        assignment = resolver.assignee_for(WorkflowStage.UNDER_OPERATIONS_REVIEW, region)
        assert assignment.user_id == staff[key].id
        assert assignment.fallback_level == FALLBACK_ROLE
        assert not assignment.is_fallback


def test_non_regional_stages_ignore_region(app, make_user):
    core = make_user(UserRole.CORE_BANKING)
    assignment = AssignmentResolver().assignee_for(WorkflowStage.APPROVED, Region.ASIA)
    assert assignment.user_id == core.id


def test_inactive_users_are_skipped(app, make_user):
    make_user(UserRole.LOAN_ADMINISTRATOR, active=False)
    active = make_user(UserRole.LOAN_ADMINISTRATOR)
    assert AssignmentResolver().assignee_for(WorkflowStage.UNDER_LOAN_REVIEW).user_id == active.id


def test_operations_from_another_region_do_not_qualify(app, make_user):
    make_user(UserRole.OPERATIONS_TEAM, Region.ASIA)
    admin = make_user(UserRole.ADMIN)
    assignment = AssignmentResolver().assignee_for(WorkflowStage.UNDER_OPERATIONS_REVIEW, Region.AFRICA)
    assert assignment.user_id == admin.id
    assert assignment.fallback_level == FALLBACK_ADMIN
    assert assignment.is_fallback


def test_falls_back_to_any_active_user(app, make_user):
    make_user(UserRole.ADMIN, active=False)
    observer = make_user(UserRole.OBSERVER)
    assignment = AssignmentResolver().assignee_for(WorkflowStage.APPROVED)
    assert assignment.user_id == observer.id
    assert assignment.fallback_level == FALLBACK_ANY_ACTIVE


def test_no_active_users_returns_none(app, make_user):
    make_user(UserRole.CORE_BANKING, active=False)
    assert AssignmentResolver().assignee_for(WorkflowStage.APPROVED) is None


def test_least_recently_assigned_wins(app, make_user):
    first = make_user(UserRole.LOAN_ADMINISTRATOR)
    second = make_user(UserRole.LOAN_ADMINISTRATOR)
    third = make_user(UserRole.LOAN_ADMINISTRATOR)
    now = datetime.utcnow()
    first.last_assigned_at = now - timedelta(minutes=5)
    second.last_assigned_at = now - timedelta(minutes=10)
    third.last_assigned_at = now
    db.session.commit()

    resolver = AssignmentResolver()
    assert resolver.assignee_for(WorkflowStage.UNDER_LOAN_REVIEW).user_id == second.id

    # never-assigned users go first
    fresh = make_user(UserRole.LOAN_ADMINISTRATOR)
    assert resolver.assignee_for(WorkflowStage.UNDER_LOAN_REVIEW).user_id == fresh.id


def test_ties_break_on_user_id(app, make_user):
    users = [make_user(UserRole.CORE_BANKING) for _ in range(3)]
    expected = min(u.id for u in users)
    assert AssignmentResolver().assignee_for(WorkflowStage.APPROVED).user_id == expected


def test_same_directory_same_answer(app, staff, make_user):
    make_user(UserRole.OPERATIONS_TEAM, Region.AFRICA)
    resolver = AssignmentResolver()
    picks = {
        resolver.assignee_for(WorkflowStage.UNDER_OPERATIONS_REVIEW, Region.AFRICA).user_id
        for _ in range(5)
    }
    assert len(picks) == 1


def test_directory_changes_are_seen_immediately(app, make_user):
    resolver = AssignmentResolver()
    assert resolver.assignee_for(WorkflowStage.APPROVED) is None
    core = make_user(UserRole.CORE_BANKING)
    assert resolver.assignee_for(WorkflowStage.APPROVED).user_id == core.id
    core.is_active = False
    db.session.commit()
    assert resolver.assignee_for(WorkflowStage.APPROVED) is None
