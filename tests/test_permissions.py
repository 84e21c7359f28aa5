import itertools

import pytest

from withdrawal_tracker.models.enums import Decision, UserRole, WorkflowStage
from withdrawal_tracker.services.permissions import (
    ACTIONS,
    ALL_PERMISSIONS,
    PERM_APPROVE_REQUEST,
    PERM_CREATE_REQUEST,
    PERM_MANAGE_USERS,
    PERM_VIEW_REQUEST,
    PermissionTable,
    action_for_decision,
    default_permission_table,
    role_display_name,
)

STAGES = (None,) + WorkflowStage.ALL


@pytest.fixture
def table():
    return default_permission_table()


def test_superusers_hold_every_permission(table):
    for role in (UserRole.ADMIN, UserRole.LOAN_ADMINISTRATOR):
        assert all(table.has_permission(role, p) for p in ALL_PERMISSIONS)


def test_has_permission_membership(table):
    assert table.has_permission(UserRole.ARCHIVE_TEAM, PERM_CREATE_REQUEST)
    assert table.has_permission(UserRole.OPERATIONS_TEAM, PERM_APPROVE_REQUEST)
    assert table.has_permission(UserRole.OBSERVER, PERM_VIEW_REQUEST)
    assert not table.has_permission(UserRole.OBSERVER, PERM_MANAGE_USERS)
    assert not table.has_permission("intruder", PERM_VIEW_REQUEST)
    assert not table.has_permission(None, PERM_VIEW_REQUEST)
    assert not table.has_permission(UserRole.ADMIN, None)


def test_superusers_bypass_stage_checks(table):
    for role, action, stage in itertools.product(
        (UserRole.ADMIN, UserRole.LOAN_ADMINISTRATOR), ACTIONS, STAGES
    ):
        assert table.can_perform_action(role, action, stage)


def test_only_operations_team_decides_at_operations_review(table):
    for role in (UserRole.ARCHIVE_TEAM, UserRole.CORE_BANKING, UserRole.OBSERVER):
        for action in (Decision.APPROVE, Decision.REJECT):
            assert not table.can_perform_action(role, action, WorkflowStage.UNDER_OPERATIONS_REVIEW)
    assert table.can_perform_action(UserRole.OPERATIONS_TEAM, "approve", WorkflowStage.UNDER_OPERATIONS_REVIEW)
    assert table.can_perform_action(UserRole.OPERATIONS_TEAM, "reject", WorkflowStage.UNDER_OPERATIONS_REVIEW)


def test_operations_team_cannot_decide_elsewhere(table):
    for stage in STAGES:
        if stage == WorkflowStage.UNDER_OPERATIONS_REVIEW:
            continue
        assert not table.can_perform_action(UserRole.OPERATIONS_TEAM, "approve", stage)


def test_only_core_banking_disburses_from_approved(table):
    assert table.can_perform_action(UserRole.CORE_BANKING, "disburse", WorkflowStage.APPROVED)
    assert not table.can_perform_action(UserRole.CORE_BANKING, "disburse", WorkflowStage.UNDER_OPERATIONS_REVIEW)
    for role in (UserRole.ARCHIVE_TEAM, UserRole.OPERATIONS_TEAM, UserRole.OBSERVER):
        assert not table.can_perform_action(role, "disburse", WorkflowStage.APPROVED)


def test_create_and_submit_belong_to_archive_team(table):
    assert table.can_perform_action(UserRole.ARCHIVE_TEAM, "create")
    assert table.can_perform_action(UserRole.ARCHIVE_TEAM, "submit", WorkflowStage.SUBMITTED)
    assert not table.can_perform_action(UserRole.ARCHIVE_TEAM, "submit", WorkflowStage.UNDER_LOAN_REVIEW)
    assert not table.can_perform_action(UserRole.OPERATIONS_TEAM, "create")


def test_archive_team_edits_only_own_drafts(table):
    assert table.can_perform_action(UserRole.ARCHIVE_TEAM, "edit", WorkflowStage.SUBMITTED, "u1", "u1")
    assert not table.can_perform_action(UserRole.ARCHIVE_TEAM, "edit", WorkflowStage.SUBMITTED, "u1", "u2")
    assert not table.can_perform_action(UserRole.ARCHIVE_TEAM, "edit", WorkflowStage.UNDER_LOAN_REVIEW, "u1", "u1")


def test_unknown_role_or_action_fails_closed(table):
    for action, stage in itertools.product(ACTIONS, STAGES):
        assert not table.can_perform_action("intruder", action, stage)
        assert not table.can_perform_action(None, action, stage)
    assert not table.can_perform_action(UserRole.ADMIN, "launch_missiles")
    assert not table.can_perform_action(UserRole.ADMIN, None)


def test_can_perform_action_is_pure(table):
    results = [
        table.can_perform_action(role, action, stage)
        for role, action, stage in itertools.product(UserRole.ALL, ACTIONS, STAGES)
    ]
    again = [
        table.can_perform_action(role, action, stage)
        for role, action, stage in itertools.product(UserRole.ALL, ACTIONS, STAGES)
    ]
    assert results == again


def test_table_is_read_only(table):
    with pytest.raises(TypeError):
        table.role_permissions[UserRole.OBSERVER] = frozenset(ALL_PERMISSIONS)
    with pytest.raises(AttributeError):
        table.role_permissions[UserRole.OBSERVER].add(PERM_MANAGE_USERS)


def test_alternate_table_can_be_injected():
    table = PermissionTable.from_mapping(
        {UserRole.OBSERVER: {PERM_VIEW_REQUEST}, UserRole.ADMIN: set()},
        superuser_roles={UserRole.ADMIN},
    )
    assert table.can_perform_action(UserRole.ADMIN, "disburse", WorkflowStage.SUBMITTED)
    # roles missing from the table are unknown
    assert not table.can_perform_action(UserRole.LOAN_ADMINISTRATOR, "view")


def test_action_for_decision():
    assert action_for_decision(Decision.APPROVE, WorkflowStage.SUBMITTED) == "submit"
    assert action_for_decision(Decision.APPROVE, WorkflowStage.APPROVED) == "disburse"
    assert action_for_decision(Decision.APPROVE, WorkflowStage.UNDER_LOAN_REVIEW) == "approve"
    assert action_for_decision(Decision.REJECT, WorkflowStage.APPROVED) == "reject"


def test_allowed_actions_for_stage(table):
    assert table.allowed_actions_for_stage(UserRole.OPERATIONS_TEAM, WorkflowStage.UNDER_OPERATIONS_REVIEW) == [
        "view", "approve", "reject",
    ]
    assert table.allowed_actions_for_stage(UserRole.CORE_BANKING, WorkflowStage.APPROVED) == ["view", "approve"]
    assert table.allowed_actions_for_stage(UserRole.OBSERVER, WorkflowStage.APPROVED) == ["view"]
    assert table.allowed_actions_for_stage(UserRole.LOAN_ADMINISTRATOR, WorkflowStage.DISBURSED) == ["view", "edit"]
    assert table.allowed_actions_for_stage("intruder", WorkflowStage.APPROVED) == []


def test_available_actions_and_display_names(table):
    assert table.available_actions(UserRole.OBSERVER) == ["view"]
    assert set(table.available_actions(UserRole.CORE_BANKING)) == {"disburse", "view"}
    assert set(table.available_actions(UserRole.ADMIN)) == set(ACTIONS)
    assert role_display_name(UserRole.CORE_BANKING) == "Core Banking Team"
    assert role_display_name("nobody") == "User"


def test_archive_team_submits_only_own_drafts(table):
    assert table.can_perform_action(UserRole.ARCHIVE_TEAM, "submit", WorkflowStage.SUBMITTED, "u1", "u1")
    assert not table.can_perform_action(UserRole.ARCHIVE_TEAM, "submit", WorkflowStage.SUBMITTED, "u1", "u2")
    assert table.allowed_actions_for_stage(UserRole.ARCHIVE_TEAM, WorkflowStage.SUBMITTED, "u1", "u2") == ["view"]
    assert table.allowed_actions_for_stage(UserRole.ARCHIVE_TEAM, WorkflowStage.SUBMITTED, "u1", "u1") == [
        "view", "approve", "edit",
    ]


def test_only_superusers_assign(table):
    for role in UserRole.ALL:
        expected = role in (UserRole.ADMIN, UserRole.LOAN_ADMINISTRATOR)
        for stage in STAGES:
            assert table.can_perform_action(role, "assign", stage) is expected
