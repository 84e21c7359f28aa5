from dataclasses import dataclass, field
from types import MappingProxyType

from withdrawal_tracker.models.enums import Decision, UserRole, WorkflowStage

# --- Permission Constants ---
PERM_CREATE_REQUEST = "create_request"
PERM_SUBMIT_REQUEST = "submit_request"
PERM_VIEW_REQUEST = "view_request"
PERM_EDIT_REQUEST = "edit_request"
PERM_APPROVE_REQUEST = "approve_request"
PERM_REJECT_REQUEST = "reject_request"
PERM_DISBURSE_REQUEST = "disburse_request"
PERM_DELETE_REQUEST = "delete_request"
PERM_VIEW_DASHBOARD = "view_dashboard"
PERM_MANAGE_USERS = "manage_users"
PERM_VIEW_AUDIT_LOG = "view_audit_log"
PERM_EXPORT_DATA = "export_data"

ALL_PERMISSIONS = frozenset({
    PERM_CREATE_REQUEST,
    PERM_SUBMIT_REQUEST,
    PERM_VIEW_REQUEST,
    PERM_EDIT_REQUEST,
    PERM_APPROVE_REQUEST,
    PERM_REJECT_REQUEST,
    PERM_DISBURSE_REQUEST,
    PERM_DELETE_REQUEST,
    PERM_VIEW_DASHBOARD,
    PERM_MANAGE_USERS,
    PERM_VIEW_AUDIT_LOG,
    PERM_EXPORT_DATA,
})

ROLE_PERMISSIONS: dict[str, set[str]] = {
    UserRole.ADMIN: set(ALL_PERMISSIONS),
    UserRole.ARCHIVE_TEAM: {
        PERM_CREATE_REQUEST,
        PERM_SUBMIT_REQUEST,
        PERM_VIEW_REQUEST,
        PERM_VIEW_DASHBOARD,
    },
    UserRole.OPERATIONS_TEAM: {
        PERM_VIEW_REQUEST,
        PERM_APPROVE_REQUEST,
        PERM_REJECT_REQUEST,
        PERM_VIEW_DASHBOARD,
    },
    UserRole.CORE_BANKING: {
        PERM_VIEW_REQUEST,
        PERM_DISBURSE_REQUEST,
        PERM_VIEW_DASHBOARD,
    },
    UserRole.LOAN_ADMINISTRATOR: set(ALL_PERMISSIONS),
    UserRole.OBSERVER: {
        PERM_VIEW_REQUEST,
        PERM_VIEW_DASHBOARD,
    },
}

ACTIONS = ("create", "submit", "approve", "reject", "disburse", "edit", "delete", "view", "assign")

ROLE_DISPLAY_NAMES = {
    UserRole.ADMIN: "System Administrator",
    UserRole.ARCHIVE_TEAM: "Archive Team",
    UserRole.OPERATIONS_TEAM: "Operations Team",
    UserRole.CORE_BANKING: "Core Banking Team",
    UserRole.LOAN_ADMINISTRATOR: "Loan Administrator",
    UserRole.OBSERVER: "Observer",
}


@dataclass(frozen=True)
class PermissionTable:
    """Read-only role -> permission lookup.

    Built once by the application factory and handed to the workflow manager,
    so tests can swap in a different table without touching module state.
    """

    role_permissions: MappingProxyType
    superuser_roles: frozenset = field(
        default_factory=lambda: frozenset({UserRole.ADMIN, UserRole.LOAN_ADMINISTRATOR})
    )

    @classmethod
    def from_mapping(cls, mapping, superuser_roles=None):
        frozen = MappingProxyType({role: frozenset(perms) for role, perms in mapping.items()})
        if superuser_roles is None:
            return cls(role_permissions=frozen)
        return cls(role_permissions=frozen, superuser_roles=frozenset(superuser_roles))

    def is_known_role(self, role) -> bool:
        return role in self.role_permissions

    def has_permission(self, role, permission) -> bool:
        if not role or not permission:
            return False
        return permission in self.role_permissions.get(role, frozenset())

    def can_perform_action(self, role, action, stage=None, created_by=None, user_id=None) -> bool:
        """Stage-aware action check. Unknown roles and actions are always denied."""
        if not self.is_known_role(role) or action not in ACTIONS:
            return False

        if role in self.superuser_roles:
            return True

        if action == "create":
            return role == UserRole.ARCHIVE_TEAM

        if action == "submit":
            return (
                role == UserRole.ARCHIVE_TEAM
                and stage in (None, WorkflowStage.SUBMITTED)
                and _is_own(created_by, user_id)
            )

        if action in ("approve", "reject"):
            return role == UserRole.OPERATIONS_TEAM and stage == WorkflowStage.UNDER_OPERATIONS_REVIEW

        if action == "disburse":
            return role == UserRole.CORE_BANKING and stage == WorkflowStage.APPROVED

        if action == "view":
            return True

        if action == "edit":
            # archive team may only touch its own drafts
            if role == UserRole.ARCHIVE_TEAM:
                return stage in (None, WorkflowStage.SUBMITTED) and _is_own(created_by, user_id)
            return False

        if action == "assign":
            return False

        # delete
        return role == UserRole.ADMIN

    def available_actions(self, role):
        if not self.is_known_role(role):
            return []
        if role in self.superuser_roles:
            return list(ACTIONS)
        return [a for a in ACTIONS if self._role_may_ever(role, a)]

    def _role_may_ever(self, role, action):
        return any(
            self.can_perform_action(role, action, stage)
            for stage in (None,) + WorkflowStage.ALL
        )

    def allowed_actions_for_stage(self, role, stage, created_by=None, user_id=None):
        """Actions ``role`` may take on a request currently at ``stage``.

        Decisions are reported as ``approve``/``reject`` even where the
        underlying check is ``submit`` or ``disburse``.
        """
        if not self.is_known_role(role):
            return []
        actions = ["view"]
        if stage in WorkflowStage.TERMINAL:
            if role in self.superuser_roles:
                actions.append("edit")
            return actions
        for decision in Decision.ALL:
            if self.can_perform_action(role, action_for_decision(decision, stage), stage, created_by, user_id):
                actions.append(decision)
        for action in ("edit", "delete", "assign"):
            if self.can_perform_action(role, action, stage, created_by, user_id):
                actions.append(action)
        return actions


def _is_own(created_by, user_id):
    return created_by is None or user_id is None or created_by == user_id


def action_for_decision(decision, stage):
    """Permission action checked when ``decision`` is taken at ``stage``."""
    if decision == Decision.APPROVE:
        if stage == WorkflowStage.SUBMITTED:
            return "submit"
        if stage == WorkflowStage.APPROVED:
            return "disburse"
    return decision


def default_permission_table():
    return PermissionTable.from_mapping(ROLE_PERMISSIONS)


def role_display_name(role):
    return ROLE_DISPLAY_NAMES.get(role, "User")
