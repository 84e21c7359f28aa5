from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.enums import Region, UserRole
from withdrawal_tracker.models.user import User
from withdrawal_tracker.utils.auth_utils import hash_password, check_password
from withdrawal_tracker.utils.exceptions import ServiceError, ValidationFailure
from flask_jwt_extended import create_access_token, create_refresh_token
from datetime import timedelta
from flask import current_app

def validate_role_and_region(role, regional_assignment):
    if role not in UserRole.ALL:
        raise ValidationFailure(f"Unknown role '{role}'", details={"field": "role"})
    if regional_assignment is not None and regional_assignment not in Region.ALL:
        raise ValidationFailure(
            f"Unknown region '{regional_assignment}'",
            details={"field": "regional_assignment"},
        )
    if role == UserRole.OPERATIONS_TEAM and not regional_assignment:
        raise ValidationFailure(
            "Operations team members need a regional assignment",
            details={"field": "regional_assignment"},
        )

def register_user(email, password, full_name, role, regional_assignment=None):
    validate_role_and_region(role, regional_assignment)
    if User.query.filter_by(email=email).first():
        raise ServiceError(
            code="USER_EXISTS",
            message="User with that email already exists",
            details={"field": "email"}
        )

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
        regional_assignment=regional_assignment,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user

# marks "leave unchanged" so an explicit None can clear the region
_UNSET = object()

def update_user(user, role=None, regional_assignment=_UNSET, is_active=None, full_name=None):
    new_role = role or user.role
    new_region = user.regional_assignment if regional_assignment is _UNSET else regional_assignment
    validate_role_and_region(new_role, new_region)
    user.role = new_role
    user.regional_assignment = new_region
    if is_active is not None:
        user.is_active = bool(is_active)
    if full_name:
        user.full_name = full_name
    db.session.commit()
    return user

def authenticate_user(email, password):
    user = User.query.filter_by(email=email).first()
    if not user or not check_password(password, user.password_hash):
        raise ServiceError(code="AUTH_FAILED", message="Invalid credentials", status=401)
    if not user.is_active:
        raise ServiceError(code="ACCOUNT_DISABLED", message="Account is disabled", status=403)
    return user

def generate_access_token(user):
    return create_access_token(identity=user.id, expires_delta=timedelta(seconds=current_app.config.get("ACCESS_EXPIRES", 86400)))

def generate_tokens_for_user(user):
    access = generate_access_token(user)
    refresh = create_refresh_token(identity=user.id, expires_delta=timedelta(seconds=current_app.config.get("REFRESH_EXPIRES", 86400)))
    return access, refresh
