from functools import wraps

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from withdrawal_tracker.extensions import bcrypt, db
from withdrawal_tracker.models.user import User
from withdrawal_tracker.utils.response_formatter import error_response

def hash_password(password: str) -> str:
    return bcrypt.generate_password_hash(password).decode("utf-8")

def check_password(password, hashed_password):
    return bcrypt.check_password_hash(hashed_password, password)

def current_user():
    """The active user behind the request's JWT, or ``None``."""
    uid = get_jwt_identity()
    user = db.session.get(User, uid) if uid else None
    if not user or not user.is_active:
        return None
    return user

def roles_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = current_user()
            if not user:
                return error_response("UNAUTHORIZED", "Unknown or inactive user", status=401)
            if roles and user.role not in roles:
                return error_response("FORBIDDEN", "Insufficient role", status=403)
            return fn(*args, user=user, **kwargs)
        return wrapper
    return decorator
