from withdrawal_tracker.extensions import db
from datetime import datetime
import uuid

def gen_uuid(prefix=None):
    uid = str(uuid.uuid4())
    return f"{prefix}-{uid}" if prefix else uid

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(50), primary_key=True, default=lambda: gen_uuid("usr"))
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255))
    role = db.Column(db.String(50), nullable=False, index=True)
    # only meaningful for operations_team members
    regional_assignment = db.Column(db.String(50), nullable=True, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_assigned_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "regional_assignment": self.regional_assignment,
            "is_active": self.is_active,
            "last_assigned_at": self.last_assigned_at.isoformat() + "Z" if self.last_assigned_at else None,
            "created_at": self.created_at.isoformat() + "Z" if self.created_at else None,
        }
