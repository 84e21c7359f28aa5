from withdrawal_tracker.extensions import db
from datetime import datetime
from sqlalchemy import event


class AuditImmutableError(Exception):
    pass


class AuditEntry(db.Model):
    """One row per workflow transition or creation event. Append-only."""

    __tablename__ = "audit_entries"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    request_id = db.Column(db.String(50), db.ForeignKey("withdrawal_requests.id"), nullable=False, index=True)
    actor_user_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=True)
    action_type = db.Column(db.String(30), nullable=False)

    previous_stage = db.Column(db.String(50))
    new_stage = db.Column(db.String(50))
    previous_status = db.Column(db.String(500))
    new_status = db.Column(db.String(500))
    amount_involved = db.Column(db.Numeric(18, 2))
    comments = db.Column(db.Text)

    # "metadata" is reserved on declarative models
    details = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    actor = db.relationship("User", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "request_id": self.request_id,
            "actor_user_id": self.actor_user_id,
            "actor_name": self.actor.full_name if self.actor else None,
            "action_type": self.action_type,
            "previous_stage": self.previous_stage,
            "new_stage": self.new_stage,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "amount_involved": float(self.amount_involved) if self.amount_involved is not None else None,
            "comments": self.comments,
            "metadata": self.details or {},
            "created_at": self.created_at.isoformat() + "Z" if self.created_at else None,
        }


@event.listens_for(AuditEntry, "before_update")
def reject_audit_update(mapper, connection, target):
    raise AuditImmutableError(f"Audit entry {target.id} cannot be modified")


@event.listens_for(AuditEntry, "before_delete")
def reject_audit_delete(mapper, connection, target):
    raise AuditImmutableError(f"Audit entry {target.id} cannot be deleted")
