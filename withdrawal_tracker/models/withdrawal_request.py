from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.enums import Priority
from datetime import datetime
import uuid


def gen_request_id():
    return f"wr-{uuid.uuid4().hex[:12]}"


def _iso(value):
    return value.isoformat() + "Z" if value else None


class WithdrawalRequest(db.Model):
    __tablename__ = "withdrawal_requests"

    __table_args__ = (
        db.Index("idx_withdrawal_requests_stage", "current_stage"),
        db.Index("idx_withdrawal_requests_region", "region"),
    )

    id = db.Column(db.String(50), primary_key=True, default=gen_request_id)

    # fixed at creation
    project_number = db.Column(db.String(100), nullable=False)
    ref_number = db.Column(db.String(100), nullable=False)
    country = db.Column(db.String(100), nullable=False)
    region = db.Column(db.String(50), nullable=False)
    beneficiary_name = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False)
    swift_code = db.Column(db.String(11), nullable=True)
    iban = db.Column(db.String(34), nullable=True)
    created_by = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    value_date = db.Column(db.Date, nullable=True)
    project_details = db.Column(db.Text, nullable=True)
    reference_documentation = db.Column(db.Text, nullable=True)
    priority = db.Column(db.String(20), default=Priority.MEDIUM)

    current_stage = db.Column(db.String(50), nullable=False)
    status = db.Column(db.String(500), nullable=False)
    assigned_to = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=True, index=True)

    loan_admin_reviewed_by = db.Column(db.String(50), nullable=True)
    loan_admin_reviewed_at = db.Column(db.DateTime, nullable=True)
    loan_admin_comments = db.Column(db.Text, nullable=True)
    regional_ops_reviewed_by = db.Column(db.String(50), nullable=True)
    regional_ops_reviewed_at = db.Column(db.DateTime, nullable=True)
    regional_ops_comments = db.Column(db.Text, nullable=True)
    core_banking_processed_by = db.Column(db.String(50), nullable=True)
    core_banking_processed_at = db.Column(db.DateTime, nullable=True)

    rejection_reason = db.Column(db.Text, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    creator = db.relationship("User", foreign_keys=[created_by])
    assignee = db.relationship("User", foreign_keys=[assigned_to])

    def to_dict(self):
        return {
            "id": self.id,
            "project_number": self.project_number,
            "ref_number": self.ref_number,
            "country": self.country,
            "region": self.region,
            "beneficiary_name": self.beneficiary_name,
            "amount": float(self.amount) if self.amount is not None else None,
            "currency": self.currency,
            "swift_code": self.swift_code,
            "iban": self.iban,
            "value_date": self.value_date.isoformat() if self.value_date else None,
            "project_details": self.project_details,
            "reference_documentation": self.reference_documentation,
            "priority": self.priority,
            "current_stage": self.current_stage,
            "status": self.status,
            "assigned_to": self.assigned_to,
            "loan_admin_reviewed_by": self.loan_admin_reviewed_by,
            "loan_admin_reviewed_at": _iso(self.loan_admin_reviewed_at),
            "loan_admin_comments": self.loan_admin_comments,
            "regional_ops_reviewed_by": self.regional_ops_reviewed_by,
            "regional_ops_reviewed_at": _iso(self.regional_ops_reviewed_at),
            "regional_ops_comments": self.regional_ops_comments,
            "core_banking_processed_by": self.core_banking_processed_by,
            "core_banking_processed_at": _iso(self.core_banking_processed_at),
            "rejection_reason": self.rejection_reason,
            "completed_at": _iso(self.completed_at),
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "version": self.version,
        }
