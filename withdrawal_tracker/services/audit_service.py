import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.audit_entry import AuditEntry

logger = logging.getLogger(__name__)


class AuditLogger:
    """Append-only writer for the request audit trail.

    ``append`` commits on its own so a failure here can never undo the state
    change it describes. Failures are logged and reported as ``False``.
    """

    def append(
        self,
        request_id,
        actor_user_id,
        action_type,
        previous_stage=None,
        new_stage=None,
        previous_status=None,
        new_status=None,
        amount_involved=None,
        comments=None,
        metadata=None,
    ) -> bool:
        entry = AuditEntry(
            request_id=request_id,
            actor_user_id=actor_user_id,
            action_type=action_type,
            previous_stage=previous_stage,
            new_stage=new_stage,
            previous_status=previous_status,
            new_status=new_status,
            amount_involved=amount_involved,
            comments=comments,
            details=metadata or {},
            created_at=datetime.utcnow(),
        )
        try:
            db.session.add(entry)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception(
                "Audit append failed for request %s (%s by %s)",
                request_id, action_type, actor_user_id,
            )
            return False
        return True

    def for_request(self, request_id):
        return (
            AuditEntry.query
            .filter_by(request_id=request_id)
            .order_by(AuditEntry.created_at.desc(), AuditEntry.id.desc())
            .all()
        )
