import logging
from datetime import datetime

from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.enums import AuditAction, CommentType
from withdrawal_tracker.models.request_comment import RequestComment
from withdrawal_tracker.utils.exceptions import ValidationFailure

logger = logging.getLogger(__name__)


def get_request_comments(request_id):
    return (
        RequestComment.query
        .filter_by(request_id=request_id)
        .order_by(RequestComment.created_at.asc())
        .all()
    )


def add_comment(manager, request_id, user_id, text, comment_type=CommentType.GENERAL):
    text = (text or "").strip()
    if not text:
        raise ValidationFailure("Comment text is required", details={"field": "comment_text"})
    if comment_type not in CommentType.ALL:
        raise ValidationFailure(f"Unknown comment type '{comment_type}'", details={"field": "comment_type"})

    req = manager.get_request(request_id)
    user = manager.get_actor(user_id)

    comment = RequestComment(
        request_id=req.id,
        user_id=user.id,
        comment_text=text,
        comment_type=comment_type,
        created_at=datetime.utcnow(),
    )
    db.session.add(comment)
    db.session.commit()

    manager.audit.append(
        request_id=req.id,
        actor_user_id=user.id,
        action_type=AuditAction.COMMENT,
        previous_stage=req.current_stage,
        new_stage=req.current_stage,
        comments=text,
        metadata={"comment_id": comment.id, "comment_type": comment_type},
    )
    return comment
