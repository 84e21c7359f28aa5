from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.enums import CommentType
from datetime import datetime
import uuid


def gen_comment_id():
    return f"cmt-{uuid.uuid4().hex[:10]}"


class RequestComment(db.Model):
    __tablename__ = "request_comments"

    id = db.Column(db.String(50), primary_key=True, default=gen_comment_id)
    request_id = db.Column(db.String(50), db.ForeignKey("withdrawal_requests.id"), nullable=False, index=True)
    user_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    comment_text = db.Column(db.Text, nullable=False)
    comment_type = db.Column(db.String(20), default=CommentType.GENERAL)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    author = db.relationship("User", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "request_id": self.request_id,
            "user_id": self.user_id,
            "author": {
                "full_name": self.author.full_name,
                "role": self.author.role,
            } if self.author else None,
            "comment_text": self.comment_text,
            "comment_type": self.comment_type,
            "created_at": self.created_at.isoformat() + "Z" if self.created_at else None,
        }
