from datetime import datetime, timezone
from obf.extensions import db


class AdminMessage(db.Model):
    __tablename__ = "obf_messages"
    id = db.Column(db.Integer, primary_key=True)
    user_to_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    severity = db.Column(db.String(20), nullable=False)  # notice|error
    subject = db.Column(db.String(255), nullable=False)
    full_message = db.Column(db.Text, nullable=False)
    full_message_html = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user_to = db.relationship("User")

    __table_args__ = (
        db.Index("ix_message_user_to_id", "user_to_id"),
    )
