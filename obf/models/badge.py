from datetime import datetime, timezone
from obf.extensions import db


class Badge(db.Model):
    """A badge defined in Open Badge Factory, referenced by its OBF id."""

    __tablename__ = "obf_badges"
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    email = db.relationship("BadgeEmail", back_populates="badge", uselist=False, cascade="all, delete-orphan")
    criteria = db.relationship("Criterion", back_populates="badge")

    def get_email(self):
        return self.email

    def __repr__(self):
        return f"<Badge id={self.id} {self.name}>"


class BadgeEmail(db.Model):
    __tablename__ = "obf_badge_emails"
    id = db.Column(db.Integer, primary_key=True)
    badge_id = db.Column(db.String(64), db.ForeignKey("obf_badges.id", ondelete="CASCADE"), nullable=False, unique=True)
    subject = db.Column(db.String(255), nullable=False, default="")
    body = db.Column(db.Text, nullable=False, default="")
    footer = db.Column(db.Text, nullable=False, default="")

    badge = db.relationship("Badge", back_populates="email")
