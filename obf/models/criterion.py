from datetime import datetime, timezone
from obf.extensions import db


class Criterion(db.Model):
    """Badge issuance rule bound to a single course."""

    __tablename__ = "obf_criteria"
    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    badge_id = db.Column(db.String(64), db.ForeignKey("obf_badges.id"), nullable=False)

    # Rule
    requires_completion = db.Column(db.Boolean, nullable=False, default=True)
    min_grade = db.Column(db.Float, nullable=True)
    completed_by = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, nullable=True)

    course = db.relationship("Course", back_populates="criteria")
    badge = db.relationship("Badge", back_populates="criteria")
    met_records = db.relationship(
        "CriterionMet",
        back_populates="criterion",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        db.Index("ix_criterion_course_id", "course_id"),
        db.Index("ix_criterion_badge_id", "badge_id"),
    )

    def get_badge(self):
        return self.badge

    def __repr__(self):
        return f"<Criterion id={self.id} course={self.course_id} badge={self.badge_id}>"


class CriterionMet(db.Model):
    """SatisfactionRecord: the first time a user met a criterion."""

    __tablename__ = "obf_criterion_met"
    id = db.Column(db.Integer, primary_key=True)
    criterion_id = db.Column(db.Integer, db.ForeignKey("obf_criteria.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    met_at = db.Column(db.DateTime, nullable=False)

    criterion = db.relationship("Criterion", back_populates="met_records")
    user = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("criterion_id", "user_id", name="uq_criterion_met_user"),
        db.Index("ix_criterion_met_user_id", "user_id"),
    )


class IssuanceClaim(db.Model):
    """Held while a badge is being issued; left behind when write-back fails."""

    __tablename__ = "obf_issuance_claims"
    id = db.Column(db.Integer, primary_key=True)
    criterion_id = db.Column(db.Integer, db.ForeignKey("obf_criteria.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    claimed_at = db.Column(db.DateTime, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("criterion_id", "user_id", name="uq_issuance_claim_user"),
    )


class IssuanceFailure(db.Model):
    __tablename__ = "obf_issuance_failures"
    id = db.Column(db.Integer, primary_key=True)
    criterion_id = db.Column(db.Integer, db.ForeignKey("obf_criteria.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    error_code = db.Column(db.String(50), nullable=False)
    message = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.Index("ix_issuance_failure_created_at", "created_at"),
    )
