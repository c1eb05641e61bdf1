from datetime import datetime, timezone
from obf.extensions import db

# Course id 1 is the site itself, not a real course.
SITE_COURSE_ID = 1

# Association table between users and the courses they take part in
Enrollment = db.Table(
    "enrollment",
    db.Model.metadata,
    db.Column("user_id", db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    db.Column("course_id", db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
)


class Course(db.Model):
    __tablename__ = "courses"
    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(255), nullable=False)
    short_name = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    participants = db.relationship("User", secondary=Enrollment, backref="courses", lazy="dynamic")
    criteria = db.relationship(
        "Criterion",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Course id={self.id} {self.full_name}>"


class CourseCompletion(db.Model):
    """Completion data the host records when a learner finishes a course."""

    __tablename__ = "course_completions"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    grade = db.Column(db.Float, nullable=True)  # percentage, 0-100

    __table_args__ = (
        db.UniqueConstraint("user_id", "course_id", name="uq_completion_user_course"),
        db.Index("ix_completion_course_id", "course_id"),
    )
