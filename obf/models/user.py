from datetime import datetime, timezone
from obf.extensions import db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="student")  # student|teacher|manager|admin
    is_site_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    backpack = db.relationship("Backpack", back_populates="user", uselist=False, cascade="all, delete-orphan")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<User id={self.id} {self.full_name} role={self.role}>"


class Backpack(db.Model):
    """Alternate badge delivery address, owned and edited by the user only."""

    __tablename__ = "obf_backpacks"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user = db.relationship("User", back_populates="backpack")


def get_admins(session) -> list[User]:
    return (
        session.query(User)
        .filter(User.is_site_admin.is_(True))
        .order_by(User.id.asc())
        .all()
    )
