import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ["HOST_API_TOKEN"] = "test-host-token"
os.environ["OBF_CLIENT_ID"] = "TESTCLIENT"

from obf.extensions import db  # noqa: E402
from obf.models import Badge, Course, CourseCompletion, Criterion, User  # noqa: E402
from obf.services.messaging import AdminNotification  # noqa: E402

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeObfClient:
    """Records issue calls; raises the configured error for a badge id."""

    def __init__(self, expires_at=None):
        self.calls = []
        self.errors = {}
        self.expires_at = expires_at or NOW + timedelta(days=365)
        self.expiry_error = None

    def issue_badge(self, badge_id, recipients, issued_at, subject, body, footer):
        if badge_id in self.errors:
            raise self.errors[badge_id]
        self.calls.append(dict(
            badge_id=badge_id,
            recipients=list(recipients),
            issued_at=issued_at,
            subject=subject,
            body=body,
            footer=footer,
        ))
        return {}

    def get_certificate_expiration_date(self):
        if self.expiry_error is not None:
            raise self.expiry_error
        return self.expires_at


class FakeSink:
    def __init__(self):
        self.sent: list[AdminNotification] = []

    def send(self, notification):
        self.sent.append(notification)


@pytest.fixture(name="session")
def session_fixture():
    db.create_all()
    session = db.session
    yield session
    session.rollback()
    db.remove_session()
    db.drop_all()


@pytest.fixture
def client():
    return FakeObfClient()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def world(session):
    """Course 42 with a grade criterion (A) and a completion criterion (B); user 7 enrolled."""
    site = Course(id=1, full_name="Site home")
    course = Course(id=42, full_name="Introduction to Python")
    other = Course(id=43, full_name="Data Analysis")
    learner = User(id=7, email="learner@example.com", first_name="Lea", last_name="Learner", role="student")
    outsider = User(id=8, email="outsider@example.com", first_name="Otto", last_name="Outsider", role="student")
    teacher = User(id=9, email="teacher@example.com", first_name="Terry", last_name="Teacher", role="teacher")
    admins = [
        User(id=100, email="admin1@example.com", first_name="Ann", last_name="Admin", role="admin", is_site_admin=True),
        User(id=101, email="admin2@example.com", first_name="Bob", last_name="Admin", role="admin", is_site_admin=True),
    ]
    session.add_all([site, course, other, learner, outsider, teacher, *admins])
    session.flush()
    course.participants.append(learner)
    course.participants.append(teacher)
    other.participants.append(learner)

    badge_a = Badge(id="BADGEA", name="Honours")
    badge_b = Badge(id="BADGEB", name="Finisher")
    session.add_all([badge_a, badge_b])
    session.flush()

    crit_a = Criterion(course_id=42, badge_id="BADGEA", requires_completion=False, min_grade=80.0)
    crit_b = Criterion(course_id=42, badge_id="BADGEB", requires_completion=True)
    crit_other = Criterion(course_id=43, badge_id="BADGEB", requires_completion=True)
    session.add_all([crit_a, crit_b, crit_other])
    session.commit()

    return dict(
        course=course,
        other=other,
        learner=learner,
        outsider=outsider,
        teacher=teacher,
        admins=admins,
        a=crit_a,
        b=crit_b,
        other_criterion=crit_other,
    )


def complete(session, user_id, course_id, grade=None, completed_at=datetime(2026, 5, 30, 9, 0)):
    session.add(CourseCompletion(user_id=user_id, course_id=course_id, grade=grade, completed_at=completed_at))
    session.commit()
