from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List

from obf.extensions import db
from obf.models import Badge, BadgeEmail, Course, CourseCompletion, Criterion, User

from seeds.utils import get_or_create


def seed_users() -> Dict[str, List[User]]:
    admin, _ = get_or_create(
        User,
        email="admin@example.com",
        defaults=dict(first_name="Site", last_name="Admin", role="admin", is_site_admin=True),
    )
    teacher, _ = get_or_create(
        User,
        email="teacher@example.com",
        defaults=dict(first_name="Terry", last_name="Teacher", role="teacher"),
    )
    students = []
    for first, last in [("Ada", "Lovelace"), ("Alan", "Turing"), ("Grace", "Hopper")]:
        student, _ = get_or_create(
            User,
            email=f"{first.lower()}.{last.lower()}@example.com",
            defaults=dict(first_name=first, last_name=last, role="student"),
        )
        students.append(student)
    db.session.commit()
    return {"admins": [admin], "teachers": [teacher], "students": students}


def seed_courses(users: Dict[str, List[User]]) -> List[Course]:
    site, _ = get_or_create(Course, id=1, defaults=dict(full_name="Site home", short_name="site"))
    course_rows = [
        {"id": 42, "full_name": "Introduction to Python", "short_name": "PY101"},
        {"id": 43, "full_name": "Data Analysis", "short_name": "DA201"},
    ]
    courses = []
    for row in course_rows:
        course, _ = get_or_create(Course, id=row["id"], defaults=dict(full_name=row["full_name"], short_name=row["short_name"]))
        for member in users["teachers"] + users["students"]:
            if member not in course.participants:
                course.participants.append(member)
        courses.append(course)
    db.session.commit()
    return [site, *courses]


def seed_badges_and_criteria(courses: List[Course]) -> List[Criterion]:
    finisher, _ = get_or_create(Badge, id="PYFINISHER", defaults=dict(name="Python finisher"))
    honours, _ = get_or_create(Badge, id="PYHONOURS", defaults=dict(name="Python honours"))
    if honours.email is None:
        honours.email = BadgeEmail(
            subject="Python honours badge",
            body="Your grade put you in the top of the class. Well done!",
            footer="Introduction to Python teaching team",
        )

    python_course = next(c for c in courses if c.id == 42)
    criteria = [
        Criterion(course_id=python_course.id, badge_id=finisher.id, requires_completion=True),
        Criterion(
            course_id=python_course.id,
            badge_id=honours.id,
            requires_completion=True,
            min_grade=80.0,
            completed_by=datetime.now(timezone.utc) + timedelta(days=365),
        ),
    ]
    if not python_course.criteria:
        db.session.add_all(criteria)
    db.session.commit()
    return list(python_course.criteria)


def seed_completions(users: Dict[str, List[User]]) -> None:
    now = datetime.now(timezone.utc)
    grades = [92.0, 71.5, None]
    for student, grade in zip(users["students"], grades):
        get_or_create(
            CourseCompletion,
            user_id=student.id,
            course_id=42,
            defaults=dict(completed_at=now if grade is not None else None, grade=grade),
        )
    db.session.commit()
