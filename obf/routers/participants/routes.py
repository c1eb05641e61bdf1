from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from obf.dependencies import get_db, require_capability
from obf.models import Course, Criterion, CriterionMet, Enrollment, User
from obf.schemas import ParticipantBadges
from obf.services.ordering import users_order_by_sql
from obf.services.permissions import CAP_SEE_PARTICIPANT_BADGES

router = APIRouter(tags=["participants"])


@router.get(
    "/courses/{course_id}/user-badges",
    response_model=list[ParticipantBadges],
    name="participants.course_user_badges",
)
def course_user_badges(
    course_id: int,
    search: Optional[str] = None,
    current_user: User = Depends(require_capability(CAP_SEE_PARTICIPANT_BADGES)),
    session: Session = Depends(get_db),
):
    """Participants of the course with the badges they earned through its criteria."""
    if not session.get(Course, course_id):
        raise HTTPException(status_code=404, detail="Course not found")

    sort, params = users_order_by_sql("users", search, dialect=session.get_bind().dialect.name)
    participants = (
        session.query(User)
        .join(Enrollment, Enrollment.c.user_id == User.id)
        .filter(Enrollment.c.course_id == course_id)
        .order_by(text(sort))
        .params(**params)
        .all()
    )

    earned: dict[int, list[str]] = {}
    rows = (
        session.query(CriterionMet.user_id, Criterion.badge_id)
        .join(Criterion, Criterion.id == CriterionMet.criterion_id)
        .filter(Criterion.course_id == course_id)
        .order_by(CriterionMet.met_at.asc(), Criterion.badge_id.asc())
        .all()
    )
    for user_id, badge_id in rows:
        badges = earned.setdefault(user_id, [])
        if badge_id not in badges:
            badges.append(badge_id)

    return [
        ParticipantBadges(user_id=u.id, full_name=u.full_name, badge_ids=earned.get(u.id, []))
        for u in participants
    ]
