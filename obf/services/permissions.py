from __future__ import annotations

from typing import Optional, Protocol

from sqlalchemy.orm import Session

from obf.errors import Unauthorized
from obf.models import Enrollment, User

CAP_EARN_BADGE = "local/obf:earnbadge"
CAP_ISSUE_BADGE = "local/obf:issuebadge"
CAP_SEE_PARTICIPANT_BADGES = "local/obf:seeparticipantbadges"
CAP_CONFIGURE_USER = "local/obf:configureuser"

# Capabilities granted by each role inside a course the user is enrolled in.
ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "student": frozenset({CAP_EARN_BADGE, CAP_CONFIGURE_USER}),
    "teacher": frozenset({CAP_ISSUE_BADGE, CAP_SEE_PARTICIPANT_BADGES, CAP_CONFIGURE_USER}),
    "manager": frozenset({CAP_ISSUE_BADGE, CAP_SEE_PARTICIPANT_BADGES, CAP_CONFIGURE_USER}),
    "admin": frozenset({CAP_ISSUE_BADGE, CAP_SEE_PARTICIPANT_BADGES, CAP_CONFIGURE_USER}),
}


class CapabilityChecker(Protocol):
    def has_capability(self, capability: str, course_id: Optional[int], user: User) -> bool:
        ...


class RoleCapabilityChecker:
    """Resolves capabilities from the user's role and course enrolment.

    Site admins hold every capability except earning badges, which is only
    granted to enrolled users whose role carries it.
    """

    def __init__(self, session: Session):
        self.session = session

    def has_capability(self, capability: str, course_id: Optional[int], user: User) -> bool:
        if user is None:
            return False
        if user.is_site_admin and capability != CAP_EARN_BADGE:
            return True
        if capability not in ROLE_CAPABILITIES.get(user.role, frozenset()):
            return False
        if course_id is None or capability == CAP_CONFIGURE_USER:
            return True
        return self._is_enrolled(user.id, course_id)

    def _is_enrolled(self, user_id: int, course_id: int) -> bool:
        row = self.session.execute(
            Enrollment.select().where(
                Enrollment.c.user_id == user_id,
                Enrollment.c.course_id == course_id,
            )
        ).first()
        return row is not None

    def require_capability(self, capability: str, course_id: Optional[int], user: User) -> None:
        if not self.has_capability(capability, course_id, user):
            raise Unauthorized(capability, user.id if user is not None else None)
