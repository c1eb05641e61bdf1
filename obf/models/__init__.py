# Re-export models so external code can keep using: from obf.models import User, Course, ...
from .user import User, Backpack, get_admins
from .course import Course, CourseCompletion, Enrollment, SITE_COURSE_ID
from .badge import Badge, BadgeEmail
from .criterion import Criterion, CriterionMet, IssuanceClaim, IssuanceFailure
from .message import AdminMessage

__all__ = [
    # host data
    "User", "Course", "CourseCompletion", "Enrollment", "SITE_COURSE_ID",
    # badges/criteria
    "Badge", "BadgeEmail", "Criterion", "CriterionMet", "IssuanceClaim", "IssuanceFailure",
    # per-user settings and messaging
    "Backpack", "AdminMessage",
    # helpers
    "get_admins",
]
