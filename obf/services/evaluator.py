from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from obf.models import Course, CourseCompletion, Criterion, User
from obf.services.criterion_store import CriterionStore
from obf.services.permissions import CAP_EARN_BADGE, CapabilityChecker
from obf.services.rules import CompletionSnapshot, CriterionRule, rule_holds

logger = logging.getLogger(__name__)


def completion_snapshot(session: Session, user_id: int, course_id: int) -> Optional[CompletionSnapshot]:
    row = (
        session.query(CourseCompletion)
        .filter_by(user_id=user_id, course_id=course_id)
        .first()
    )
    if row is None:
        return None
    return CompletionSnapshot(completed_at=row.completed_at, grade=row.grade)


class CriterionEvaluator:
    """Decides which of a course's criteria a user has newly met."""

    def __init__(self, store: CriterionStore, capabilities: CapabilityChecker):
        self.store = store
        self.capabilities = capabilities

    def evaluate(self, user: User, course: Course | int) -> set[Criterion]:
        course_id = course if isinstance(course, int) else course.id

        # No capability -> no badge.
        if not self.capabilities.has_capability(CAP_EARN_BADGE, course_id, user):
            logger.debug("User %s cannot earn badges in course %s", user.id, course_id)
            return set()

        criteria = self.store.criteria_for_course(course_id)
        if not criteria:
            return set()

        completion = completion_snapshot(self.store.session, user.id, course_id)
        met: set[Criterion] = set()
        for criterion in criteria:
            if self.store.is_satisfied(criterion.id, user.id):
                continue
            if rule_holds(CriterionRule.of(criterion), completion):
                met.add(criterion)
        return met
