from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from obf.errors import AlreadySatisfied, StorageWriteFailure
from obf.models import Criterion, CriterionMet, IssuanceClaim, IssuanceFailure
from obf.services.rules import CriterionRule
from obf.utils import as_naive_utc, utcnow

logger = logging.getLogger(__name__)


class CriterionStore:
    """
    Durable state of the issuance engine: criteria per course, satisfaction
    records per (criterion, user) and the claims taken while issuing.

    Uniqueness of a satisfaction record is enforced by the
    ``uq_criterion_met_user`` constraint, not by the callers.
    """

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Criteria
    # ------------------------------------------------------------------

    def criteria_for_course(self, course_id: int) -> set[Criterion]:
        rows = (
            self.session.query(Criterion)
            .filter(Criterion.course_id == course_id)
            .all()
        )
        return set(rows)

    def get_criterion(self, criterion_id: int) -> Optional[Criterion]:
        return self.session.get(Criterion, criterion_id)

    def create_criterion(self, course_id: int, badge_id: str, rule: CriterionRule) -> Criterion:
        criterion = Criterion(
            course_id=course_id,
            badge_id=badge_id,
            requires_completion=rule.requires_completion,
            min_grade=rule.min_grade,
            completed_by=as_naive_utc(rule.completed_by),
        )
        self.session.add(criterion)
        self._commit("create criterion")
        return criterion

    def update_rule(self, criterion_id: int, rule: CriterionRule) -> Optional[Criterion]:
        criterion = self.get_criterion(criterion_id)
        if criterion is None:
            return None
        criterion.requires_completion = rule.requires_completion
        criterion.min_grade = rule.min_grade
        criterion.completed_by = as_naive_utc(rule.completed_by)
        criterion.updated_at = utcnow()
        self._commit("update criterion rule")
        return criterion

    def delete_criterion(self, criterion_id: int) -> bool:
        criterion = self.get_criterion(criterion_id)
        if criterion is None:
            return False
        self._delete_dependents([criterion_id])
        self.session.delete(criterion)
        self._commit("delete criterion")
        return True

    def delete_criteria_for_course(self, course_id: int) -> int:
        ids = [
            cid for (cid,) in self.session.query(Criterion.id).filter(Criterion.course_id == course_id)
        ]
        if not ids:
            return 0
        self._delete_dependents(ids)
        deleted = (
            self.session.query(Criterion)
            .filter(Criterion.id.in_(ids))
            .delete(synchronize_session=False)
        )
        self._commit("delete course criteria")
        logger.info("Deleted %s criteria of course %s", deleted, course_id)
        return deleted

    # ------------------------------------------------------------------
    # Satisfaction records
    # ------------------------------------------------------------------

    def is_satisfied(self, criterion_id: int, user_id: int) -> bool:
        row = (
            self.session.query(CriterionMet.id)
            .filter_by(criterion_id=criterion_id, user_id=user_id)
            .first()
        )
        return row is not None

    def mark_satisfied(self, criterion_id: int, user_id: int, timestamp: datetime) -> CriterionMet:
        record = CriterionMet(criterion_id=criterion_id, user_id=user_id, met_at=as_naive_utc(timestamp))
        self.session.add(record)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise AlreadySatisfied(criterion_id, user_id) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageWriteFailure(f"Could not record criterion {criterion_id} for user {user_id}: {exc}") from exc
        return record

    def users_satisfying(self, criterion_id: int) -> list[int]:
        return [
            uid for (uid,) in self.session.query(CriterionMet.user_id).filter_by(criterion_id=criterion_id)
        ]

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def claim(self, criterion_id: int, user_id: int, timestamp: datetime) -> bool:
        """Conditionally take the issuance claim; False if someone else holds it."""
        self.session.add(IssuanceClaim(criterion_id=criterion_id, user_id=user_id, claimed_at=as_naive_utc(timestamp)))
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return False
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageWriteFailure(f"Could not claim criterion {criterion_id} for user {user_id}: {exc}") from exc
        return True

    def release_claim(self, criterion_id: int, user_id: int) -> None:
        self.session.query(IssuanceClaim).filter_by(criterion_id=criterion_id, user_id=user_id).delete(
            synchronize_session=False
        )
        self._commit("release claim")

    def pending_claims(self) -> list[IssuanceClaim]:
        return self.session.query(IssuanceClaim).order_by(IssuanceClaim.claimed_at.asc()).all()

    # ------------------------------------------------------------------
    # Failures
    # ------------------------------------------------------------------

    def record_failure(self, criterion_id: int, user_id: int, code: str, message: str) -> None:
        self.session.add(IssuanceFailure(criterion_id=criterion_id, user_id=user_id, error_code=code, message=message))
        self._commit("record issuance failure")

    def recent_failures(self, limit: int = 50) -> list[IssuanceFailure]:
        return (
            self.session.query(IssuanceFailure)
            .order_by(IssuanceFailure.created_at.desc(), IssuanceFailure.id.desc())
            .limit(limit)
            .all()
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _delete_dependents(self, criterion_ids: list[int]) -> None:
        for model in (CriterionMet, IssuanceClaim, IssuanceFailure):
            self.session.query(model).filter(model.criterion_id.in_(criterion_ids)).delete(synchronize_session=False)

    def _commit(self, what: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageWriteFailure(f"Could not {what}: {exc}") from exc
