from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol

from obf.errors import AlreadySatisfied, IssuanceServiceError, StorageWriteFailure
from obf.models import Criterion, User
from obf.services.backpack import recipient_for
from obf.services.criterion_store import CriterionStore
from obf.services.emails import resolve_email

logger = logging.getLogger(__name__)


class BadgeIssuer(Protocol):
    def issue_badge(
        self,
        badge_id: str,
        recipients: Iterable[str],
        issued_at: datetime,
        subject: str,
        body: str,
        footer: str,
    ) -> dict: ...

    def get_certificate_expiration_date(self) -> datetime: ...


class IssuanceOutcome(str, enum.Enum):
    ISSUED = "issued"
    ALREADY_SATISFIED = "already_satisfied"
    FAILED = "failed"
    RECONCILIATION_HAZARD = "reconciliation_hazard"


@dataclass
class IssuanceResult:
    criterion_id: int
    user_id: int
    outcome: IssuanceOutcome
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (IssuanceOutcome.ISSUED, IssuanceOutcome.ALREADY_SATISFIED)


class IssuanceCoordinator:
    """
    Issues the badge of a met criterion through the external service, then
    records the criterion as met.

    A claim row is taken right before the external call, so of two racing
    callers only one ever reaches the service. When the service call succeeds
    but the record cannot be written, the claim is left in place: the badge is
    out, the record is not, and nobody issues it again until an operator
    reconciles it.
    """

    def __init__(self, store: CriterionStore, client: BadgeIssuer):
        self.store = store
        self.client = client

    def issue(self, criterion: Criterion, user: User, event_time: datetime) -> IssuanceResult:
        cid, uid = criterion.id, user.id

        if self.store.is_satisfied(cid, uid):
            return IssuanceResult(cid, uid, IssuanceOutcome.ALREADY_SATISFIED)

        badge = criterion.get_badge()
        badge_id = badge.id
        recipients = [recipient_for(self.store.session, user)]
        course = criterion.course
        email = resolve_email(badge, course.full_name if course is not None else None)

        if not self.store.claim(cid, uid, event_time):
            logger.info("Criterion %s for user %s is being issued elsewhere, skipping", cid, uid)
            return IssuanceResult(cid, uid, IssuanceOutcome.ALREADY_SATISFIED)

        try:
            # Another caller may have finished and released its claim since the first check.
            if self.store.is_satisfied(cid, uid):
                self._release(cid, uid)
                return IssuanceResult(cid, uid, IssuanceOutcome.ALREADY_SATISFIED)

            self.client.issue_badge(
                badge_id, recipients, event_time, email.subject, email.body, email.footer
            )
        except IssuanceServiceError as exc:
            logger.warning(
                "Issuing badge %s for criterion %s to user %s failed (%s): %s",
                badge_id, cid, uid, exc.code, exc,
            )
            self._release(cid, uid)
            self.store.record_failure(cid, uid, exc.code, str(exc))
            return IssuanceResult(cid, uid, IssuanceOutcome.FAILED, error=exc)
        except Exception:
            self._release(cid, uid)
            raise

        try:
            self.store.mark_satisfied(cid, uid, event_time)
        except AlreadySatisfied as exc:
            logger.warning(
                "Badge %s was issued to user %s but criterion %s was already recorded; "
                "the recipient may have received it twice",
                badge_id, uid, cid,
            )
            self._release(cid, uid)
            return IssuanceResult(cid, uid, IssuanceOutcome.ALREADY_SATISFIED, error=exc)
        except StorageWriteFailure as exc:
            logger.error(
                "Reconciliation needed: badge %s was issued to user %s but criterion %s "
                "could not be recorded as met: %s",
                badge_id, uid, cid, exc,
            )
            return IssuanceResult(cid, uid, IssuanceOutcome.RECONCILIATION_HAZARD, error=exc)

        self._release(cid, uid)
        logger.info("Issued badge %s to user %s for criterion %s", badge_id, uid, cid)
        return IssuanceResult(cid, uid, IssuanceOutcome.ISSUED)

    def _release(self, cid: int, uid: int) -> None:
        try:
            self.store.release_claim(cid, uid)
        except StorageWriteFailure:
            logger.exception("Claim on criterion %s for user %s could not be released and needs reconciling", cid, uid)
