"""
Host event handlers.

The host calls :func:`dispatch` with an event name and a payload. Handlers are
plain functions registered against the name together with the pydantic model
that validates the payload; each returns True when the event was handled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Generic, Mapping, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from obf.errors import (
    IssuanceServiceCertificateError,
    IssuanceServiceError,
    IssuanceServiceNoCertificate,
    ObfError,
)
from obf.models import User, get_admins
from obf.schemas import CourseCompletedEvent, CourseDeletedEvent, CronEvent
from obf.services.criterion_store import CriterionStore
from obf.services.evaluator import CriterionEvaluator
from obf.services.expiration import ExpirationMonitor
from obf.services.issuance import BadgeIssuer, IssuanceCoordinator, IssuanceOutcome, IssuanceResult
from obf.services.messaging import SEVERITY_ERROR, MessageSink, notify_admins
from obf.services.permissions import CapabilityChecker
from obf.templating import get_string, render_template
from obf.utils import utcnow

logger = logging.getLogger(__name__)

EVENT_COURSE_COMPLETED = "course_completed"
EVENT_COURSE_DELETED = "course_deleted"
EVENT_CRON = "cron"

P = TypeVar("P", bound=BaseModel)


@dataclass
class HandlerContext:
    """Everything a handler may touch, passed explicitly on every call."""

    session: Session
    client: BadgeIssuer
    capabilities: CapabilityChecker
    sink: MessageSink
    clock: Callable[[], datetime] = utcnow
    results: list[IssuanceResult] = field(default_factory=list)


@dataclass(frozen=True)
class Registration(Generic[P]):
    payload_model: Type[P]
    handler: Callable[[P, HandlerContext], bool]


class EventRegistry:
    def __init__(self) -> None:
        self._handlers: dict[str, Registration] = {}

    def register(self, name: str, payload_model: Type[P]):
        def decorator(fn: Callable[[P, HandlerContext], bool]):
            if name in self._handlers:
                raise ValueError(f"Handler already registered for {name!r}")
            self._handlers[name] = Registration(payload_model, fn)
            return fn
        return decorator

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def dispatch(self, name: str, payload: Mapping[str, Any] | BaseModel, context: HandlerContext) -> bool:
        registration = self._handlers[name]
        if not isinstance(payload, registration.payload_model):
            payload = registration.payload_model.model_validate(
                payload.model_dump() if isinstance(payload, BaseModel) else dict(payload)
            )
        return registration.handler(payload, context)


registry = EventRegistry()


def dispatch(name: str, payload: Mapping[str, Any] | BaseModel, context: HandlerContext) -> bool:
    return registry.dispatch(name, payload, context)


@registry.register(EVENT_COURSE_COMPLETED, CourseCompletedEvent)
def course_completed(event: CourseCompletedEvent, ctx: HandlerContext) -> bool:
    """
    Reviews the badge criteria of the course and issues the badges the user
    has now earned. Failures of single criteria are logged and recorded but do
    not fail the event.
    """
    try:
        user = ctx.session.get(User, event.user_id)
        if user is None:
            logger.error("Course completion for unknown user %s", event.user_id)
            return False

        store = CriterionStore(ctx.session)
        met = CriterionEvaluator(store, ctx.capabilities).evaluate(user, event.course_id)
    except (SQLAlchemyError, ObfError):
        logger.exception("Could not evaluate criteria of course %s for user %s", event.course_id, event.user_id)
        return False

    coordinator = IssuanceCoordinator(store, ctx.client)
    results: list[IssuanceResult] = []
    now = ctx.clock()
    user_id = user.id
    for criterion in sorted(met, key=lambda c: c.id):
        criterion_id = criterion.id
        try:
            result = coordinator.issue(criterion, user, now)
        except Exception as exc:
            ctx.session.rollback()
            logger.exception("Issuing criterion %s to user %s failed", criterion_id, user_id)
            result = IssuanceResult(criterion_id, user_id, IssuanceOutcome.FAILED, error=exc)
        results.append(result)

        if isinstance(result.error, (IssuanceServiceCertificateError, IssuanceServiceNoCertificate)):
            _alert_certificate_failure(ctx, criterion, user, result.error)

    ctx.results.extend(results)
    failed = [r for r in results if not r.ok]
    if failed:
        logger.warning(
            "Course %s completion for user %s: %s of %s criteria failed",
            event.course_id, user_id, len(failed), len(results),
        )
    return True


@registry.register(EVENT_COURSE_DELETED, CourseDeletedEvent)
def course_deleted(event: CourseDeletedEvent, ctx: HandlerContext) -> bool:
    """When the course is deleted, its badge issuance criteria go with it."""
    try:
        CriterionStore(ctx.session).delete_criteria_for_course(event.course_id)
    except (SQLAlchemyError, ObfError):
        ctx.session.rollback()
        logger.exception("Could not delete criteria of course %s", event.course_id)
        return False
    return True


@registry.register(EVENT_CRON, CronEvent)
def cron(event: CronEvent, ctx: HandlerContext) -> bool:
    monitor = ExpirationMonitor(
        ctx.client,
        ctx.sink,
        admins=lambda: get_admins(ctx.session),
        clock=ctx.clock,
    )
    try:
        monitor.check()
    except IssuanceServiceError:
        logger.exception("Could not check the OBF certificate expiration date")
        return False
    except SQLAlchemyError:
        ctx.session.rollback()
        logger.exception("Could not notify admins about the OBF certificate expiration date")
        return False
    return True


def _alert_certificate_failure(ctx: HandlerContext, criterion, user: User, error: IssuanceServiceError) -> None:
    params = {"badge_name": criterion.badge.name, "user_id": user.id, "detail": str(error)}
    try:
        notify_admins(
            ctx.sink,
            get_admins(ctx.session),
            severity=SEVERITY_ERROR,
            subject=get_string("certificateerrorsubject"),
            text=render_template("messages/certificate_failure.txt", params),
            html=render_template("messages/certificate_failure.html", params),
        )
    except SQLAlchemyError:
        logger.exception("Could not notify admins about certificate failure %s", error.code)
