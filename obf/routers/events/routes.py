from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from obf.dependencies import get_capabilities, get_db, get_message_sink, get_obf_client, require_host
from obf.events import EVENT_COURSE_COMPLETED, EVENT_COURSE_DELETED, EVENT_CRON, HandlerContext, dispatch
from obf.schemas import CourseCompletedEvent, CourseDeletedEvent, EventOutcome

router = APIRouter(tags=["events"], dependencies=[Depends(require_host)])


def handler_context(
    session: Session = Depends(get_db),
    client=Depends(get_obf_client),
    capabilities=Depends(get_capabilities),
    sink=Depends(get_message_sink),
) -> HandlerContext:
    return HandlerContext(session=session, client=client, capabilities=capabilities, sink=sink)


@router.post("/events/course-completed", response_model=EventOutcome, name="events.course_completed")
def course_completed(event: CourseCompletedEvent, ctx: HandlerContext = Depends(handler_context)):
    return EventOutcome(ok=dispatch(EVENT_COURSE_COMPLETED, event, ctx))


@router.post("/events/course-deleted", response_model=EventOutcome, name="events.course_deleted")
def course_deleted(event: CourseDeletedEvent, ctx: HandlerContext = Depends(handler_context)):
    return EventOutcome(ok=dispatch(EVENT_COURSE_DELETED, event, ctx))


@router.post("/cron/run", response_model=EventOutcome, name="events.cron")
def run_cron(ctx: HandlerContext = Depends(handler_context)):
    return EventOutcome(ok=dispatch(EVENT_CRON, {}, ctx))
