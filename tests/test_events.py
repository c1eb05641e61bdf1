from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from obf.errors import (
    IssuanceServiceCertificateError,
    IssuanceServiceNoCertificate,
    IssuanceServiceUnavailable,
)
from obf.events import EVENT_COURSE_COMPLETED, EVENT_COURSE_DELETED, EVENT_CRON, EventRegistry, HandlerContext, dispatch, registry
from obf.models import Criterion, CriterionMet, IssuanceFailure
from obf.schemas import CourseCompletedEvent
from obf.services.criterion_store import CriterionStore
from obf.services.issuance import IssuanceOutcome
from obf.services.permissions import RoleCapabilityChecker

from tests.conftest import NOW, complete


@pytest.fixture
def ctx(session, client, sink):
    return HandlerContext(
        session=session,
        client=client,
        capabilities=RoleCapabilityChecker(session),
        sink=sink,
        clock=lambda: NOW,
    )


def test_registry_knows_the_host_events():
    assert registry.names() == [EVENT_COURSE_COMPLETED, EVENT_COURSE_DELETED, EVENT_CRON]


def test_registry_rejects_duplicate_and_unknown_names(ctx):
    local = EventRegistry()

    @local.register("ping", CourseCompletedEvent)
    def ping(event, context):
        return event.user_id == 1

    with pytest.raises(ValueError):
        local.register("ping", CourseCompletedEvent)(ping)
    with pytest.raises(KeyError):
        local.dispatch("pong", {}, ctx)
    assert local.dispatch("ping", {"user_id": 1, "course_id": 2}, ctx) is True


def test_course_completed_issues_every_met_criterion(session, world, ctx, client):
    complete(session, 7, 42, grade=85.0)

    assert dispatch(EVENT_COURSE_COMPLETED, {"user_id": 7, "course_id": 42}, ctx) is True

    assert sorted(c["badge_id"] for c in client.calls) == ["BADGEA", "BADGEB"]
    assert session.query(CriterionMet).filter_by(user_id=7).count() == 2
    assert {r.outcome for r in ctx.results} == {IssuanceOutcome.ISSUED}


def test_course_completed_again_makes_no_external_calls(session, world, ctx, client):
    complete(session, 7, 42, grade=85.0)
    dispatch(EVENT_COURSE_COMPLETED, {"user_id": 7, "course_id": 42}, ctx)
    client.calls.clear()

    assert dispatch(EVENT_COURSE_COMPLETED, {"user_id": 7, "course_id": 42}, ctx) is True
    assert client.calls == []


def test_partial_failure_still_reports_success(session, world, ctx, client):
    complete(session, 7, 42, grade=85.0)
    client.errors["BADGEA"] = IssuanceServiceUnavailable("timeout")

    assert dispatch(EVENT_COURSE_COMPLETED, {"user_id": 7, "course_id": 42}, ctx) is True

    store = CriterionStore(session)
    assert not store.is_satisfied(world["a"].id, 7)
    assert store.is_satisfied(world["b"].id, 7)
    failure = session.query(IssuanceFailure).one()
    assert failure.criterion_id == world["a"].id
    outcomes = {r.criterion_id: r.outcome for r in ctx.results}
    assert outcomes == {world["a"].id: IssuanceOutcome.FAILED, world["b"].id: IssuanceOutcome.ISSUED}


@pytest.mark.parametrize("error", [IssuanceServiceCertificateError("495"), IssuanceServiceNoCertificate("496")])
def test_certificate_errors_alert_admins(session, world, ctx, client, sink, error):
    complete(session, 7, 42, grade=10.0)
    client.errors["BADGEB"] = error

    assert dispatch(EVENT_COURSE_COMPLETED, {"user_id": 7, "course_id": 42}, ctx) is True

    assert [n.user_to_id for n in sink.sent] == [100, 101]
    assert {n.severity for n in sink.sent} == {"error"}
    assert "Finisher" in sink.sent[0].full_message


def test_transient_errors_do_not_alert_admins(session, world, ctx, client, sink):
    complete(session, 7, 42, grade=10.0)
    client.errors["BADGEB"] = IssuanceServiceUnavailable("timeout")
    dispatch(EVENT_COURSE_COMPLETED, {"user_id": 7, "course_id": 42}, ctx)
    assert sink.sent == []


def test_course_completed_for_unknown_user_fails(session, world, ctx):
    assert dispatch(EVENT_COURSE_COMPLETED, {"user_id": 999, "course_id": 42}, ctx) is False


def test_course_completed_without_capability_is_a_successful_no_op(session, world, ctx, client):
    complete(session, 8, 42, grade=100.0)
    assert dispatch(EVENT_COURSE_COMPLETED, {"user_id": 8, "course_id": 42}, ctx) is True
    assert client.calls == []


def test_course_deleted_removes_its_criteria(session, world, ctx):
    assert dispatch(EVENT_COURSE_DELETED, {"course_id": 42}, ctx) is True
    assert session.query(Criterion).filter_by(course_id=42).count() == 0
    assert session.query(Criterion).filter_by(course_id=43).count() == 1


def test_cron_notifies_and_reports_missing_certificate(session, world, ctx, client, sink):
    client.expires_at = NOW + timedelta(days=31, hours=1)
    assert dispatch(EVENT_CRON, {}, ctx) is True
    assert sink.sent == []

    client.expiry_error = IssuanceServiceNoCertificate("missing")
    assert dispatch(EVENT_CRON, {}, ctx) is False


def test_unexpected_issue_error_is_reported_per_criterion(session, world, ctx, client):
    complete(session, 7, 42, grade=85.0)
    client.errors["BADGEA"] = RuntimeError("boom")

    assert dispatch(EVENT_COURSE_COMPLETED, {"user_id": 7, "course_id": 42}, ctx) is True

    outcomes = {r.criterion_id: r.outcome for r in ctx.results}
    assert outcomes == {world["a"].id: IssuanceOutcome.FAILED, world["b"].id: IssuanceOutcome.ISSUED}
    assert CriterionStore(session).pending_claims() == []


class BrokenSink:
    def send(self, notification):
        raise OperationalError("INSERT INTO obf_messages", {}, Exception("database is locked"))


def test_cron_returns_false_when_messages_cannot_be_stored(session, world, ctx, client):
    client.expires_at = NOW + timedelta(days=5, hours=1)
    ctx.sink = BrokenSink()
    assert dispatch(EVENT_CRON, {}, ctx) is False


def test_course_deleted_returns_false_on_database_error(session, world, ctx, monkeypatch):
    def broken_delete(self, course_id):
        raise OperationalError("DELETE FROM obf_criteria", {}, Exception("database is locked"))

    monkeypatch.setattr(CriterionStore, "delete_criteria_for_course", broken_delete)
    assert dispatch(EVENT_COURSE_DELETED, {"course_id": 42}, ctx) is False
