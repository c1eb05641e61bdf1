import pytest

from obf.errors import AlreadySatisfied, StorageWriteFailure
from obf.models import Criterion, CriterionMet, IssuanceClaim
from obf.services.criterion_store import CriterionStore
from obf.services.rules import CriterionRule

from tests.conftest import NOW


def test_criteria_for_course_returns_only_that_course(session, world):
    store = CriterionStore(session)
    assert store.criteria_for_course(42) == {world["a"], world["b"]}
    assert store.criteria_for_course(43) == {world["other_criterion"]}


def test_criteria_for_course_without_criteria_is_empty(session, world):
    assert CriterionStore(session).criteria_for_course(999) == set()


def test_mark_satisfied_is_unique_per_criterion_and_user(session, world):
    store = CriterionStore(session)
    cid = world["a"].id

    assert not store.is_satisfied(cid, 7)
    store.mark_satisfied(cid, 7, NOW)
    assert store.is_satisfied(cid, 7)

    with pytest.raises(AlreadySatisfied):
        store.mark_satisfied(cid, 7, NOW)

    assert session.query(CriterionMet).filter_by(criterion_id=cid, user_id=7).count() == 1
    # Other users are unaffected
    assert not store.is_satisfied(cid, 8)


def test_mark_satisfied_wraps_other_write_errors(session, world, monkeypatch):
    store = CriterionStore(session)

    def broken_commit():
        from sqlalchemy.exc import OperationalError
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", broken_commit)
    with pytest.raises(StorageWriteFailure):
        store.mark_satisfied(world["a"].id, 7, NOW)


def test_delete_criteria_for_course_cascades_and_spares_other_courses(session, world):
    store = CriterionStore(session)
    store.mark_satisfied(world["a"].id, 7, NOW)
    store.mark_satisfied(world["other_criterion"].id, 7, NOW)
    store.claim(world["b"].id, 7, NOW)

    assert store.delete_criteria_for_course(42) == 2

    assert store.criteria_for_course(42) == set()
    assert session.query(Criterion).filter_by(course_id=43).count() == 1
    assert session.query(CriterionMet).count() == 1
    assert session.query(IssuanceClaim).count() == 0
    assert store.is_satisfied(world["other_criterion"].id, 7)


def test_delete_criteria_for_course_without_criteria(session, world):
    assert CriterionStore(session).delete_criteria_for_course(999) == 0


def test_update_rule_changes_only_the_rule(session, world):
    store = CriterionStore(session)
    updated = store.update_rule(world["a"].id, CriterionRule(requires_completion=True, min_grade=90.0))

    assert updated.min_grade == 90.0
    assert updated.requires_completion is True
    assert updated.badge_id == "BADGEA"
    assert updated.updated_at is not None
    assert store.update_rule(12345, CriterionRule()) is None


def test_claim_is_exclusive_until_released(session, world):
    store = CriterionStore(session)
    cid = world["b"].id

    assert store.claim(cid, 7, NOW) is True
    assert store.claim(cid, 7, NOW) is False
    assert [c.criterion_id for c in store.pending_claims()] == [cid]

    store.release_claim(cid, 7)
    assert store.pending_claims() == []
    assert store.claim(cid, 7, NOW) is True


def test_record_failure_is_listed_newest_first(session, world):
    store = CriterionStore(session)
    store.record_failure(world["a"].id, 7, "issuance_unavailable", "timeout")
    store.record_failure(world["b"].id, 7, "certificate_error", "495")

    failures = store.recent_failures()
    assert [f.error_code for f in failures] == ["certificate_error", "issuance_unavailable"]
