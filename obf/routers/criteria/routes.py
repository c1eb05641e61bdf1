from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from obf.dependencies import get_capabilities, get_db, require_capability, require_user
from obf.models import Badge, Course, User
from obf.schemas import CriterionForm, CriterionOut, RuleForm
from obf.services.criterion_store import CriterionStore
from obf.services.permissions import CAP_ISSUE_BADGE
from obf.services.rules import CriterionRule

router = APIRouter(tags=["criteria"])


def _rule(form: CriterionForm | RuleForm) -> CriterionRule:
    return CriterionRule(
        requires_completion=form.requires_completion,
        min_grade=form.min_grade,
        completed_by=form.completed_by,
    )


def _editable_criterion(criterion_id: int, session: Session, user: User, checker):
    criterion = CriterionStore(session).get_criterion(criterion_id)
    if not criterion:
        raise HTTPException(status_code=404, detail="Criterion not found")
    checker.require_capability(CAP_ISSUE_BADGE, criterion.course_id, user)
    return criterion


@router.get("/courses/{course_id}/criteria", response_model=list[CriterionOut], name="criteria.list")
def list_criteria(
    course_id: int,
    current_user: User = Depends(require_capability(CAP_ISSUE_BADGE)),
    session: Session = Depends(get_db),
):
    criteria = CriterionStore(session).criteria_for_course(course_id)
    return sorted(criteria, key=lambda c: c.id)


@router.post("/courses/{course_id}/criteria", response_model=CriterionOut, status_code=201, name="criteria.create")
def create_criterion(
    course_id: int,
    form: CriterionForm,
    current_user: User = Depends(require_capability(CAP_ISSUE_BADGE)),
    session: Session = Depends(get_db),
):
    if not session.get(Course, course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    if not session.get(Badge, form.badge_id):
        raise HTTPException(status_code=404, detail="Badge not found")
    return CriterionStore(session).create_criterion(course_id, form.badge_id, _rule(form))


@router.put("/criteria/{criterion_id}", response_model=CriterionOut, name="criteria.edit")
def edit_criterion(
    criterion_id: int,
    form: RuleForm,
    current_user: User = Depends(require_user),
    checker=Depends(get_capabilities),
    session: Session = Depends(get_db),
):
    _editable_criterion(criterion_id, session, current_user, checker)
    return CriterionStore(session).update_rule(criterion_id, _rule(form))


@router.delete("/criteria/{criterion_id}", status_code=204, name="criteria.delete")
def delete_criterion(
    criterion_id: int,
    current_user: User = Depends(require_user),
    checker=Depends(get_capabilities),
    session: Session = Depends(get_db),
):
    _editable_criterion(criterion_id, session, current_user, checker)
    CriterionStore(session).delete_criterion(criterion_id)
