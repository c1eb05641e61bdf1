from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from obf.dependencies import get_db, require_site_admin
from obf.models import User
from obf.schemas import ClaimOut, FailureOut
from obf.services.criterion_store import CriterionStore

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/claims", response_model=list[ClaimOut], name="admin.claims")
def pending_claims(
    current_user: User = Depends(require_site_admin),
    session: Session = Depends(get_db),
):
    """Issuances that were started but never recorded; each needs reconciling."""
    return CriterionStore(session).pending_claims()


@router.get("/failures", response_model=list[FailureOut], name="admin.failures")
def recent_failures(
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(require_site_admin),
    session: Session = Depends(get_db),
):
    return CriterionStore(session).recent_failures(limit)
