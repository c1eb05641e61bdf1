from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from obf.dependencies import get_db, require_user
from obf.models import User
from obf.schemas import BackpackForm, BackpackOut
from obf.services.backpack import delete_backpack, get_backpack, save_backpack

router = APIRouter(prefix="/backpack", tags=["backpack"])


@router.get("", response_model=BackpackOut, name="backpack.show")
def show_backpack(current_user: User = Depends(require_user), session: Session = Depends(get_db)):
    backpack = get_backpack(session, current_user.id)
    if not backpack:
        raise HTTPException(status_code=404, detail="No backpack configured")
    return backpack


@router.put("", response_model=BackpackOut, name="backpack.save")
def update_backpack(
    form: BackpackForm,
    current_user: User = Depends(require_user),
    session: Session = Depends(get_db),
):
    try:
        return save_backpack(session, current_user, form.email)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("", status_code=204, name="backpack.delete")
def remove_backpack(current_user: User = Depends(require_user), session: Session = Depends(get_db)):
    if not delete_backpack(session, current_user):
        raise HTTPException(status_code=404, detail="No backpack configured")
