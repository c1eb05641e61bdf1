from __future__ import annotations

import re
from typing import Optional

from sqlalchemy.orm import Session

from obf.models import Backpack, User

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def get_backpack(session: Session, user_id: int) -> Optional[Backpack]:
    return session.query(Backpack).filter_by(user_id=user_id).first()


def recipient_for(session: Session, user: User) -> str:
    # If the user has configured the backpack settings, use the backpack email
    # instead of the default email.
    backpack = get_backpack(session, user.id)
    return backpack.email if backpack is not None else user.email


def save_backpack(session: Session, user: User, email: str) -> Backpack:
    email = (email or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValueError(f"Invalid backpack email: {email!r}")

    backpack = get_backpack(session, user.id)
    if backpack is None:
        backpack = Backpack(user_id=user.id, email=email)
        session.add(backpack)
    else:
        backpack.email = email
    session.commit()
    return backpack


def delete_backpack(session: Session, user: User) -> bool:
    backpack = get_backpack(session, user.id)
    if backpack is None:
        return False
    session.delete(backpack)
    session.commit()
    return True
