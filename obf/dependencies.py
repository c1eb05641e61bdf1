import hmac
from typing import Any, Optional

from fastapi import Depends, Header, HTTPException

from .config import settings
from .extensions import db
from .integrations import ObfClient
from .models import User
from .services.messaging import DatabaseMessageSink
from .services.permissions import RoleCapabilityChecker


def get_db() -> Any:
    """Dependency to provide a database session."""
    try:
        yield db.session
    finally:
        db.remove_session()


def get_obf_client() -> ObfClient:
    """OBF client built from settings; overridden in tests."""
    return ObfClient.from_settings()


def get_capabilities(session=Depends(get_db)) -> RoleCapabilityChecker:
    return RoleCapabilityChecker(session)


def get_message_sink(session=Depends(get_db)) -> DatabaseMessageSink:
    return DatabaseMessageSink(session)


def require_host(x_host_token: Optional[str] = Header(default=None)) -> None:
    """Host-to-plugin calls (events, cron) must carry the shared token."""
    if not x_host_token or not hmac.compare_digest(x_host_token, settings.HOST_API_TOKEN):
        raise HTTPException(status_code=401, detail="Invalid host token")


def require_user(x_user_id: Optional[int] = Header(default=None), session=Depends(get_db)) -> User:
    """The user the host gateway authenticated for this request."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = session.get(User, x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_site_admin(user: User = Depends(require_user)) -> User:
    if not user.is_site_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def require_capability(capability: str):
    """Dependency factory checking a capability in the course of the path."""
    def capability_checker(
        course_id: int,
        user: User = Depends(require_user),
        checker: RoleCapabilityChecker = Depends(get_capabilities),
    ):
        if not checker.has_capability(capability, course_id, user):
            raise HTTPException(status_code=403, detail="Permission denied")
        return user
    return capability_checker
