from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from obf.dependencies import get_capabilities, get_db, require_user
from obf.models import Course, User
from obf.navigation import (
    TYPE_COURSE,
    TYPE_ROOT,
    TYPE_SETTING,
    NavigationNode,
    extend_navigation,
    extend_settings_navigation,
)

router = APIRouter(prefix="/navigation", tags=["navigation"])


@router.get("", name="navigation.links")
def navigation_links(
    course_id: int,
    current_user: User = Depends(require_user),
    checker=Depends(get_capabilities),
    session: Session = Depends(get_db),
):
    """The plugin's nodes for the course and settings trees of one page."""
    course = session.get(Course, course_id)
    course_name = course.full_name if course else str(course_id)

    navigation = NavigationNode("root", "Home", type=TYPE_ROOT)
    navigation.add_node(NavigationNode(str(course_id), course_name, type=TYPE_COURSE))
    extend_navigation(navigation, course_id, current_user, checker)

    settings_nav = NavigationNode("root", "Settings", type=TYPE_ROOT)
    settings_nav.add_node(NavigationNode("courseadmin", "Course administration", type=TYPE_SETTING))
    settings_nav.add_node(NavigationNode("usercurrentsettings", "My profile settings", type=TYPE_SETTING))
    extend_settings_navigation(settings_nav, course_id, current_user, checker)

    return {"navigation": navigation.to_dict(), "settings": settings_nav.to_dict()}
