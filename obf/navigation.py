"""
Links the plugin adds to the host's navigation trees.

The host builds the trees; the plugin only appends nodes the current user is
allowed to use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlencode

from obf.models import SITE_COURSE_ID, User
from obf.services.permissions import (
    CAP_ISSUE_BADGE,
    CAP_SEE_PARTICIPANT_BADGES,
    CapabilityChecker,
)

TYPE_ROOT = "root"
TYPE_COURSE = "course"
TYPE_SETTING = "setting"
TYPE_CUSTOM = "custom"

URL_PREFIX = "/local/obf"


def plugin_url(path: str, **params) -> str:
    url = f"{URL_PREFIX}{path}"
    return f"{url}?{urlencode(params)}" if params else url


@dataclass
class NavigationNode:
    key: str
    text: str
    url: Optional[str] = None
    type: str = TYPE_CUSTOM
    children: list["NavigationNode"] = field(default_factory=list)

    def get(self, key: str) -> Optional["NavigationNode"]:
        """Direct child with the given key."""
        for child in self.children:
            if child.key == key:
                return child
        return None

    def find(self, key: str, type: str) -> Optional["NavigationNode"]:
        """Depth-first search of the whole subtree."""
        for child in self.children:
            if child.key == key and child.type == type:
                return child
            found = child.find(key, type)
            if found is not None:
                return found
        return None

    def add_node(self, node: "NavigationNode", before_key: Optional[str] = None) -> "NavigationNode":
        if before_key is not None:
            for index, child in enumerate(self.children):
                if child.key == before_key:
                    self.children.insert(index, node)
                    return node
        self.children.append(node)
        return node

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "text": self.text,
            "url": self.url,
            "type": self.type,
            "children": [c.to_dict() for c in self.children],
        }


def add_course_participant_badges_link(branch: NavigationNode, course_id: int, user: User, checker: CapabilityChecker) -> bool:
    if not checker.has_capability(CAP_SEE_PARTICIPANT_BADGES, course_id, user):
        return False
    branch.add_node(NavigationNode(
        key="obf_courseuserbadges",
        text="Course participants' badges",
        url=plugin_url("/courseuserbadges", courseid=course_id),
    ))
    return True


def add_course_admin_link(branch: NavigationNode, course_id: int, user: User, checker: CapabilityChecker) -> bool:
    if not checker.has_capability(CAP_ISSUE_BADGE, course_id, user):
        return False
    branch.add_node(
        NavigationNode(
            key="obf",
            text="Open Badge Factory",
            url=plugin_url("/badge", action="list", courseid=course_id),
            type=TYPE_SETTING,
        ),
        before_key="backup",
    )
    return True


def add_backpack_settings_link(branch: NavigationNode) -> bool:
    branch.add_node(NavigationNode(
        key="obf_backpacksettings",
        text="Backpack settings",
        url=plugin_url("/userconfig"),
        type=TYPE_SETTING,
    ))
    return True


def extend_navigation(
    navigation: NavigationNode,
    course_id: int,
    user: User,
    checker: CapabilityChecker,
    settings_nav: Optional[NavigationNode] = None,
) -> None:
    """
    Adds the participant badges link to the course branch.

    Hosts that have no separate settings hook pass their settings tree as
    well, and it gets the same links as :func:`extend_settings_navigation`.
    """
    if course_id > SITE_COURSE_ID:
        branch = navigation.find(str(course_id), TYPE_COURSE)
        if branch is not None:
            add_course_participant_badges_link(branch, course_id, user, checker)

    if settings_nav is not None:
        extend_settings_navigation(settings_nav, course_id, user, checker)


def extend_settings_navigation(settings_nav: NavigationNode, course_id: int, user: User, checker: CapabilityChecker) -> None:
    branch = settings_nav.get("courseadmin")
    if branch is not None:
        add_course_admin_link(branch, course_id, user, checker)

    branch = settings_nav.get("usercurrentsettings")
    if branch is not None:
        add_backpack_settings_link(branch)
