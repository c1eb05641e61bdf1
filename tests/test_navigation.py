from obf.navigation import (
    TYPE_COURSE,
    TYPE_SETTING,
    NavigationNode,
    extend_navigation,
    extend_settings_navigation,
)
from obf.services.permissions import RoleCapabilityChecker


def _course_tree(course_id):
    root = NavigationNode("root", "Home")
    courses = root.add_node(NavigationNode("courses", "My courses"))
    courses.add_node(NavigationNode(str(course_id), "Course", type=TYPE_COURSE))
    return root


def _settings_tree():
    root = NavigationNode("root", "Settings")
    admin = root.add_node(NavigationNode("courseadmin", "Course administration", type=TYPE_SETTING))
    admin.add_node(NavigationNode("edit", "Edit settings"))
    admin.add_node(NavigationNode("backup", "Backup"))
    root.add_node(NavigationNode("usercurrentsettings", "My profile settings", type=TYPE_SETTING))
    return root


def test_teacher_gets_participant_badges_link(session, world):
    tree = _course_tree(42)
    extend_navigation(tree, 42, world["teacher"], RoleCapabilityChecker(session))

    node = tree.find("42", TYPE_COURSE)
    assert [c.key for c in node.children] == ["obf_courseuserbadges"]
    assert node.children[0].url == "/local/obf/courseuserbadges?courseid=42"


def test_learner_gets_no_participant_badges_link(session, world):
    tree = _course_tree(42)
    extend_navigation(tree, 42, world["learner"], RoleCapabilityChecker(session))
    assert tree.find("42", TYPE_COURSE).children == []


def test_site_course_is_never_decorated(session, world):
    tree = _course_tree(1)
    extend_navigation(tree, 1, world["admins"][0], RoleCapabilityChecker(session))
    assert tree.find("1", TYPE_COURSE).children == []


def test_course_admin_link_goes_before_backup(session, world):
    tree = _settings_tree()
    extend_settings_navigation(tree, 42, world["teacher"], RoleCapabilityChecker(session))

    assert [c.key for c in tree.get("courseadmin").children] == ["edit", "obf", "backup"]
    assert tree.get("courseadmin").children[1].url == "/local/obf/badge?action=list&courseid=42"
    assert [c.key for c in tree.get("usercurrentsettings").children] == ["obf_backpacksettings"]


def test_learner_only_gets_backpack_settings(session, world):
    tree = _settings_tree()
    extend_settings_navigation(tree, 42, world["learner"], RoleCapabilityChecker(session))

    assert [c.key for c in tree.get("courseadmin").children] == ["edit", "backup"]
    assert [c.key for c in tree.get("usercurrentsettings").children] == ["obf_backpacksettings"]


def test_add_node_without_anchor_appends():
    root = NavigationNode("root", "Root")
    root.add_node(NavigationNode("a", "A"))
    root.add_node(NavigationNode("b", "B"), before_key="missing")
    assert [c.key for c in root.children] == ["a", "b"]


def test_navigation_hook_can_decorate_settings_tree_too(session, world):
    tree = _course_tree(42)
    settings = _settings_tree()
    extend_navigation(tree, 42, world["teacher"], RoleCapabilityChecker(session), settings_nav=settings)

    assert [c.key for c in tree.find("42", TYPE_COURSE).children] == ["obf_courseuserbadges"]
    assert [c.key for c in settings.get("courseadmin").children] == ["edit", "obf", "backup"]
    assert [c.key for c in settings.get("usercurrentsettings").children] == ["obf_backpacksettings"]
