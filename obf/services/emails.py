from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from obf.models import Badge
from obf.templating import get_string, render_template


@dataclass(frozen=True)
class EmailContent:
    subject: str
    body: str
    footer: str


def default_email(course_name: str = "") -> EmailContent:
    return EmailContent(
        subject=get_string("defaultemailsubject"),
        body=render_template("emails/default_body.txt", {"course_name": course_name or "your course"}),
        footer=render_template("emails/default_footer.txt", {}),
    )


def resolve_email(badge: Badge, course_name: Optional[str] = None) -> EmailContent:
    """The badge's own email if it has one, otherwise the default email."""
    custom = badge.get_email()
    if custom is None:
        return default_email(course_name or "")
    return EmailContent(subject=custom.subject or "", body=custom.body or "", footer=custom.footer or "")
