from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.orm import Session

from obf.models import AdminMessage, User

logger = logging.getLogger(__name__)

SEVERITY_NOTICE = "notice"
SEVERITY_ERROR = "error"


@dataclass(frozen=True)
class AdminNotification:
    user_to_id: int
    severity: str
    subject: str
    full_message: str
    full_message_html: str


class MessageSink(Protocol):
    def send(self, notification: AdminNotification) -> None: ...


class DatabaseMessageSink:
    """Stores notifications in ``obf_messages`` for the host to deliver."""

    def __init__(self, session: Session):
        self.session = session

    def send(self, notification: AdminNotification) -> None:
        self.session.add(
            AdminMessage(
                user_to_id=notification.user_to_id,
                severity=notification.severity,
                subject=notification.subject,
                full_message=notification.full_message,
                full_message_html=notification.full_message_html,
            )
        )
        self.session.commit()
        logger.info(
            "Queued %s message %r for user %s",
            notification.severity, notification.subject, notification.user_to_id,
        )


def notify_admins(
    sink: MessageSink,
    admins: list[User],
    *,
    severity: str,
    subject: str,
    text: str,
    html: str,
) -> list[AdminNotification]:
    sent = []
    for admin in admins:
        notification = AdminNotification(
            user_to_id=admin.id,
            severity=severity,
            subject=subject,
            full_message=text,
            full_message_html=html,
        )
        sink.send(notification)
        sent.append(notification)
    return sent
