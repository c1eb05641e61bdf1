from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable, Optional

from obf.models import User
from obf.services.issuance import BadgeIssuer
from obf.services.messaging import (
    SEVERITY_ERROR,
    SEVERITY_NOTICE,
    AdminNotification,
    MessageSink,
    notify_admins,
)
from obf.templating import get_string, render_template
from obf.utils import as_aware_utc, utcnow

logger = logging.getLogger(__name__)

# Notify only if there's certain amount of days left before the certificate expires.
ALERT_DAYS = frozenset({30, 25, 20, 15, 10, 5, 4, 3, 2, 1})
ERROR_THRESHOLD_DAYS = 5

SECONDS_PER_DAY = 60 * 60 * 24


def days_remaining(expires_at: datetime, now: datetime) -> int:
    diff = (as_aware_utc(expires_at) - as_aware_utc(now)).total_seconds()
    return math.floor(diff / SECONDS_PER_DAY)


class ExpirationMonitor:
    """Warns administrators as the OBF client certificate nears expiry.

    Running it twice on the same day sends the warning twice; the scheduler is
    expected to call it once a day.
    """

    def __init__(
        self,
        client: BadgeIssuer,
        sink: MessageSink,
        admins: Callable[[], list[User]],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.sink = sink
        self.admins = admins
        self.clock = clock

    def check(self, now: Optional[datetime] = None) -> list[AdminNotification]:
        expires_at = self.client.get_certificate_expiration_date()
        days = days_remaining(expires_at, now or self.clock())

        if days not in ALERT_DAYS:
            logger.debug("Certificate expires in %s days, no alert", days)
            return []

        severity = SEVERITY_ERROR if days <= ERROR_THRESHOLD_DAYS else SEVERITY_NOTICE
        params = {"days": days}
        sent = notify_admins(
            self.sink,
            self.admins(),
            severity=severity,
            subject=get_string("expiringcertificatesubject"),
            text=render_template("messages/expiring_certificate.txt", params),
            html=render_template("messages/expiring_certificate.html", params),
        )
        logger.warning("OBF certificate expires in %s days, notified %s admins", days, len(sent))
        return sent
