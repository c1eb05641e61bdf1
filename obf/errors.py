"""
Error kinds raised by the badge issuance engine.

Per-criterion errors are caught by the event handlers and reported; only a
total subsystem failure turns into a failed event outcome.
"""

from typing import Optional


class ObfError(Exception):
    """Base class for all plugin errors."""

    code = "obf_error"

    def __init__(self, message: str = "", *, status_code: Optional[int] = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.status_code = status_code


class AlreadySatisfied(ObfError):
    """A SatisfactionRecord already exists for the (criterion, user) pair."""

    code = "already_satisfied"

    def __init__(self, criterion_id: int, user_id: int) -> None:
        super().__init__(f"Criterion {criterion_id} already met by user {user_id}")
        self.criterion_id = criterion_id
        self.user_id = user_id


class IssuanceServiceError(ObfError):
    """The badge-issuing service rejected the request. Not retryable."""

    code = "issuance_error"
    retryable = False


class IssuanceServiceUnavailable(IssuanceServiceError):
    """Network failure, timeout or 5xx from the badge-issuing service."""

    code = "issuance_unavailable"
    retryable = True


class IssuanceServiceCertificateError(IssuanceServiceError):
    """The service refused the client certificate."""

    code = "certificate_error"


class IssuanceServiceNoCertificate(IssuanceServiceError):
    """No client certificate is available or the service saw none."""

    code = "no_certificate"


class StorageWriteFailure(ObfError):
    """A write to the plugin tables failed and was rolled back."""

    code = "storage_write_failure"


class Unauthorized(ObfError):
    """The user lacks the capability required for the operation."""

    code = "unauthorized"

    def __init__(self, capability: str, user_id: Optional[int] = None) -> None:
        super().__init__(f"Missing capability {capability}")
        self.capability = capability
        self.user_id = user_id
