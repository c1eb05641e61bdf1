"""Client for the Open Badge Factory REST API."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

import requests
from cryptography import x509

from obf.config import (
    OBF_API_CODE_CERT_ERROR,
    OBF_API_CODE_NO_CERT,
    OBF_API_CONSUMER_ID,
    settings,
)
from obf.errors import (
    IssuanceServiceCertificateError,
    IssuanceServiceError,
    IssuanceServiceNoCertificate,
    IssuanceServiceUnavailable,
)
from obf.utils import as_aware_utc

logger = logging.getLogger(__name__)


class ObfClient:
    """Thin client for the badge-issuing service.

    Requests are authenticated with the client certificate issued by OBF, so
    the same PEM file also tells us when access will stop working.
    """

    def __init__(
        self,
        *,
        client_id: str,
        api_url: str = settings.OBF_API_URL,
        cert_path: str = settings.OBF_CERT_PATH,
        key_path: Optional[str] = settings.OBF_KEY_PATH,
        timeout: float = settings.OBF_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not client_id:
            raise ValueError("OBF client id must be provided")
        self.client_id = client_id
        self.api_url = api_url.rstrip("/")
        self.cert_path = cert_path
        self.key_path = key_path
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, **overrides: Any) -> "ObfClient":
        kwargs: Dict[str, Any] = dict(
            client_id=settings.OBF_CLIENT_ID,
            api_url=settings.OBF_API_URL,
            cert_path=settings.OBF_CERT_PATH,
            key_path=settings.OBF_KEY_PATH,
            timeout=settings.OBF_TIMEOUT_SECONDS,
        )
        kwargs.update(overrides)
        return cls(**kwargs)

    def issue_badge(
        self,
        badge_id: str,
        recipients: Iterable[str],
        issued_at: datetime,
        subject: str,
        body: str,
        footer: str,
    ) -> Dict[str, Any]:
        payload = {
            "recipient": list(recipients),
            "issued_on": int(as_aware_utc(issued_at).timestamp()),
            "email_subject": subject,
            "email_body": body,
            "email_footer": footer,
            "api_consumer_id": OBF_API_CONSUMER_ID,
        }
        return self.request("POST", f"/badge/{self.client_id}/{badge_id}", json_body=payload)

    def get_badge(self, badge_id: str) -> Dict[str, Any]:
        return self.request("GET", f"/badge/{self.client_id}/{badge_id}")

    def get_certificate_expiration_date(self) -> datetime:
        """Return the expiry (aware, UTC) of the client certificate."""
        try:
            with open(self.cert_path, "rb") as fh:
                pem = fh.read()
        except FileNotFoundError as exc:
            raise IssuanceServiceNoCertificate(f"Client certificate not found at {self.cert_path}") from exc

        try:
            cert = x509.load_pem_x509_certificate(pem)
        except ValueError as exc:
            raise IssuanceServiceCertificateError(f"Client certificate at {self.cert_path} is not valid PEM") from exc
        return cert.not_valid_after_utc

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Dict[str, Any] | None = None,
        params: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        url = f"{self.api_url}{path}"
        logger.debug("OBF request %s %s", method, path)
        try:
            response = self._session.request(
                method,
                url,
                json=json_body,
                params=params,
                cert=self._cert(),
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        except requests.Timeout as exc:
            raise IssuanceServiceUnavailable(f"OBF request timed out: {method} {path}") from exc
        except requests.ConnectionError as exc:
            raise IssuanceServiceUnavailable(f"Could not reach OBF: {exc}") from exc
        except requests.RequestException as exc:
            raise IssuanceServiceError(f"OBF request failed: {exc}") from exc

        if response.status_code >= 400:
            raise self._classify(response, method, path)

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            return {"raw": response.text}
        return data if isinstance(data, dict) else {"data": data}

    def _cert(self) -> str | tuple[str, str] | None:
        if not self.cert_path or not os.path.exists(self.cert_path):
            return None
        if self.key_path and os.path.exists(self.key_path):
            return (self.cert_path, self.key_path)
        return self.cert_path

    @staticmethod
    def _classify(response: requests.Response, method: str, path: str) -> IssuanceServiceError:
        status = response.status_code
        try:
            detail = response.json().get("error") or response.text
        except (ValueError, AttributeError):
            detail = response.text
        message = f"OBF API error {status} for {method} {path}: {detail}"
        logger.error(message)

        if status == OBF_API_CODE_CERT_ERROR:
            return IssuanceServiceCertificateError(message, status_code=status)
        if status == OBF_API_CODE_NO_CERT:
            return IssuanceServiceNoCertificate(message, status_code=status)
        if status >= 500 or status in (408, 429):
            return IssuanceServiceUnavailable(message, status_code=status)
        return IssuanceServiceError(message, status_code=status)
