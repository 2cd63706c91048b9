# app/services/portal/portal_client.py
"""
Client for the portal's integration endpoints.

The portal owns the Google Meet / Drive / email integrations; this service only
asks it to act on a session and stores whatever URLs come back as opaque strings.
"""
from typing import Any, Dict, Optional
import logging

import requests

from app.config.settings import get_settings
from app.models.class_session import ClassSession

logger = logging.getLogger(__name__)


class PortalClientError(Exception):
    """The portal could not be reached or rejected the call"""


class PortalClient:

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 timeout: Optional[float] = None, http: Optional[requests.Session] = None):
        settings = get_settings()
        self.base_url = (base_url or settings.PORTAL_API_URL).rstrip("/")
        self.token = token if token is not None else settings.PORTAL_API_TOKEN
        self.timeout = timeout or settings.PORTAL_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.http.post(f"{self.base_url}{path}", json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PortalClientError(f"Portal request to {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise PortalClientError(f"Portal returned {response.status_code} for {path}: {response.text[:200]}")

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _session_payload(session: ClassSession) -> Dict[str, Any]:
        return {
            "session_id": str(session.id),
            "teacher_id": str(session.teacher_id),
            "student_id": str(session.student_id),
            "scheduled_at": session.scheduled_at.isoformat(),
            "ends_at": session.ends_at.isoformat(),
            "duration_minutes": session.duration_minutes,
            "meet_link": session.meet_link,
        }

    def provision_session(self, session: ClassSession) -> Dict[str, Optional[str]]:
        """Ask for a meeting link and lesson document; returns whichever URLs exist"""
        data = self._post("/sessions/provision", self._session_payload(session))
        return {
            "meet_link": data.get("meet_link"),
            "document_url": data.get("document_url"),
        }

    def cancel_session_event(self, session: ClassSession) -> None:
        self._post("/sessions/cancel", self._session_payload(session))

    def submit_class_report(self, session: ClassSession, report: Dict[str, Any]) -> None:
        payload = self._session_payload(session)
        payload["document_url"] = session.document_url
        payload["report"] = report
        self._post("/sessions/report", payload)

    def send_reminder(self, session: ClassSession) -> None:
        payload = self._session_payload(session)
        payload["document_url"] = session.document_url
        self._post("/sessions/reminder", payload)
