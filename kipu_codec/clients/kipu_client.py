"""
=============================================================================
KIPU EMR CLIENT
=============================================================================

PURPOSE:
    Thin HTTP boundary around the codec: fetch a patient evaluation and hand
    it to the adapter, or categorize edits and post the create document.

AUTH:
    KIPU requests must be signed. This client never signs anything itself;
    pass any ``requests`` auth object (``requests.auth.AuthBase``) and it is
    attached to the session as-is.

FAILURES:
    Non-2xx responses and transport errors raise ``KipuApiError``. Retries
    and pagination are the caller's business.

USAGE:
    from kipu_codec.clients import get_client

    client = get_client()
    evaluation = client.get_patient_evaluation("1234")

=============================================================================
"""

import logging
from typing import Any, Dict, Iterable, Optional

import requests
from requests.auth import AuthBase

from ..adapter import adapt_evaluation
from ..config import CodecSettings, get_settings
from ..errors import KipuApiError
from ..schemas import Evaluation
from ..submission import build_create_document, parse_patient_id

# ============================================================
# SETUP
# ============================================================

logger = logging.getLogger("kipu.client")


# ============================================================
# MAIN CLIENT CLASS
# ============================================================

class KipuClient:
    """HTTP client for the KIPU patient-evaluation endpoints."""

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        auth: Optional[AuthBase] = None,
        settings: Optional[CodecSettings] = None
    ):
        self.settings = settings or get_settings()
        self.base_url = (base_url or self.settings.kipu_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else self.settings.kipu_timeout

        # Create a session for connection reuse
        self._session = requests.Session()
        self._session.auth = auth
        self._session.headers.update({"Accept": "application/vnd.kipusystems+json; version=3"})

        logger.info(f"KipuClient initialized: {self.base_url} (timeout={self.timeout}s)")

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise KipuApiError(f"Request to {path} timed out") from e
        except requests.ConnectionError as e:
            logger.warning(f"KIPU not reachable at {self.base_url}")
            raise KipuApiError(f"Could not connect to KIPU: {e}") from e

        if not response.ok:
            logger.warning(f"{method} {path} failed ({response.status_code}): {response.text[:200]}")
            try:
                details = response.json()
            except ValueError:
                details = response.text
            message = details.get("error") if isinstance(details, dict) else None
            raise KipuApiError(
                str(message or response.reason or "Unknown error"),
                status_code=response.status_code,
                details=details,
            )

        try:
            return response.json()
        except ValueError as e:
            raise KipuApiError(f"Invalid JSON from {path}", status_code=response.status_code) from e

    def get_patient_evaluation(self, evaluation_id: str) -> Evaluation:
        """Fetch one patient evaluation and return it adapted."""
        data = self._request("GET", f"/api/patient_evaluations/{evaluation_id}")
        evaluation = adapt_evaluation(data, envelope_key=self.settings.envelope_key)
        logger.info(f"Fetched evaluation {evaluation_id} ({len(evaluation.patientEvaluationItems)} items)")
        return evaluation

    def create_patient_evaluation(
        self,
        evaluation_id: str,
        patient_id: str,
        fields: Iterable[Any],
        notes: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Categorize ``fields`` and create a patient evaluation.

        ``patient_id`` is ``<chartId>:<patientMasterId>``.

        RETURNS:
            {"id", "name", "status", "patientId", "evaluationId", "createdAt", "createdBy"}
        """
        chart_id, _ = parse_patient_id(patient_id)
        document = build_create_document(
            evaluation_id,
            patient_id,
            fields,
            notes=notes,
            recipient_id=self.settings.recipient_id,
            sending_app_name=self.settings.sending_app_name,
            ext_username=self.settings.ext_username,
        )

        data = self._request("POST", f"/api/patients/{chart_id}/patient_evaluations", json=document)
        if not isinstance(data, dict):
            raise KipuApiError(f"Unexpected create response: {type(data).__name__}", details=data)
        created = data.get("patient_evaluation")
        if not isinstance(created, dict):
            created = {}
        result = {
            "id": str(created.get("id") or data.get("id") or "") or None,
            "name": created.get("name") or "Patient Evaluation",
            "status": data.get("status") or created.get("status") or "created",
            "patientId": chart_id,
            "evaluationId": str(evaluation_id),
            "createdAt": created.get("created_at"),
            "createdBy": created.get("created_by"),
        }
        logger.info(f"Created patient evaluation {result['id']} for chart {chart_id}")
        return result


# ============================================================
# SINGLETON INSTANCE
# ============================================================

_client = None


def get_client() -> KipuClient:
    """Get or create the singleton client."""
    global _client
    if _client is None:
        _client = KipuClient()
    return _client


def reset_client():
    """Drop the singleton (after settings change, or between tests)."""
    global _client
    _client = None
