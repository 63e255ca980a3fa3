import logging
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests import RequestException

from gradetrack.config.settings import settings
from gradetrack.state.session_state import SessionState


logger = logging.getLogger(__name__)


class RecordsApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordsApiService:
    PROFILE_PATH = "/student/profile"
    SUBJECTS_PATH = "/student/subjects"
    SEMESTER_DETAILS_PATH = "/student/semester-details"
    CALCULATE_GPA_PATH = "/student/calculate-gpa"
    HISTORY_PATH = "/student/history"

    def __init__(self, base_url: str, session: Optional[SessionState] = None, timeout: float = 15) -> None:
        if not base_url:
            raise RecordsApiError("Missing GRADETRACK_API_BASE_URL in environment")
        self.base_url = base_url.rstrip("/")
        self.session = session or SessionState()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, session: Optional[SessionState] = None) -> "RecordsApiService":
        return cls(settings.api_base_url, session=session, timeout=settings.api_timeout)

    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", self.PROFILE_PATH)

    def get_subjects(self, regulation_id: int, department_id: int, semester: int) -> List[Dict[str, Any]]:
        params = {
            "regulationId": int(regulation_id),
            "departmentId": int(department_id),
            "semester": int(semester),
        }
        data = self._request("GET", self.SUBJECTS_PATH, params=params)
        return data if isinstance(data, list) else []

    def get_semester_details(self, department_id: int, regulation_id: int, semester: int) -> Dict[str, Any]:
        params = {
            "departmentId": int(department_id),
            "regulationId": int(regulation_id),
            "semester": int(semester),
        }
        data = self._request("GET", self.SEMESTER_DETAILS_PATH, params=params)
        return data if isinstance(data, dict) else {}

    def calculate_gpa(self, semester: int, subjects: List[Mapping[str, Any]]) -> Dict[str, Any]:
        payload = {
            "semester": int(semester),
            "subjects": [{"subjectId": s["subjectId"], "grade": s["grade"]} for s in subjects],
        }
        return self._request("POST", self.CALCULATE_GPA_PATH, payload=payload)

    def get_history(self) -> List[Dict[str, Any]]:
        data = self._request("GET", self.HISTORY_PATH)
        return data if isinstance(data, list) else []

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("API -> %s %s params=%s", method, url, params)
        try:
            res = requests.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except RequestException as exc:
            raise RecordsApiError("RECORDS_API_UNAVAILABLE") from exc

        if res.status_code == 401:
            self.session.clear()
            raise RecordsApiError("SESSION_EXPIRED", status_code=401)

        try:
            data = res.json()
        except ValueError:
            raise RecordsApiError("RECORDS_API_INVALID_RESPONSE", status_code=res.status_code)

        if res.status_code >= 400:
            message = data.get("message") if isinstance(data, dict) else None
            raise RecordsApiError(str(message or data or "RECORDS_API_ERROR"), status_code=res.status_code)

        logger.debug("API <- %s %s status=%s", method, url, res.status_code)
        return data
