"""
Thin HTTP client for the trip planner API.

A requests.Session keeps the http-only session cookie between calls, the same
way a browser would after login.
"""

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    """Non-2xx response from the API"""

    def __init__(self, status_code: int, detail: str, body: Optional[Dict[str, Any]] = None):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.body = body or {}


class TripPlannerClient:
    def __init__(self, base_url: str = "http://localhost:5000", session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/api{path}"
        response = self.session.request(method, url, json=json, timeout=self.timeout)
        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok:
            detail = body.get("detail") if isinstance(body, dict) else None
            logger.warning(f"{method} {path} failed with {response.status_code}: {detail}")
            raise ApiError(response.status_code, detail or response.reason or "Request failed", body)
        return body

    # ----- auth -----

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/register", {"name": name, "email": email, "password": password})

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", {"email": email, "password": password})

    def logout(self) -> Dict[str, Any]:
        return self._request("POST", "/auth/logout")

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    # ----- trips -----

    def save_trip(self, payload: Dict[str, Any]) -> int:
        """Post a full aggregate (see client.wizard) and return the new trip id"""
        return self._request("POST", "/trips/test-save", payload)["trip_id"]

    def latest_trip(self) -> Dict[str, Any]:
        return self._request("GET", "/trips/latest")

    def toggle_activity(self, activity_id: int) -> Dict[str, Any]:
        return self._request("PATCH", f"/trips/activities/{activity_id}/toggle-completed")

    def replace_trip(self, trip_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/trips/{trip_id}", payload)

    def update_trip(self, trip_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/trips/{trip_id}", {"trip": fields})

    def update_hotel(self, hotel_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/trips/hotels/{hotel_id}", {"hotel": fields})

    def update_transport(self, transport_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/trips/transports/{transport_id}", {"transport": fields})

    def update_activity(self, activity_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/trips/activities/{activity_id}", {"activity": fields})
