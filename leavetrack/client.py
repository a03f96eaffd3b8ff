"""
HTTP client for the LeaveTrack API.

Used by scripts and by other services that need to read or adjust leave
data. The bearer token is held by the client instance and sent with every
request; there is no module-level session state.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote

import requests

logger = logging.getLogger(__name__)

JSONLD = "application/ld+json"

_FILENAME_UTF8_RE = re.compile(r"filename\*=UTF-8''([^;]*)", re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename="?([^";]*)"?', re.IGNORECASE)


class NetworkError(Exception):
    """The API could not be reached (DNS, connection refused, timeout...)."""


class ApiError(Exception):
    def __init__(self, message: str, status_code: int, payload: Any = None):
        self.message = message
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


def members(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Items of a collection, whichever key the server used."""
    items = payload.get("hydra:member")
    if items is None:
        items = payload.get("member")
    return items if isinstance(items, list) else []


def id_from_iri(value: Any) -> Optional[int]:
    if isinstance(value, int):
        return value
    if isinstance(value, dict):
        return value.get("id")
    try:
        return int(str(value).rstrip("/").split("/")[-1])
    except (TypeError, ValueError):
        return None


def filename_from_content_disposition(header: Optional[str]) -> Optional[str]:
    """Prefers the RFC 5987 filename*=UTF-8'' form over the plain filename."""
    if not header:
        return None
    match = _FILENAME_UTF8_RE.search(header)
    if match and match.group(1):
        return unquote(match.group(1))
    match = _FILENAME_RE.search(header)
    if match and match.group(1):
        return match.group(1)
    return None


class LeaveTrackClient:

    def __init__(self, base_url: str, token: Optional[str] = None, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Accept": JSONLD}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, path: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, headers=self._headers(headers), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise NetworkError(f"Unable to reach {url}: {e}") from e

        if not response.ok:
            raise ApiError(self._error_message(response), response.status_code, self._safe_json(response))
        return response

    def _json(self, method: str, path: str, **kwargs) -> Any:
        response = self._request(method, path, **kwargs)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _safe_json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def _error_message(self, response: requests.Response) -> str:
        payload = self._safe_json(response)
        if isinstance(payload, dict):
            errors = payload.get("errors")
            if errors and isinstance(errors, list) and errors[0].get("msg"):
                return errors[0]["msg"]
            if payload.get("message"):
                return payload["message"]
        return f"Request failed with status {response.status_code}"

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._json("POST", "/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    def logout(self):
        self.token = None

    # ------------------------------------------------------------------
    # Leave balances
    # ------------------------------------------------------------------
    def get_user_balance(self, user_id: int, year: int) -> Optional[Dict[str, Any]]:
        """The (user, year) balance, or None when missing or unreadable."""
        try:
            payload = self._json("GET", "/leave_balances", params={"user": f"/api/users/{user_id}", "year": year})
        except (NetworkError, ApiError) as e:
            logger.error(f"Error fetching balance of user {user_id} for {year}: {e}")
            return None

        for balance in members(payload or {}):
            if id_from_iri(balance.get("user")) == user_id and balance.get("year") == year:
                return balance
        return None

    def update_leave_balance(self, balance_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        PUT keeps the stored user and year; the server only applies
        carriedOverToNextYear and propagates it to the next year.
        """
        current = self._json("GET", f"/leave_balances/{balance_id}")
        body = {
            "@context": "/api/contexts/LeaveBalance",
            "@type": "LeaveBalance",
            **{k: v for k, v in data.items() if v is not None},
            "user": current["user"],
            "year": current["year"],
        }
        return self._json("PUT", f"/leave_balances/{balance_id}", json=body, headers={"Content-Type": JSONLD})

    def carry_over_leaves(self, user_id: int, from_year: int, days_to_carry_over: int) -> Dict[str, Any]:
        return self._json("POST", "/leave_balances/carry_over", json={
            "user": f"/api/users/{user_id}",
            "fromYear": from_year,
            "daysToCarryOver": days_to_carry_over,
        })

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------
    def list_leaves(self, **filters) -> List[Dict[str, Any]]:
        params = {k: v for k, v in filters.items() if v is not None}
        return members(self._json("GET", "/leaves", params=params) or {})

    def get_user_leaves(self, user_id: int) -> List[Dict[str, Any]]:
        return self.list_leaves(user=f"/api/users/{user_id}")

    def get_pending_leaves(self) -> List[Dict[str, Any]]:
        return self.list_leaves(status="En attente")

    def create_leave(self, leave: Dict[str, Any]) -> Dict[str, Any]:
        body = {"@context": "/api/contexts/Leave", "@type": "Leave", **leave}
        return self._json("POST", "/leaves", json=body, headers={"Content-Type": JSONLD})

    def approve_leave(self, leave_id: int) -> Dict[str, Any]:
        return self._json("PUT", f"/leaves/{leave_id}/status", json={"status": "Approuvé"})

    def reject_leave(self, leave_id: int) -> Dict[str, Any]:
        return self._json("PUT", f"/leaves/{leave_id}/status", json={"status": "Rejeté"})

    def upload_certificate(self, leave_id: int, filename: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        if not content:
            raise ValueError("No file provided")
        data = self._json(
            "POST",
            f"/leaves/{leave_id}/certificate",
            files={"certificate[]": (filename, content, content_type)},
            headers={"Accept": "application/json"},
        )
        return data["certificate"]

    def download_certificate(self, leave_id: int) -> Tuple[str, bytes, str]:
        """
        Returns (filename, content, content_type). The name comes from
        Content-Disposition, else from the leave record, else certificat-{id}.
        """
        try:
            response = self._request("GET", f"/leaves/{leave_id}/certificate", headers={"Accept": "*/*"})
            filename = filename_from_content_disposition(response.headers.get("Content-Disposition"))
            if not filename:
                logger.warning("No filename found in Content-Disposition header, using default")
                leave = self._json("GET", f"/leaves/{leave_id}")
                filename = (leave or {}).get("certificate") or f"certificat-{leave_id}"
            content_type = response.headers.get("Content-Type", "application/octet-stream")
            return filename, response.content, content_type
        except (NetworkError, ApiError) as e:
            raise ApiError(
                f"Certificate download failed: {e}",
                getattr(e, "status_code", 0),
            ) from e

    def delete_certificate(self, leave_id: int):
        self._request("DELETE", f"/leaves/{leave_id}/certificate")

    # ------------------------------------------------------------------
    # Users, holidays
    # ------------------------------------------------------------------
    def list_users(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """Degrades to an empty list so callers can keep rendering without users."""
        try:
            payload = self._json("GET", "/users", params={"search": search} if search else None)
        except (NetworkError, ApiError) as e:
            logger.error(f"Error loading users: {e}")
            return []
        users = members(payload or {})
        return sorted(users, key=lambda u: f"{u.get('firstName', '')} {u.get('lastName', '')}".lower())

    def get_holidays(self, year: Optional[int] = None) -> List[Dict[str, Any]]:
        return members(self._json("GET", "/holidays", params={"year": year} if year else None) or {})
