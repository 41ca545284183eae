"""
client/api.py -- requests-based wrapper around the Gatehouse HTTP API.

Usage:
    client = GatehouseClient("http://localhost:8000/api")
    client.login("a@x.com", "pw123")       # stores token + user in client.session
    client.get_profile()
    client.logout()                        # local discard

Protected calls need a stored token; without one they raise NotLoggedInError
before touching the network. Any non-2xx response raises ApiError carrying
the server's error code and message from the standard error envelope.
"""

import logging
from typing import Any, Optional

import requests

from client.session import SessionStore

logger = logging.getLogger("gatehouse.client")

DEFAULT_BASE_URL = "http://localhost:8000/api"


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"{status_code} {code}: {message}")


class NotLoggedInError(Exception):
    """A protected call was attempted with no stored token."""


def _error_from_response(resp: requests.Response) -> ApiError:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return ApiError(resp.status_code, error.get("code", "unknown"), error.get("message", "Request failed"))
    return ApiError(resp.status_code, f"http_{resp.status_code}", resp.reason or "Request failed")


class GatehouseClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[SessionStore] = None,
        http: Optional[requests.Session] = None,
        timeout: float = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or SessionStore()
        self.http = http or requests.Session()
        self.timeout = timeout

    def _call(
        self,
        endpoint: str,
        method: str = "GET",
        data: Optional[dict[str, Any]] = None,
        requires_auth: bool = False,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if requires_auth:
            token = self.session.get_token()
            if not token:
                raise NotLoggedInError("Log in first.")
            headers["Authorization"] = f"Bearer {token}"

        resp = self.http.request(
            method,
            f"{self.base_url}{endpoint}",
            json=data,
            headers=headers,
            timeout=self.timeout,
        )
        if not resp.ok:
            raise _error_from_response(resp)
        return resp.json()

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        return self._call("/auth/register", "POST", {"name": name, "email": email, "password": password})

    def login(self, email: str, password: str) -> dict[str, Any]:
        result = self._call("/auth/login", "POST", {"email": email, "password": password})
        if result.get("token"):
            self.session.set_token(result["token"])
            self.session.set_user(result.get("user") or {})
        return result

    def logout(self) -> None:
        """Drop the local token. The server call is a courtesy and may fail."""
        self.session.clear()
        try:
            self.http.post(f"{self.base_url}/auth/logout", timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Logout notification failed: %s", e)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_profile(self) -> dict[str, Any]:
        return self._call("/users/me", requires_auth=True)

    def update_profile(self, **fields: str) -> dict[str, Any]:
        result = self._call("/users/me", "PUT", fields, requires_auth=True)
        if result.get("user"):
            self.session.set_user(result["user"])
        return result

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def get_all_users(self) -> list[dict[str, Any]]:
        return self._call("/users", requires_auth=True)

    def update_user(self, user_id: str, **fields: str) -> dict[str, Any]:
        return self._call(f"/users/{user_id}", "PUT", fields, requires_auth=True)

    def delete_user(self, user_id: str) -> dict[str, Any]:
        return self._call(f"/users/{user_id}", "DELETE", requires_auth=True)
