"""Tests for the client helper (client/api.py, client/session.py).

The HTTP layer is a MagicMock standing in for requests.Session, so these run
without a server. End-to-end behavior is covered by the route tests.
"""

import json
import os
import stat
from unittest.mock import MagicMock

import pytest
import requests

from client.api import ApiError, GatehouseClient, NotLoggedInError
from client.session import SessionStore


def _response(status: int, body=None, reason: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.reason = reason
    if body is None:
        resp.json.side_effect = ValueError("no JSON")
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture
def http() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http) -> GatehouseClient:
    return GatehouseClient("http://api.test/api/", http=http)


_LOGIN_OK = {
    "message": "Login successful",
    "token": "tok.en.value",
    "user": {"id": "u1", "name": "Alice", "email": "a@x.com", "role": "user", "createdAt": "2026-01-01"},
}


class TestAuthCalls:
    def test_login_stores_token_and_user(self, client, http):
        http.request.return_value = _response(200, _LOGIN_OK)
        client.login("a@x.com", "pw123")
        assert client.session.get_token() == "tok.en.value"
        assert client.session.get_user()["email"] == "a@x.com"
        assert client.session.is_logged_in()
        assert not client.session.is_admin()

        method, url = http.request.call_args.args
        assert (method, url) == ("POST", "http://api.test/api/auth/login")
        assert http.request.call_args.kwargs["json"] == {"email": "a@x.com", "password": "pw123"}
        assert "Authorization" not in http.request.call_args.kwargs["headers"]

    def test_failed_login_leaves_session_empty(self, client, http):
        http.request.return_value = _response(
            401, {"error": {"code": "invalid_credentials", "message": "Invalid email or password."}}
        )
        with pytest.raises(ApiError) as excinfo:
            client.login("a@x.com", "wrong")
        assert excinfo.value.status_code == 401
        assert excinfo.value.code == "invalid_credentials"
        assert excinfo.value.message == "Invalid email or password."
        assert not client.session.is_logged_in()

    def test_logout_clears_even_if_server_unreachable(self, client, http):
        http.request.return_value = _response(200, _LOGIN_OK)
        client.login("a@x.com", "pw123")
        http.post.side_effect = requests.ConnectionError("refused")
        client.logout()
        assert not client.session.is_logged_in()
        assert client.session.get_user() is None


class TestProtectedCalls:
    @pytest.mark.parametrize(
        "call",
        [
            lambda c: c.get_profile(),
            lambda c: c.update_profile(name="X"),
            lambda c: c.get_all_users(),
            lambda c: c.update_user("u2", role="admin"),
            lambda c: c.delete_user("u2"),
        ],
        ids=["get_profile", "update_profile", "get_all_users", "update_user", "delete_user"],
    )
    def test_no_token_fails_before_network(self, client, http, call):
        with pytest.raises(NotLoggedInError):
            call(client)
        http.request.assert_not_called()

    def test_bearer_header_attached(self, client, http):
        client.session.set_token("abc")
        http.request.return_value = _response(200, {"id": "u1"})
        client.get_profile()
        assert http.request.call_args.kwargs["headers"]["Authorization"] == "Bearer abc"

    def test_update_profile_refreshes_cached_user(self, client, http):
        client.session.set_token("abc")
        http.request.return_value = _response(200, {"message": "Profile updated", "user": {"name": "New"}})
        client.update_profile(name="New")
        assert client.session.get_user() == {"name": "New"}

    def test_delete_uses_user_path(self, client, http):
        client.session.set_token("abc")
        http.request.return_value = _response(200, {"message": "User deleted successfully"})
        client.delete_user("u2")
        assert http.request.call_args.args == ("DELETE", "http://api.test/api/users/u2")

    def test_non_json_error_body(self, client, http):
        client.session.set_token("abc")
        http.request.return_value = _response(502, None, reason="Bad Gateway")
        with pytest.raises(ApiError) as excinfo:
            client.get_all_users()
        assert excinfo.value.code == "http_502"
        assert excinfo.value.message == "Bad Gateway"


class TestSessionStore:
    def test_memory_only_by_default(self):
        session = SessionStore()
        session.set_token("t")
        assert session.path is None
        assert session.get_token() == "t"

    def test_admin_role_from_cached_user(self):
        session = SessionStore()
        session.set_user({"role": "admin"})
        assert session.is_admin()

    def test_get_user_returns_a_copy(self):
        session = SessionStore()
        session.set_user({"role": "user"})
        session.get_user()["role"] = "admin"
        assert not session.is_admin()

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "session.json"
        SessionStore(path).set_token("persisted")
        assert SessionStore(path).get_token() == "persisted"
        assert json.loads(path.read_text())["token"] == "persisted"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_file_is_private(self, tmp_path):
        path = tmp_path / "session.json"
        SessionStore(path).set_token("secret")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_clear_removes_file(self, tmp_path):
        path = tmp_path / "session.json"
        session = SessionStore(path)
        session.set_token("t")
        session.clear()
        assert not path.exists()
        assert not SessionStore(path).is_logged_in()

    def test_unreadable_file_is_ignored(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        assert not SessionStore(path).is_logged_in()
