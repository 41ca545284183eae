"""
client/session.py -- Client-side session state: the bearer token and the cached user.

The token is opaque to the client. The cached user is whatever the login
response returned, so is_admin() is a convenience for deciding what to offer
in a UI -- the server re-checks the role on every admin call regardless.

Optionally persisted to a JSON file so a CLI can stay logged in between runs.
The file holds a live bearer token; it is written with 0600 permissions.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger("gatehouse.client")


class SessionStore:
    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        self._token: Optional[str] = None
        self._user: Optional[dict[str, Any]] = None
        if path is not None:
            self._load()

    def set_token(self, token: str) -> None:
        self._token = token
        self._save()

    def get_token(self) -> Optional[str]:
        return self._token

    def set_user(self, user: dict[str, Any]) -> None:
        self._user = dict(user)
        self._save()

    def get_user(self) -> Optional[dict[str, Any]]:
        return dict(self._user) if self._user is not None else None

    def clear(self) -> None:
        """Forget the token and user. This is the whole of "logout"."""
        self._token = None
        self._user = None
        if self.path is not None and self.path.exists():
            self.path.unlink()

    def is_logged_in(self) -> bool:
        return bool(self._token)

    def is_admin(self) -> bool:
        return self._user is not None and self._user.get("role") == "admin"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if self.path is None or not self.path.is_file():
            return
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return
        self._token = data.get("token") or None
        self._user = data.get("user") or None

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as fh:
            json.dump({"token": self._token, "user": self._user}, fh)
