"""Shared-password gate.

The authenticated flag is persisted as JSON under the data directory with the
key ``isAuthenticated``; logout removes the key.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from core.config import AUTH_PASSWORD, DATA_DIR

logger = logging.getLogger(__name__)

AUTH_KEY = "isAuthenticated"
AUTH_FILENAME = "auth_state.json"
INVALID_PASSWORD_MESSAGE = "Invalid password. Please try again."

LOGIN_VIEW = "login"
HOME_VIEW = "dashboard"


def check_password(candidate: str, *, secret: str = AUTH_PASSWORD) -> bool:
    return candidate == secret


class AuthStore:
    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else DATA_DIR / AUTH_FILENAME

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("unreadable auth state at %s; treating as logged out", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def is_authenticated(self) -> bool:
        return self._read().get(AUTH_KEY) == "true"

    def set_authenticated(self, value: bool) -> None:
        data = self._read()
        data[AUTH_KEY] = "true" if value else "false"
        self._write(data)

    def clear(self) -> None:
        data = self._read()
        if AUTH_KEY in data:
            del data[AUTH_KEY]
            self._write(data)


def login(candidate: str, store: AuthStore, *, secret: str = AUTH_PASSWORD) -> Optional[str]:
    """Return None on success, otherwise the inline error for the login form."""
    if check_password(candidate, secret=secret):
        store.set_authenticated(True)
        logger.info("login succeeded")
        return None
    logger.info("login rejected")
    return INVALID_PASSWORD_MESSAGE


def logout(store: AuthStore) -> None:
    store.clear()
    logger.info("logged out")


def guard_view(view: str, store: AuthStore) -> str:
    """Resolve the view to render: protected views need the flag, the login
    view bounces to the home view once authenticated."""
    authenticated = store.is_authenticated()
    if view == LOGIN_VIEW:
        return HOME_VIEW if authenticated else LOGIN_VIEW
    return view if authenticated else LOGIN_VIEW
