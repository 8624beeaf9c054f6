from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

import httpx

from .client import ApiClient, ApiError
from .schemas import SessionUser

logger = logging.getLogger(__name__)

SESSION_FILE = os.getenv(
    "WMS_SESSION_FILE",
    str(Path.home() / ".wms" / "session.json"),
)


class SessionStore:
    """
    Signed-in user and bearer token, persisted to a local JSON file so a
    restarted client resumes the session. The server stays the source of
    truth: `refresh()` re-reads `/api/auth/me` and drops the local copy when
    the token is no longer accepted.
    """

    def __init__(self, client: ApiClient, path: Union[str, Path] = SESSION_FILE):
        self._client = client
        self._path = Path(path)
        self.user: Optional[SessionUser] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self._client.token)

    def load(self) -> Optional[SessionUser]:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            token = data["token"]
            user = SessionUser.model_validate(data["user"])
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable session file %s: %s", self._path, exc)
            self._path.unlink(missing_ok=True)
            return None
        self._client.token = token
        self.user = user
        return user

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"token": self._client.token, "user": self.user.model_dump(mode="json")}
        self._path.write_text(json.dumps(payload), encoding="utf-8")

    def _clear(self) -> None:
        self._client.token = None
        self.user = None
        self._path.unlink(missing_ok=True)

    async def login(self, username: str, password: str) -> SessionUser:
        """Raises `ApiError` (401) on bad credentials; nothing is stored then."""
        body = await self._client.post(
            "/api/auth/login",
            json={"username": username, "password": password},
            expected=(200,),
        )
        self._client.token = body["access_token"]
        self.user = SessionUser.model_validate(body["user"])
        self._save()
        logger.info("Signed in as %s", self.user.username)
        return self.user

    async def logout(self) -> None:
        if self._client.token:
            try:
                await self._client.post("/api/auth/logout", expected=(204,))
            except (ApiError, httpx.HTTPError) as exc:
                logger.warning("Logout request failed, clearing local session anyway: %s", exc)
        self._clear()

    async def refresh(self) -> Optional[SessionUser]:
        if not self._client.token:
            return None
        try:
            body = await self._client.get("/api/auth/me")
        except ApiError as exc:
            if exc.status_code == 401:
                self._clear()
                return None
            raise
        self.user = SessionUser.model_validate(body)
        self._save()
        return self.user
