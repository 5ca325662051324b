"""Utilities for communicating with the Jellyfin media server."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..models import WatchRecord
from ..utils import build_device_id

logger = logging.getLogger(__name__)

CLIENT_NAME = "Jellyfin Web"
CLIENT_DEVICE = "Chrome"
CLIENT_VERSION = "10.10.7"

EPISODE_FIELDS = "SeriesName,SeasonIndex,IndexNumber,DateCreated,UserData"
MOVIE_FIELDS = "DateCreated,UserData"


class JellyfinError(Exception):
    """Raised when Jellyfin answers with a non-success status."""


class JellyfinAuthenticationError(JellyfinError):
    """Raised when the username/password handshake is rejected."""


class JellyfinClient:
    """Minimal Jellyfin client: authenticate, then list playable items."""

    def __init__(self, http_client: httpx.AsyncClient, username: str, password: str):
        if not username:
            raise ValueError("Jellyfin username is required")
        self._client = http_client
        self._username = username
        self._password = password or ""
        self._access_token: str | None = None
        self._user_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self._access_token and self._user_id)

    def _auth_header(self) -> str:
        return (
            f'MediaBrowser Client="{CLIENT_NAME}", Device="{CLIENT_DEVICE}", '
            f'DeviceId="{build_device_id()}", Version="{CLIENT_VERSION}"'
        )

    async def authenticate(self) -> None:
        response = await self._client.post(
            "/Users/authenticatebyname",
            headers={
                "Content-Type": "application/json; charset=utf-8",
                "Authorization": self._auth_header(),
            },
            json={"Username": self._username, "Pw": self._password},
        )
        if response.is_error:
            raise JellyfinAuthenticationError(
                f"Jellyfin authentication failed: {response.status_code}"
            )

        data = response.json()
        token = data.get("AccessToken")
        user_id = (data.get("User") or {}).get("Id")
        if not token or not user_id:
            raise JellyfinAuthenticationError(
                "Jellyfin authentication response did not include a session"
            )
        self._access_token = token
        self._user_id = user_id
        logger.debug("Authenticated with Jellyfin as %s", self._username)

    async def _list_items(self, item_type: str, fields: str) -> list[dict[str, Any]]:
        if not self.is_authenticated:
            await self.authenticate()

        response = await self._client.get(
            f"/Users/{self._user_id}/Items",
            headers={"X-MediaBrowser-Token": self._access_token or ""},
            params={
                "IncludeItemTypes": item_type,
                "Recursive": "true",
                "Fields": fields,
            },
        )
        if response.is_error:
            raise JellyfinError(
                f"Jellyfin API error: {response.status_code} {response.reason_phrase}"
            )
        items = response.json().get("Items") or []
        return [item for item in items if isinstance(item, dict)]

    @staticmethod
    def _to_records(items: list[dict[str, Any]], *, grouped: bool) -> list[WatchRecord]:
        records: list[WatchRecord] = []
        rejected = 0
        for item in items:
            try:
                records.append(WatchRecord.from_jellyfin_item(item, grouped=grouped))
            except ValidationError as exc:
                rejected += 1
                logger.debug("Rejected Jellyfin item %s: %s", item.get("Id"), exc)
        if rejected:
            logger.warning("Skipped %s Jellyfin items missing required fields", rejected)
        return records

    async def list_episodes(self) -> list[WatchRecord]:
        items = await self._list_items("Episode", EPISODE_FIELDS)
        return self._to_records(items, grouped=True)

    async def list_movies(self) -> list[WatchRecord]:
        items = await self._list_items("Movie", MOVIE_FIELDS)
        return self._to_records(items, grouped=False)
