"""Pydantic models describing media-server and catalog payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import ensure_aware, normalize_timestamp

MediaKind = Literal["series", "movie"]


class WatchRecord(BaseModel):
    """A single episode or movie as seen by the media server."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str
    group_key: str | None = None
    created_at: datetime
    watched: bool = False

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_timestamp(value)
        return value

    @field_validator("created_at")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @field_validator("group_key", mode="before")
    @classmethod
    def _blank_group_as_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_jellyfin_item(cls, item: dict[str, Any], *, grouped: bool) -> "WatchRecord":
        """Map a raw Jellyfin ``Items`` entry onto a record.

        Raises ``ValidationError`` when the identifier, name or creation date
        is missing.
        """

        user_data = item.get("UserData") or {}
        play_count = user_data.get("PlayCount") or 0
        return cls.model_validate(
            {
                "id": item.get("Id"),
                "title": item.get("Name"),
                "group_key": item.get("SeriesName") if grouped else None,
                "created_at": item.get("DateCreated"),
                "watched": bool(user_data.get("Played")) or play_count > 0,
            }
        )


class CatalogEntry(BaseModel):
    """A series or movie tracked by Sonarr or Radarr."""

    model_config = ConfigDict(frozen=True)

    title: str
    catalog_id: int
    file_count: int = Field(default=0, ge=0)
    size_bytes: int = Field(default=0, ge=0)
    file_ids: tuple[int, ...] = ()
    monitored: bool = True

    @classmethod
    def from_sonarr_series(cls, payload: dict[str, Any]) -> "CatalogEntry":
        statistics = payload.get("statistics") or {}
        return cls.model_validate(
            {
                "title": payload.get("title"),
                "catalog_id": payload.get("id"),
                "file_count": statistics.get("episodeFileCount") or 0,
                "size_bytes": statistics.get("sizeOnDisk") or 0,
                "monitored": payload.get("monitored", True),
            }
        )

    @classmethod
    def from_radarr_movie(cls, payload: dict[str, Any]) -> "CatalogEntry":
        movie_file = payload.get("movieFile") or {}
        file_id = movie_file.get("id") or payload.get("movieFileId") or 0
        has_file = bool(payload.get("hasFile")) and bool(file_id)
        size = payload.get("sizeOnDisk")
        if size is None:
            size = movie_file.get("size") or 0
        return cls.model_validate(
            {
                "title": payload.get("title"),
                "catalog_id": payload.get("id"),
                "file_count": 1 if has_file else 0,
                "size_bytes": size,
                "file_ids": (file_id,) if has_file else (),
                "monitored": payload.get("monitored", True),
            }
        )
