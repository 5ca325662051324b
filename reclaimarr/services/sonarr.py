"""Client for the Sonarr series catalog."""

from __future__ import annotations

from typing import Any

from ..models import CatalogEntry
from .arr import ArrClient


class SonarrClient(ArrClient):
    """Series catalog: one entry per show, files enumerated per episode."""

    service_name = "Sonarr"
    kind = "series"
    entry_resource = "series"
    file_resource = "episodefile"

    def _map_entry(self, raw: dict[str, Any]) -> CatalogEntry:
        return CatalogEntry.from_sonarr_series(raw)

    async def list_child_file_ids(self, catalog_id: int) -> list[int]:
        """Return the episode file ids backing a series, skipping episodes without files."""

        episodes = await self._get_json("/api/v3/episode", params={"seriesId": catalog_id})
        file_ids: list[int] = []
        for episode in episodes or []:
            if not isinstance(episode, dict):
                continue
            file_id = int(episode.get("episodeFileId") or 0)
            if file_id and file_id not in file_ids:
                file_ids.append(file_id)
        return file_ids
