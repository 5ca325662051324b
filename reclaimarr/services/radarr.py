"""Client for the Radarr movie catalog."""

from __future__ import annotations

from typing import Any

from ..models import CatalogEntry
from .arr import ArrClient


class RadarrClient(ArrClient):
    """Movie catalog: the single movie file id arrives with the listing."""

    service_name = "Radarr"
    kind = "movie"
    entry_resource = "movie"
    file_resource = "moviefile"

    def _map_entry(self, raw: dict[str, Any]) -> CatalogEntry:
        return CatalogEntry.from_radarr_movie(raw)
