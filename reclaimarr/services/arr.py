"""Shared plumbing for the Servarr v3 (Sonarr/Radarr) HTTP APIs."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..models import CatalogEntry, MediaKind

logger = logging.getLogger(__name__)


class ArrApiError(Exception):
    """Raised when a Servarr endpoint answers with a non-success status."""

    def __init__(self, service: str, status_code: int, message: str) -> None:
        super().__init__(f"{service} API error: {status_code} {message}".strip())
        self.service = service
        self.status_code = status_code


class ArrNotFoundError(ArrApiError):
    """The requested resource no longer exists."""


class ArrClient:
    """Thin wrapper around the common Servarr v3 endpoints.

    Subclasses name their resources; the request, error and mapping logic is
    shared so both catalogs behave the same way towards the executor.
    """

    service_name = "Servarr"
    kind: MediaKind
    entry_resource: str
    file_resource: str

    def __init__(self, http_client: httpx.AsyncClient, api_key: str) -> None:
        if not api_key:
            raise ValueError(f"{self.service_name} API key is required")
        self._client = http_client
        self._api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {
            "X-Api-Key": self._api_key,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await self._client.request(
            method, path, headers=self._headers(), **kwargs
        )
        if response.status_code == 404:
            raise ArrNotFoundError(self.service_name, 404, response.reason_phrase)
        if response.is_error:
            detail = response.reason_phrase
            if response.text:
                detail = f"{detail} - {response.text}"
            raise ArrApiError(self.service_name, response.status_code, detail)
        return response

    async def _get_json(self, path: str, **kwargs: Any) -> Any:
        response = await self._request("GET", path, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ArrApiError(
                self.service_name, response.status_code, "invalid JSON payload"
            ) from exc

    async def list_entries(self) -> list[CatalogEntry]:
        """Return every catalog entry that maps cleanly onto ``CatalogEntry``."""

        payload = await self._get_json(f"/api/v3/{self.entry_resource}")
        if not isinstance(payload, list):
            raise ArrApiError(self.service_name, 200, "unexpected listing payload")

        entries: list[CatalogEntry] = []
        rejected = 0
        for raw in payload:
            if not isinstance(raw, dict):
                rejected += 1
                continue
            try:
                entries.append(self._map_entry(raw))
            except ValidationError as exc:
                rejected += 1
                logger.debug(
                    "Rejected %s entry %s: %s", self.service_name, raw.get("id"), exc
                )
        if rejected:
            logger.warning(
                "Skipped %s %s entries missing required fields", rejected, self.service_name
            )
        return entries

    def _map_entry(self, raw: dict[str, Any]) -> CatalogEntry:
        raise NotImplementedError

    async def list_child_file_ids(self, catalog_id: int) -> list[int]:
        raise NotImplementedError(
            f"{self.service_name} entries carry their file ids in the listing"
        )

    async def delete_file(self, file_id: int) -> None:
        await self._request("DELETE", f"/api/v3/{self.file_resource}/{file_id}")

    async def set_monitored(self, catalog_id: int, monitored: bool) -> None:
        """Toggle monitoring by writing back the full resource."""

        path = f"/api/v3/{self.entry_resource}/{catalog_id}"
        current = await self._get_json(path)
        if not isinstance(current, dict):
            raise ArrApiError(self.service_name, 200, "unexpected resource payload")
        current["monitored"] = monitored
        await self._request("PUT", path, json=current)
