"""High level orchestration for a cleanup run."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from datetime import datetime, timezone

import httpx

from .config import ExecutionMode, Settings, base_url
from .engine import (
    PendingAction,
    classify_stale_groups,
    count_shadowed_titles,
    match_against_catalog,
    summarize_watch_state,
)
from .executor import RunResult, execute
from .services.arr import ArrClient
from .services.jellyfin import JellyfinClient
from .services.radarr import RadarrClient
from .services.sonarr import SonarrClient
from .utils import format_gigabytes

logger = logging.getLogger(__name__)

_LABELS = {"series": ("series", "episodes"), "movie": ("movies", "movies")}


class CleanupRunner:
    """Runs the classify, match and execute pipeline once per configured catalog."""

    def __init__(
        self,
        settings: Settings,
        jellyfin: JellyfinClient,
        catalogs: list[ArrClient],
        *,
        now: datetime | None = None,
    ) -> None:
        self._settings = settings
        self._jellyfin = jellyfin
        self._catalogs = catalogs
        self._now = now or datetime.now(timezone.utc)

    async def run(self) -> list[RunResult]:
        logger.info("Authenticating with Jellyfin...")
        await self._jellyfin.authenticate()
        logger.info("Authenticated successfully")

        results: list[RunResult] = []
        for catalog in self._catalogs:
            results.append(await self._process_catalog(catalog))
        return results

    async def _process_catalog(self, catalog: ArrClient) -> RunResult:
        threshold = self._settings.age_threshold_days
        mode = self._settings.execution_mode
        grouped = catalog.kind == "series"
        group_label, item_label = _LABELS[catalog.kind]

        logger.info("Fetching all %s from Jellyfin...", item_label)
        if grouped:
            records = await self._jellyfin.list_episodes()
        else:
            records = await self._jellyfin.list_movies()

        summary = summarize_watch_state(records, grouped=grouped)
        logger.info("Found %s total %s", summary.total, item_label)
        logger.info("Found %s watched %s", summary.watched, item_label)
        logger.info("Found %s unwatched %s", summary.unwatched, item_label)
        if grouped:
            logger.info("Found %s unique series", summary.groups)

        stale = classify_stale_groups(records, threshold, self._now, grouped=grouped)
        logger.info(
            "Found %s fully unwatched %s (> %s days old)", len(stale), group_label, threshold
        )
        if not stale:
            logger.info("No old fully unwatched %s found.", group_label)
            return RunResult(kind=catalog.kind, dry_run=mode is ExecutionMode.DRY_RUN)

        logger.info("Fetching %s from %s...", group_label, catalog.service_name)
        entries = await catalog.list_entries()
        shadowed = count_shadowed_titles(entries)
        if shadowed:
            logger.warning(
                "%s has %s entries hidden by duplicate titles; only the first of each is matched",
                catalog.service_name,
                shadowed,
            )

        actions = match_against_catalog(stale, entries, require_files=not grouped)
        logger.info(
            "Found %s %s in %s that are fully unwatched and old",
            len(actions),
            group_label,
            catalog.service_name,
        )

        result = await execute(actions, mode, catalog, candidate_count=len(stale))
        if actions:
            self._report(actions, result, group_label)
        return result

    def _report(self, actions: list[PendingAction], result: RunResult, group_label: str) -> None:
        freed = format_gigabytes(result.total_bytes)
        logger.info("=== Summary ===")
        logger.info("Total %s to unmonitor and delete files: %s", group_label, len(actions))
        logger.info("Total files to delete: %s", result.total_files)
        logger.info("Total disk space to free: %s", freed)
        logger.info("%s to process (sorted by size):", group_label.capitalize())
        for action in sorted(actions, key=lambda item: item.size_bytes, reverse=True):
            logger.info(
                "  - %s (%s files, %s)",
                action.title,
                action.file_count,
                format_gigabytes(action.size_bytes),
            )

        if result.dry_run:
            logger.info("Dry run complete. No files were deleted.")
            logger.info("To actually delete files and unmonitor %s, pass --execute", group_label)
            return

        logger.info("=== Complete ===")
        logger.info("Deleted %s files", result.deleted_file_count)
        logger.info("Skipped %s files", result.skipped_file_count)
        logger.info("Freed %s of disk space", freed)
        logger.info("Unmonitored %s %s", result.unmonitored_count, group_label)
        if result.errors:
            logger.warning("%s errors occurred:", len(result.errors))
            for error in result.errors:
                logger.warning("  - %s (file %s): %s", error.title, error.file_id, error.message)


async def run(settings: Settings, *, now: datetime | None = None) -> list[RunResult]:
    """Open HTTP clients for every configured backend and run the cleanup."""

    timeout = httpx.Timeout(settings.request_timeout_seconds, connect=10.0)
    async with AsyncExitStack() as exit_stack:
        jellyfin_http = await exit_stack.enter_async_context(
            httpx.AsyncClient(base_url=base_url(settings.jellyfin_url), timeout=timeout)
        )
        jellyfin = JellyfinClient(
            jellyfin_http,
            settings.jellyfin_username or "",
            settings.jellyfin_password or "",
        )

        catalogs: list[ArrClient] = []
        if settings.sonarr_configured:
            sonarr_http = await exit_stack.enter_async_context(
                httpx.AsyncClient(base_url=base_url(settings.sonarr_url), timeout=timeout)
            )
            catalogs.append(SonarrClient(sonarr_http, settings.sonarr_api_key or ""))
        if settings.radarr_configured:
            radarr_http = await exit_stack.enter_async_context(
                httpx.AsyncClient(base_url=base_url(settings.radarr_url), timeout=timeout)
            )
            catalogs.append(RadarrClient(radarr_http, settings.radarr_api_key or ""))

        runner = CleanupRunner(settings, jellyfin, catalogs, now=now)
        return await runner.run()
