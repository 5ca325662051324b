"""Sequential execution of pending delete-and-unmonitor actions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

import httpx

from .config import ExecutionMode
from .engine import PendingAction, aggregate_impact
from .models import MediaKind
from .services.arr import ArrApiError, ArrClient, ArrNotFoundError

logger = logging.getLogger(__name__)


class FileStatus(str, Enum):
    DELETED = "deleted"
    SKIPPED = "skipped"
    ERRORED = "errored"


@dataclass(slots=True)
class FileOutcome:
    """Result of a single attempt to remove a backing file."""

    status: FileStatus
    file_id: int | None = None
    message: str | None = None


@dataclass(slots=True)
class ItemError:
    title: str
    file_id: int | None
    message: str


@dataclass(slots=True)
class RunResult:
    """Aggregate outcome of processing one media kind."""

    kind: MediaKind
    dry_run: bool = True
    candidate_count: int = 0
    matched_count: int = 0
    total_files: int = 0
    total_bytes: int = 0
    deleted_file_count: int = 0
    skipped_file_count: int = 0
    unmonitored_count: int = 0
    errors: list[ItemError] = field(default_factory=list)


async def attempt_delete(gateway: ArrClient, file_id: int) -> FileOutcome:
    """Delete one file and classify the result instead of raising."""

    try:
        await gateway.delete_file(file_id)
    except ArrNotFoundError as exc:
        return FileOutcome(FileStatus.SKIPPED, file_id, str(exc))
    except (ArrApiError, httpx.HTTPError) as exc:
        return FileOutcome(FileStatus.ERRORED, file_id, str(exc) or exc.__class__.__name__)
    return FileOutcome(FileStatus.DELETED, file_id)


def tally_outcomes(result: RunResult, title: str, outcomes: Iterable[FileOutcome]) -> int:
    """Fold per-file outcomes into the run counters.

    Returns the number of files deleted for this item.
    """

    deleted = 0
    for outcome in outcomes:
        if outcome.status is FileStatus.DELETED:
            deleted += 1
        elif outcome.status is FileStatus.SKIPPED:
            result.skipped_file_count += 1
        else:
            result.errors.append(
                ItemError(title=title, file_id=outcome.file_id, message=outcome.message or "")
            )
    result.deleted_file_count += deleted
    return deleted


async def _resolve_file_ids(action: PendingAction, gateway: ArrClient) -> list[int]:
    if action.file_ids:
        return [file_id for file_id in action.file_ids if file_id]
    return await gateway.list_child_file_ids(action.catalog_id)


async def _process_action(action: PendingAction, gateway: ArrClient, result: RunResult) -> None:
    logger.info("Processing: %s", action.title)

    outcomes: list[FileOutcome] = []
    if action.file_count == 0 or (gateway.kind == "movie" and not action.file_ids):
        outcomes.append(FileOutcome(FileStatus.SKIPPED, None, "no files on disk"))
    else:
        for file_id in await _resolve_file_ids(action, gateway):
            outcome = await attempt_delete(gateway, file_id)
            if outcome.status is FileStatus.ERRORED:
                logger.warning(
                    "Failed to delete file %s for %s: %s",
                    file_id,
                    action.title,
                    outcome.message,
                )
            elif outcome.status is FileStatus.SKIPPED:
                logger.info("File %s for %s was already gone", file_id, action.title)
            outcomes.append(outcome)

    deleted = tally_outcomes(result, action.title, outcomes)

    try:
        await gateway.set_monitored(action.catalog_id, False)
    except (ArrApiError, httpx.HTTPError) as exc:
        logger.warning("Failed to unmonitor %s: %s", action.title, exc)
        result.errors.append(ItemError(title=action.title, file_id=None, message=str(exc)))
        return

    result.unmonitored_count += 1
    logger.info("  - Deleted %s files and unmonitored: %s", deleted, action.title)


async def execute(
    actions: Sequence[PendingAction],
    mode: ExecutionMode,
    gateway: ArrClient,
    *,
    candidate_count: int = 0,
) -> RunResult:
    """Apply actions against the catalog one at a time, in order.

    In dry-run mode nothing is mutated and only the projected totals are
    reported. Per-file failures are recorded and never stop the run; only a
    failure to enumerate an item's files propagates.
    """

    impact = aggregate_impact(actions, per_action_files=gateway.kind == "movie")
    result = RunResult(
        kind=gateway.kind,
        dry_run=mode is ExecutionMode.DRY_RUN,
        candidate_count=candidate_count,
        matched_count=len(actions),
        total_files=impact.total_files,
        total_bytes=impact.total_bytes,
    )
    if result.dry_run:
        return result

    for action in actions:
        await _process_action(action, gateway, result)
    return result
