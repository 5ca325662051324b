"""Reconciliation of media-server watch state against a management catalog.

Everything in this module is pure: records in, decisions out. The network
facing pieces live in :mod:`reclaimarr.services` and the mutation loop in
:mod:`reclaimarr.executor`.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from .models import CatalogEntry, WatchRecord
from .utils import elapsed_days


@dataclass(slots=True)
class MediaGroup:
    """Watch state aggregated over the records sharing a group key."""

    group_key: str
    member_count: int = 0
    watched_count: int = 0
    oldest_created_at: datetime | None = None

    @property
    def unwatched_count(self) -> int:
        return self.member_count - self.watched_count

    def add(self, record: WatchRecord) -> None:
        self.member_count += 1
        if record.watched:
            self.watched_count += 1
        if self.oldest_created_at is None or record.created_at < self.oldest_created_at:
            self.oldest_created_at = record.created_at

    def is_stale(self, age_threshold_days: int, now: datetime) -> bool:
        """Return ``True`` when nothing was watched and the oldest member is too old."""

        if self.watched_count or not self.member_count or self.oldest_created_at is None:
            return False
        return elapsed_days(self.oldest_created_at, now) > age_threshold_days


@dataclass(slots=True)
class PendingAction:
    """Delete-and-unmonitor instruction for one matched, stale catalog entry."""

    title: str
    catalog_id: int
    file_count: int
    size_bytes: int
    file_ids: tuple[int, ...] = ()

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "PendingAction":
        return cls(
            title=entry.title,
            catalog_id=entry.catalog_id,
            file_count=entry.file_count,
            size_bytes=entry.size_bytes,
            file_ids=entry.file_ids,
        )


@dataclass(slots=True)
class ImpactSummary:
    total_files: int = 0
    total_bytes: int = 0


@dataclass(slots=True)
class WatchSummary:
    """Informational counts reported before classification."""

    total: int = 0
    watched: int = 0
    unwatched: int = 0
    groups: int = 0


def group_records(records: Iterable[WatchRecord], *, grouped: bool = True) -> list[MediaGroup]:
    """Aggregate records into groups, preserving first-seen order.

    In grouped mode records without a group key are skipped since they cannot
    be attributed to a series. Otherwise every record is its own group, keyed
    by its title.
    """

    if not grouped:
        singletons: list[MediaGroup] = []
        for record in records:
            group = MediaGroup(group_key=record.title)
            group.add(record)
            singletons.append(group)
        return singletons

    groups: dict[str, MediaGroup] = {}
    for record in records:
        if not record.group_key:
            continue
        group = groups.get(record.group_key)
        if group is None:
            group = groups[record.group_key] = MediaGroup(group_key=record.group_key)
        group.add(record)
    return list(groups.values())


def classify_stale_groups(
    records: Iterable[WatchRecord],
    age_threshold_days: int,
    now: datetime,
    *,
    grouped: bool = True,
) -> list[MediaGroup]:
    """Return the groups that are fully unwatched and older than the threshold."""

    return [
        group
        for group in group_records(records, grouped=grouped)
        if group.is_stale(age_threshold_days, now)
    ]


def build_title_index(catalog: Iterable[CatalogEntry]) -> dict[str, CatalogEntry]:
    index: dict[str, CatalogEntry] = {}
    for entry in catalog:
        index.setdefault(entry.title, entry)
    return index


def count_shadowed_titles(catalog: Iterable[CatalogEntry]) -> int:
    """Return how many entries are hidden behind an earlier entry with the same title."""

    counts = Counter(entry.title for entry in catalog)
    return sum(count - 1 for count in counts.values() if count > 1)


def match_against_catalog(
    groups: Sequence[MediaGroup],
    catalog: Iterable[CatalogEntry],
    *,
    require_files: bool = False,
) -> list[PendingAction]:
    """Join stale groups to catalog entries by exact title.

    The first catalog entry carrying a title wins. Groups without a matching
    entry are dropped. With ``require_files`` (the movie case) entries that
    have nothing on disk are dropped too, and an entry reached by several
    same-titled records yields a single action.
    """

    index = build_title_index(catalog)
    actions: list[PendingAction] = []
    seen: set[int] = set()
    for group in groups:
        entry = index.get(group.group_key)
        if entry is None:
            continue
        if require_files:
            if entry.file_count < 1 or entry.catalog_id in seen:
                continue
            seen.add(entry.catalog_id)
        actions.append(PendingAction.from_entry(entry))
    return actions


def aggregate_impact(
    actions: Iterable[PendingAction], *, per_action_files: bool = False
) -> ImpactSummary:
    """Sum files and bytes across actions.

    With ``per_action_files`` each action counts as a single file, which is how
    movies are reported before their files are enumerated.
    """

    summary = ImpactSummary()
    for action in actions:
        summary.total_files += 1 if per_action_files else action.file_count
        summary.total_bytes += action.size_bytes
    return summary


def summarize_watch_state(records: Sequence[WatchRecord], *, grouped: bool = True) -> WatchSummary:
    watched = sum(1 for record in records if record.watched)
    if grouped:
        groups = len({record.group_key for record in records if record.group_key})
    else:
        groups = len(records)
    return WatchSummary(
        total=len(records),
        watched=watched,
        unwatched=len(records) - watched,
        groups=groups,
    )
