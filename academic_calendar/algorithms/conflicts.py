"""
Conflict detection for timetable entries.

Two entries clash when they sit on the same day and their time ranges
overlap (start < other_end and end > other_start) in some shared week.
Whether they share a week is decided conservatively: any doubt is reported
as a conflict. Results are advisory; nothing is rejected or moved.
"""
import logging
from typing import AbstractSet, Iterable, List, Optional

from ..models.entities import TimetableEntry, time_to_minutes

logger = logging.getLogger(__name__)


def weeks_overlap(weeks_a: Optional[AbstractSet[int]],
                  include_recess_a: Optional[bool],
                  weeks_b: Optional[AbstractSet[int]],
                  include_recess_b: Optional[bool]) -> bool:
    """
    Check if two week specifications could be active in a common week.

    None means "all teaching weeks" and overlaps with anything.

    Args:
        weeks_a: Teaching weeks of the first entry
        include_recess_a: Whether the first entry also runs in recess week
        weeks_b: Teaching weeks of the second entry
        include_recess_b: Whether the second entry also runs in recess week

    Returns:
        True if the two could collide
    """
    if include_recess_a and include_recess_b:
        return True

    if weeks_a is None or weeks_b is None:
        return True

    return not set(weeks_a).isdisjoint(weeks_b)


def _is_same_entry(entry: TimetableEntry, other: TimetableEntry) -> bool:
    if other is entry:
        return True
    return bool(entry.id) and other.id == entry.id


def entries_conflict(entry: TimetableEntry, other: TimetableEntry) -> bool:
    """Check a single pair of entries for a clash."""
    if other.day != entry.day or not entry.overlaps_time(other):
        return False

    if not entry.recurring and not other.recurring:
        return entry.specific_date == other.specific_date

    if entry.recurring != other.recurring:
        # The one-off date is not checked against the recurring entry's weeks
        return True

    return weeks_overlap(entry.weeks, entry.include_recess_week,
                         other.weeks, other.include_recess_week)


def has_conflict(entry: TimetableEntry, candidates: Iterable[TimetableEntry]) -> bool:
    """
    Check if an entry clashes with any of the candidate entries.
    The entry itself is skipped if it appears among the candidates.
    """
    for other in candidates:
        if _is_same_entry(entry, other):
            continue
        if entries_conflict(entry, other):
            logger.debug(f"Conflict between {entry} and {other}")
            return True
    return False


def find_conflicts(entries: Iterable[TimetableEntry]) -> List[TimetableEntry]:
    """
    Get every entry that clashes with at least one other entry.

    Returns:
        Conflicting entries in their original order
    """
    entries = list(entries)
    conflicting = [entry for entry in entries if has_conflict(entry, entries)]
    if conflicting:
        logger.info(f"Found {len(conflicting)} conflicting entries out of {len(entries)}")
    return conflicting


def detect_time_conflicts(day: str,
                          start_time: str,
                          end_time: str,
                          exclude_id: Optional[str],
                          entries: Iterable[TimetableEntry]) -> bool:
    """
    Check if a proposed slot would overlap any entry on the same day.

    Only day and time are compared; used to preview a move before it is made.
    """
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    for other in entries:
        if exclude_id is not None and other.id == exclude_id:
            continue
        if other.day != day:
            continue
        if start < other.end_minutes and end > other.start_minutes:
            return True
    return False
