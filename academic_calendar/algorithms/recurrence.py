"""
Recurrence evaluation for timetable entries and examinations.
Decides which entries and exams take place in a given academic week.
"""
import logging
from datetime import date
from typing import Iterable, List, Optional

from ..models.entities import AcademicWeek, Examination, Timetable, TimetableEntry, WeekType
from .calendar import get_day_of_week, get_teaching_week_number, parse_date

logger = logging.getLogger(__name__)


def is_entry_active_in_week(entry: TimetableEntry, academic_week: AcademicWeek) -> bool:
    """
    Check if a timetable entry takes place during a given academic week.

    One-off entries are active only in the week holding their specific date,
    and only when that date falls on the entry's day. Recurring entries never
    run in exam weeks, run in the recess week only when flagged, and otherwise
    follow their teaching week list (None meaning every week).
    """
    if not entry.recurring:
        if not entry.specific_date:
            return False
        event_date = parse_date(entry.specific_date)
        if not academic_week.contains(event_date):
            return False
        if get_day_of_week(event_date) != entry.day:
            logger.debug(f"Entry {entry} is dated {event_date} which is not a {entry.day}")
            return False
        return True

    if academic_week.week_type == WeekType.RECESS:
        return entry.include_recess_week is True

    if academic_week.week_type == WeekType.EXAM:
        return False

    teaching_week = get_teaching_week_number(academic_week)
    if teaching_week is None:
        return False

    if entry.weeks is None:
        return True

    return teaching_week in entry.weeks


def get_entries_for_week(entries: Iterable[TimetableEntry],
                         academic_week: AcademicWeek) -> List[TimetableEntry]:
    """Get all timetable entries that are active during a given academic week."""
    return [entry for entry in entries if is_entry_active_in_week(entry, academic_week)]


def get_exams_for_week(examinations: Iterable[Examination],
                       academic_week: AcademicWeek) -> List[Examination]:
    """Get all examinations that fall within a given academic week."""
    return [exam for exam in examinations if academic_week.contains(parse_date(exam.date))]


def get_upcoming_exams(examinations: Iterable[Examination],
                       from_date: Optional[date] = None,
                       limit: Optional[int] = None) -> List[Examination]:
    """
    Get examinations on or after a date, earliest first.

    Args:
        examinations: Examinations to filter
        from_date: First day to include, today if not given
        limit: Maximum number of exams to return

    Returns:
        Sorted list of upcoming examinations
    """
    start = parse_date(from_date or date.today())
    upcoming = [exam for exam in examinations if parse_date(exam.date) >= start]
    upcoming.sort(key=lambda exam: (parse_date(exam.date), exam.start_time))
    return upcoming[:limit] if limit else upcoming


def get_all_upcoming_exams(timetables: Iterable[Timetable],
                           limit: Optional[int] = None,
                           from_date: Optional[date] = None) -> List[Examination]:
    """Get upcoming examinations across all semesters."""
    all_exams = [exam for timetable in timetables for exam in timetable.examinations]
    return get_upcoming_exams(all_exams, from_date, limit)
