"""
Data converter module.

Handles conversions between different data representations:
- DataFrame rows to domain objects
- JSON records to domain objects
- Domain objects to report DataFrames
"""
import pandas as pd
import logging
from typing import Any, Dict, List

from ..models.entities import AcademicWeek, Examination, TimetableEntry
from ..algorithms.calendar import format_date, get_teaching_week_number
from ..algorithms.conflicts import has_conflict
from ..algorithms.recurrence import get_entries_for_week, get_exams_for_week
from .loader import is_truthy, split_weeks

logger = logging.getLogger(__name__)


def _text(row, column: str, default: str = '') -> str:
    value = row.get(column, default)
    if pd.isna(value):
        return default
    return str(value).strip()


def _unique_id(candidate: str, taken) -> str:
    """Suffix a repeated ID ("E1#2", "E1#3", ...) so no row replaces an earlier one."""
    if candidate not in taken:
        return candidate
    n = 2
    while f"{candidate}#{n}" in taken:
        n += 1
    unique = f"{candidate}#{n}"
    logger.warning(f"Duplicate ID {candidate} renamed to {unique}")
    return unique


class DataConverter:
    """
    Converts between different data representations used in the system.

    Responsibilities:
    - Convert CSV/DataFrame data to domain model objects
    - Convert API payloads to domain model objects
    - Convert calendars, timetables and conflicts to DataFrames for output
    """

    @staticmethod
    def convert_entries(entries_df: pd.DataFrame) -> Dict[str, TimetableEntry]:
        """
        Convert timetable entries DataFrame to TimetableEntry objects.

        Args:
            entries_df: DataFrame containing timetable entry data

        Returns:
            Dictionary mapping entry IDs to TimetableEntry objects
        """
        entries = {}

        for idx, row in entries_df.iterrows():
            entry_id = _unique_id(_text(row, 'Entry ID') or f"E{idx + 1}", entries)
            recurring = is_truthy(row.get('Recurring'), default=True)

            entry = TimetableEntry(
                id=entry_id,
                module_code=_text(row, 'Module Code'),
                module_name=_text(row, 'Module Name'),
                day=_text(row, 'Day'),
                start_time=_text(row, 'Start Time'),
                end_time=_text(row, 'End Time'),
                venue=_text(row, 'Venue'),
                class_type=_text(row, 'Class Type', 'Lecture') or 'Lecture',
                recurring=recurring,
                weeks=split_weeks(row.get('Weeks')) if recurring else None,
                include_recess_week=is_truthy(row.get('Include Recess Week')),
                specific_date=None if recurring else (_text(row, 'Specific Date') or None),
                notes=_text(row, 'Notes'),
            )

            entries[entry.id] = entry

        return entries

    @staticmethod
    def convert_examinations(exams_df: pd.DataFrame) -> Dict[str, Examination]:
        """
        Convert examinations DataFrame to Examination objects.
        A missing end time is derived from the start time and duration.

        Args:
            exams_df: DataFrame containing examination data

        Returns:
            Dictionary mapping exam IDs to Examination objects
        """
        exams = {}

        for idx, row in exams_df.iterrows():
            start_time = _text(row, 'Start Time')
            duration = int(float(row['Duration'])) if pd.notna(row.get('Duration')) else 120
            end_time = _text(row, 'End Time') or Examination.compute_end_time(start_time, duration)

            exam = Examination(
                id=_unique_id(_text(row, 'Exam ID') or f"X{idx + 1}", exams),
                module_code=_text(row, 'Module Code'),
                module_name=_text(row, 'Module Name'),
                exam_type=_text(row, 'Exam Type', 'Final') or 'Final',
                date=_text(row, 'Date'),
                start_time=start_time,
                end_time=end_time,
                duration=duration,
                venue=_text(row, 'Venue'),
                notes=_text(row, 'Notes'),
            )

            exams[exam.id] = exam

        return exams

    @staticmethod
    def entry_from_record(record: Dict[str, Any]) -> TimetableEntry:
        """Build a TimetableEntry from a JSON object with snake_case keys."""
        weeks = record.get('weeks')
        return TimetableEntry(
            id=str(record.get('id', '')),
            module_code=record.get('module_code', ''),
            module_name=record.get('module_name', ''),
            day=record['day'],
            start_time=record['start_time'],
            end_time=record['end_time'],
            venue=record.get('venue', ''),
            class_type=record.get('class_type', 'Lecture'),
            recurring=bool(record.get('recurring', True)),
            weeks=frozenset(int(w) for w in weeks) if weeks is not None else None,
            include_recess_week=bool(record.get('include_recess_week', False)),
            specific_date=record.get('specific_date'),
            notes=record.get('notes', ''),
        )

    @staticmethod
    def week_to_record(week: AcademicWeek) -> Dict[str, Any]:
        """Convert an AcademicWeek to a JSON-friendly dictionary."""
        return {
            'week_number': week.week_number,
            'display_label': week.display_label,
            'week_type': week.week_type.value,
            'teaching_week': get_teaching_week_number(week),
            'start_date': format_date(week.start_date),
            'end_date': format_date(week.end_date),
        }

    @staticmethod
    def convert_weeks_to_df(weeks: List[AcademicWeek]) -> pd.DataFrame:
        """
        Convert generated academic weeks to a calendar DataFrame.

        Returns:
            DataFrame with columns: Week Number, Label, Type, Teaching Week, Start Date, End Date
        """
        calendar = []

        for week in weeks:
            teaching_week = get_teaching_week_number(week)
            calendar.append({
                'Week Number': week.week_number,
                'Label': week.display_label,
                'Type': week.week_type.value,
                'Teaching Week': teaching_week if teaching_week is not None else "",
                'Start Date': format_date(week.start_date),
                'End Date': format_date(week.end_date)
            })

        return pd.DataFrame(calendar)

    @staticmethod
    def convert_to_weekly_timetable_df(weeks: List[AcademicWeek],
                                       entries: List[TimetableEntry],
                                       examinations: List[Examination]) -> pd.DataFrame:
        """
        Expand the timetable into one row per class or exam per week.

        Returns:
            DataFrame with columns: Week Number, Week Label, Kind, ID, Module Code, Day, Date, Start Time, End Time, Venue
        """
        rows = []

        for week in weeks:
            for entry in get_entries_for_week(entries, week):
                rows.append({
                    'Week Number': week.week_number,
                    'Week Label': week.display_label,
                    'Kind': entry.class_type,
                    'ID': entry.id,
                    'Module Code': entry.module_code,
                    'Day': entry.day,
                    'Date': entry.specific_date or "",
                    'Start Time': entry.start_time,
                    'End Time': entry.end_time,
                    'Venue': entry.venue
                })
            for exam in get_exams_for_week(examinations, week):
                rows.append({
                    'Week Number': week.week_number,
                    'Week Label': week.display_label,
                    'Kind': f"{exam.exam_type} Exam",
                    'ID': exam.id,
                    'Module Code': exam.module_code,
                    'Day': "",
                    'Date': exam.date,
                    'Start Time': exam.start_time,
                    'End Time': exam.end_time,
                    'Venue': exam.venue
                })

        columns = ['Week Number', 'Week Label', 'Kind', 'ID', 'Module Code', 'Day',
                   'Date', 'Start Time', 'End Time', 'Venue']
        return pd.DataFrame(rows, columns=columns)

    @staticmethod
    def generate_conflict_report(entries: List[TimetableEntry]) -> pd.DataFrame:
        """
        Generate a report listing every entry and whether it clashes with another.

        Returns:
            DataFrame with one row per entry
        """
        report = []

        for entry in entries:
            clashes_with = [
                other.id for other in entries if has_conflict(entry, [other])
            ]
            report.append({
                'Entry ID': entry.id,
                'Module Code': entry.module_code,
                'Day': entry.day,
                'Start Time': entry.start_time,
                'End Time': entry.end_time,
                'Recurring': entry.recurring,
                'Conflict': bool(clashes_with),
                'Conflicts With': ';'.join(clashes_with)
            })

        return pd.DataFrame(report)
