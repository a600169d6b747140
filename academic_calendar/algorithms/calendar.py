"""
Academic calendar generation.

A semester is laid out from the Monday of its first week:

    Weeks 1-7:    Teaching Week 1-7
    Week 8:       Recess Week
    Weeks 9-14:   Teaching Week 8-13
    Weeks 15-:    Exam Week 1, 2, ...

This module builds that sequence, finds the week containing a date and maps
positions to the 1-13 teaching week numbering used by timetable entries.
All dates are naive local calendar dates.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Union

from ..models.entities import DAY_NAMES, AcademicCalendar, AcademicWeek, Timetable, WeekType

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

TEACHING_WEEKS_BEFORE_RECESS = 7
TEACHING_WEEKS_AFTER_RECESS = 6
DEFAULT_EXAM_WEEKS = 4
TOTAL_TEACHING_WEEKS = TEACHING_WEEKS_BEFORE_RECESS + TEACHING_WEEKS_AFTER_RECESS

# Monday of Week 1 for each year/semester
DEFAULT_START_DATES: Dict[str, str] = {
    'Y1S1': '2025-08-11',
    'Y1S2': '2026-01-12',
    'Y2S1': '2026-08-10',
    'Y2S2': '2027-01-11',
    'Y3S1': '2027-08-09',
    'Y3S2': '2028-01-10',
    'Y4S1': '2028-08-07',
    'Y4S2': '2029-01-08',
}

MONTHS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def parse_date(value: DateLike) -> date:
    """Parse an ISO "YYYY-MM-DD" string; datetimes are truncated to their date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, '%Y-%m-%d').date()


def format_date(value: date) -> str:
    return value.isoformat()


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def get_monday(value: date) -> date:
    """Get the Monday of the week containing the given date."""
    return value - timedelta(days=value.weekday())


def _make_week(week_number: int, label: str, week_type: WeekType, monday: date) -> AcademicWeek:
    return AcademicWeek(
        week_number=week_number,
        display_label=label,
        week_type=week_type,
        start_date=monday,
        end_date=add_days(monday, 6),
    )


def generate_academic_weeks(start_date: DateLike,
                            end_date: Optional[DateLike] = None,
                            default_exam_weeks: int = DEFAULT_EXAM_WEEKS) -> List[AcademicWeek]:
    """
    Generate the academic weeks for a semester.

    Any date inside the first week may be given; it is rounded down to that
    week's Monday. When end_date is given, exam weeks continue until a week
    would start after it. Otherwise a fixed number of exam weeks is emitted.

    Args:
        start_date: A date within Week 1
        end_date: Last day of the exam period
        default_exam_weeks: Exam weeks to emit when end_date is absent

    Returns:
        Ordered list of AcademicWeek objects
    """
    monday = get_monday(parse_date(start_date))
    weeks: List[AcademicWeek] = []
    week_number = 1
    teaching_week = 1

    for _ in range(TEACHING_WEEKS_BEFORE_RECESS):
        weeks.append(_make_week(week_number, f'Week {teaching_week}', WeekType.TEACHING, monday))
        week_number += 1
        teaching_week += 1
        monday = add_days(monday, 7)

    weeks.append(_make_week(week_number, 'Recess Week', WeekType.RECESS, monday))
    week_number += 1
    monday = add_days(monday, 7)

    for _ in range(TEACHING_WEEKS_AFTER_RECESS):
        weeks.append(_make_week(week_number, f'Week {teaching_week}', WeekType.TEACHING, monday))
        week_number += 1
        teaching_week += 1
        monday = add_days(monday, 7)

    exam_week = 1
    if end_date is not None:
        end = parse_date(end_date)
        while monday <= end:
            weeks.append(_make_week(week_number, f'Exam Week {exam_week}', WeekType.EXAM, monday))
            week_number += 1
            exam_week += 1
            monday = add_days(monday, 7)
    else:
        for _ in range(default_exam_weeks):
            weeks.append(_make_week(week_number, f'Exam Week {exam_week}', WeekType.EXAM, monday))
            week_number += 1
            exam_week += 1
            monday = add_days(monday, 7)

    logger.debug(f"Generated {len(weeks)} academic weeks from {weeks[0].start_date}")
    return weeks


def get_week_for_date(day: DateLike, academic_weeks: Iterable[AcademicWeek]) -> Optional[AcademicWeek]:
    """
    Get the academic week that contains a given date.

    Returns:
        The containing week, or None if the date is outside the semester
    """
    target = parse_date(day)
    for week in academic_weeks:
        if week.contains(target):
            return week
    return None


def get_current_academic_week(academic_weeks: Iterable[AcademicWeek],
                              today: Optional[date] = None) -> Optional[AcademicWeek]:
    """Get the academic week containing today's date."""
    return get_week_for_date(today or date.today(), academic_weeks)


def get_teaching_week_number(academic_week: AcademicWeek) -> Optional[int]:
    """
    Convert an AcademicWeek to its teaching week number (1-13).

    Returns:
        The teaching week number, or None for recess and exam weeks
    """
    if academic_week.week_type != WeekType.TEACHING:
        return None
    if academic_week.week_number <= TEACHING_WEEKS_BEFORE_RECESS:
        return academic_week.week_number
    # Skip the recess week inserted after week 7
    return academic_week.week_number - 1


def get_default_start_date(year: int, semester: int,
                           overrides: Optional[Dict[str, str]] = None) -> str:
    """Get the default Week 1 Monday for a year/semester, falling back to Y1S1."""
    start_dates = dict(DEFAULT_START_DATES)
    if overrides:
        start_dates.update(overrides)
    key = f'Y{year}S{semester}'
    if key not in start_dates:
        logger.debug(f"No start date for {key}, falling back to Y1S1")
        return start_dates['Y1S1']
    return start_dates[key]


def get_academic_weeks_for_semester(year: int, semester: int,
                                    calendar: Optional[AcademicCalendar] = None,
                                    overrides: Optional[Dict[str, str]] = None) -> List[AcademicWeek]:
    """Get the academic weeks for a semester, using its stored calendar or the defaults."""
    if calendar is not None and calendar.start_date:
        return generate_academic_weeks(calendar.start_date, calendar.end_date)
    return generate_academic_weeks(get_default_start_date(year, semester, overrides))


def get_current_semester(timetables: Iterable[Timetable],
                         today: Optional[date] = None,
                         overrides: Optional[Dict[str, str]] = None) -> Optional[Dict[str, int]]:
    """
    Detect the semester that today falls in.

    Stored timetables are checked first, then every default year/semester.

    Returns:
        {'year': ..., 'semester': ...} or None when no semester covers today
    """
    today = today or date.today()

    for timetable in timetables:
        weeks = get_academic_weeks_for_semester(
            timetable.year, timetable.semester, timetable.calendar, overrides
        )
        if get_week_for_date(today, weeks) is not None:
            return {'year': timetable.year, 'semester': timetable.semester}

    for year in range(1, 5):
        for semester in range(1, 3):
            weeks = generate_academic_weeks(get_default_start_date(year, semester, overrides))
            if get_week_for_date(today, weeks) is not None:
                return {'year': year, 'semester': semester}

    return None


def get_day_of_week(value: DateLike) -> str:
    return DAY_NAMES[parse_date(value).weekday()]


def format_date_range(start: date, end: date) -> str:
    """Format a date range for display, e.g. "11 - 17 Aug 2025"."""
    if start.month == end.month:
        return f'{start.day} - {end.day} {MONTHS[start.month - 1]} {end.year}'
    return f'{start.day} {MONTHS[start.month - 1]} - {end.day} {MONTHS[end.month - 1]} {end.year}'


def format_single_date(value: date) -> str:
    return f'{value.day} {MONTHS[value.month - 1]} {value.year}'


def days_between(start: DateLike, end: DateLike) -> int:
    """Number of calendar days from start to end (negative if end is earlier)."""
    return (parse_date(end) - parse_date(start)).days
