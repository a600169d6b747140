from .entities import (
    AcademicCalendar, AcademicWeek, Examination, Timetable, TimetableEntry, WeekType
)

__all__ = ['AcademicCalendar', 'AcademicWeek', 'Examination', 'Timetable', 'TimetableEntry', 'WeekType']
