"""
Entity models for the academic calendar engine.
These classes represent the core domain objects used when building a
semester calendar and checking a timetable for clashes.
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import FrozenSet, List, Optional


DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def time_to_minutes(value: str) -> int:
    """Convert an "HH:MM" string to minutes from midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes from midnight back to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class WeekType(str, Enum):
    TEACHING = "teaching"
    RECESS = "recess"
    EXAM = "exam"


@dataclass(frozen=True)
class AcademicWeek:
    """Represents one Monday-to-Sunday week of a semester."""
    week_number: int  # 1-based position in the generated sequence
    display_label: str
    week_type: WeekType
    start_date: date  # always a Monday
    end_date: date  # the following Sunday

    def contains(self, day: date) -> bool:
        """Check if a calendar date falls inside this week."""
        return self.start_date <= day <= self.end_date

    def __str__(self) -> str:
        return f"{self.display_label} ({self.start_date.isoformat()} - {self.end_date.isoformat()})"


@dataclass
class TimetableEntry:
    """Represents a class on the timetable, either weekly or a one-off event."""
    day: str
    start_time: str
    end_time: str
    recurring: bool = True
    # None means every teaching week; an empty set means no teaching week at all
    weeks: Optional[FrozenSet[int]] = None
    include_recess_week: bool = False
    specific_date: Optional[str] = None
    id: str = ""
    module_code: str = ""
    module_name: str = ""
    venue: str = ""
    class_type: str = "Lecture"
    notes: str = ""

    def __post_init__(self) -> None:
        if self.weeks is not None and not isinstance(self.weeks, frozenset):
            self.weeks = frozenset(self.weeks)

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    def overlaps_time(self, other: "TimetableEntry") -> bool:
        """Check if two entries on the same day share any minute."""
        return self.start_minutes < other.end_minutes and self.end_minutes > other.start_minutes

    def __str__(self) -> str:
        label = self.module_code or self.id or "Entry"
        return f"{label}: {self.day} {self.start_time} - {self.end_time}"


@dataclass
class Examination:
    """Represents a single sitting of an examination."""
    date: str
    start_time: str
    end_time: str
    duration: int  # minutes
    id: str = ""
    module_code: str = ""
    module_name: str = ""
    exam_type: str = "Final"
    venue: str = ""
    notes: str = ""

    @staticmethod
    def compute_end_time(start_time: str, duration: int) -> str:
        """Derive the end time of a sitting from its start and length."""
        return minutes_to_time(time_to_minutes(start_time) + duration)

    @property
    def is_consistent(self) -> bool:
        """Check that the end time matches start time plus duration."""
        return self.end_time == self.compute_end_time(self.start_time, self.duration)


@dataclass
class AcademicCalendar:
    """Per-semester override of the default calendar."""
    year: int
    semester: int
    start_date: str
    end_date: Optional[str] = None


@dataclass
class Timetable:
    """Represents all entries and examinations of one semester."""
    year: int
    semester: int
    entries: List[TimetableEntry] = field(default_factory=list)
    examinations: List[Examination] = field(default_factory=list)
    calendar: Optional[AcademicCalendar] = None
