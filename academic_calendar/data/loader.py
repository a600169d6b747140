import pandas as pd
from pathlib import Path
import datetime
import logging
from typing import Dict, List, Optional

from ..models.entities import DAY_NAMES, Examination, time_to_minutes

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = [
    'Entry ID', 'Module Code', 'Module Name', 'Day', 'Start Time', 'End Time', 'Venue',
    'Class Type', 'Recurring', 'Weeks', 'Include Recess Week', 'Specific Date', 'Notes'
]
EXAM_COLUMNS = [
    'Exam ID', 'Module Code', 'Module Name', 'Exam Type', 'Date', 'Start Time',
    'End Time', 'Duration', 'Venue', 'Notes'
]

ENTRIES_FILE = 'Timetable_Entries.csv'
EXAMS_FILE = 'Examinations.csv'

TRUE_VALUES = ['yes', 'true', '1', 'y']


def duplicate_ids(frame: pd.DataFrame, column: str) -> List[str]:
    """Return the non-blank IDs that appear on more than one row, in first-seen order."""
    if column not in frame.columns:
        return []
    ids = frame[column].dropna().astype(str).str.strip()
    ids = ids[ids != '']
    return list(dict.fromkeys(ids[ids.duplicated()]))


def is_truthy(value, default: bool = False) -> bool:
    """Interpret a CSV cell as a boolean flag; blank cells give the default."""
    if pd.isna(value) or not str(value).strip():
        return default
    return str(value).strip().lower() in TRUE_VALUES


def split_weeks(value) -> Optional[List[int]]:
    """Split a "1;5;9" cell into week numbers; blank cells mean all weeks."""
    if pd.isna(value) or not str(value).strip():
        return None
    weeks = []
    for part in str(value).replace(',', ';').split(';'):
        part = part.strip()
        if part:
            weeks.append(int(part))
    return weeks


class TimetableDataLoader:
    """
    Handles loading and validating timetable data from CSV files.
    Validation problems are collected and logged, never raised.
    """

    def __init__(self, input_dir: Optional[str] = None, debug_dir: Optional[str] = None):
        """
        Initialize the data loader.

        Args:
            input_dir: Directory containing input CSV files
            debug_dir: Directory to store a timestamped log of the load
        """
        self.input_dir = Path(input_dir) if input_dir else Path.cwd()

        if debug_dir:
            debug_path = Path(debug_dir)
            debug_path.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            self.log_file = debug_path / f"data_loader_{timestamp}.log"
            file_handler = logging.FileHandler(self.log_file)
            file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
            logger.addHandler(file_handler)

        self.data: Dict[str, pd.DataFrame] = {}
        self.issues: List[str] = []

        if not self.input_dir.exists():
            logger.error(f"Input directory not found at {self.input_dir}")
            raise FileNotFoundError(f"Input directory not found at {self.input_dir}")

        logger.info("Data loader initialized successfully")

    def load_entries(self):
        """Load the timetable entries, which are required."""
        try:
            self.data['entries'] = pd.read_csv(
                self.input_dir / ENTRIES_FILE,
                dtype=str
            )
            logger.info(f"Timetable entries loaded: {len(self.data['entries'])} records")
        except FileNotFoundError as e:
            logger.error(f"Missing input file: {e.filename}")
            raise

    def load_examinations(self):
        """Load the examinations, using an empty dataset when the file is missing."""
        try:
            self.data['examinations'] = pd.read_csv(
                self.input_dir / EXAMS_FILE,
                dtype=str
            )
            logger.info(f"Examinations loaded: {len(self.data['examinations'])} records")
        except (pd.errors.EmptyDataError, FileNotFoundError):
            self.data['examinations'] = pd.DataFrame(columns=EXAM_COLUMNS)
            logger.warning("Examinations not found or empty, using empty dataset")

    def validate_entries(self) -> List[str]:
        """
        Check timetable entries for values that would never behave as intended:
        - Unknown day names
        - End time not after start time
        - Teaching weeks outside 1-13
        - Entry IDs used on more than one row
        - One-off entries without a date, or dated on a different weekday
        """
        issues = []
        entries = self.data.get('entries', pd.DataFrame(columns=ENTRY_COLUMNS))

        for entry_id in duplicate_ids(entries, 'Entry ID'):
            issues.append(f"Duplicate entry ID: {entry_id}")

        for idx, row in entries.iterrows():
            label = row.get('Entry ID', idx)
            day = row.get('Day')
            if day not in DAY_NAMES:
                issues.append(f"Entry {label} has unknown day: {day}")
                continue

            try:
                start = time_to_minutes(str(row['Start Time']))
                end = time_to_minutes(str(row['End Time']))
            except (KeyError, ValueError):
                issues.append(f"Entry {label} has invalid times")
                continue
            if end <= start:
                issues.append(f"Entry {label} ends before it starts")

            try:
                weeks = split_weeks(row.get('Weeks'))
            except ValueError:
                issues.append(f"Entry {label} has invalid weeks: {row.get('Weeks')}")
                weeks = None
            if weeks and any(w < 1 or w > 13 for w in weeks):
                issues.append(f"Entry {label} references weeks outside 1-13: {weeks}")

            if not is_truthy(row.get('Recurring'), default=True):
                specific_date = row.get('Specific Date')
                if pd.isna(specific_date) or not str(specific_date).strip():
                    issues.append(f"One-off entry {label} has no specific date")
                else:
                    try:
                        weekday = datetime.datetime.strptime(str(specific_date).strip(), '%Y-%m-%d').weekday()
                    except ValueError:
                        issues.append(f"One-off entry {label} has invalid date: {specific_date}")
                        continue
                    if DAY_NAMES[weekday] != day:
                        issues.append(f"One-off entry {label} is dated {specific_date}, which is not a {day}")

        for issue in issues:
            logger.warning(issue)
        return issues

    def validate_examinations(self) -> List[str]:
        """Check that every exam ends exactly its duration after it starts."""
        issues = []
        exams = self.data.get('examinations', pd.DataFrame(columns=EXAM_COLUMNS))

        for exam_id in duplicate_ids(exams, 'Exam ID'):
            issues.append(f"Duplicate exam ID: {exam_id}")

        for idx, row in exams.iterrows():
            label = row.get('Exam ID', idx)
            try:
                start_time = str(row['Start Time']).strip()
                duration = int(float(row['Duration']))
                expected = Examination.compute_end_time(start_time, duration)
            except (KeyError, ValueError, TypeError):
                issues.append(f"Exam {label} has invalid start time or duration")
                continue
            end_time = row.get('End Time')
            # A blank end time is derived from the duration on conversion
            if pd.isna(end_time) or not str(end_time).strip():
                continue
            if str(end_time).strip() != expected:
                issues.append(f"Exam {label} should end at {expected}")

        for issue in issues:
            logger.warning(issue)
        return issues

    def load_all(self) -> Dict[str, pd.DataFrame]:
        """
        Load and validate all timetable data.

        Returns:
            Dict: Dictionary containing all loaded dataframes
        """
        try:
            logger.info("Starting data load process...")
            self.load_entries()
            self.load_examinations()
            issues = self.validate_entries() + self.validate_examinations()

            if issues:
                logger.warning(f"Data loaded with {len(issues)} validation issues")
            else:
                logger.info("Data loaded and validated successfully")

            self.issues = issues
            return self.data

        except Exception as e:
            logger.error(f"Error during data loading: {str(e)}")
            raise
