"""
Main timetable planning service module.

This module provides the semester planning service. It orchestrates loading
the timetable, building the academic calendar, flagging conflicts and
saving the resulting reports.
"""
import pandas as pd
import logging
import time
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Config
from .data.loader import TimetableDataLoader
from .data.converter import DataConverter
from .models.entities import AcademicWeek, TimetableEntry, WeekType
from .algorithms.calendar import (
    generate_academic_weeks, get_current_academic_week, get_default_start_date
)
from .algorithms.conflicts import find_conflicts
from .algorithms.recurrence import get_upcoming_exams

logger = logging.getLogger(__name__)


class TimetablePlanner:
    """
    Semester planning service.

    This class is responsible for:
    - Loading timetable entries and examinations
    - Building the academic calendar for the semester
    - Flagging clashing entries
    - Generating and saving reports
    """

    def __init__(self, input_dir: str, output_dir: str,
                 start_date: Optional[str] = None,
                 end_date: Optional[str] = None,
                 year: int = 1,
                 semester: int = 1):
        """
        Initialize the planner service.

        Args:
            input_dir: Directory containing input CSV files
            output_dir: Directory where output CSV files will be saved
            start_date: Any date in Week 1; the year/semester default when omitted
            end_date: Last day of the exam period
            year: Year of study used to look up the default start date
            semester: Semester used to look up the default start date
        """
        self.input_dir = Path(input_dir)
        self.output_dir = Path(output_dir)

        if not self.output_dir.exists():
            self.output_dir.mkdir(parents=True, exist_ok=True)

        self.start_date = start_date or get_default_start_date(
            year, semester, Config.SEMESTER_START_DATES
        )
        self.end_date = end_date

        self.loader = TimetableDataLoader(str(input_dir))
        self.converter = DataConverter()

        self.metrics = {
            'load_time': 0,
            'conversion_time': 0,
            'calendar_time': 0,
            'conflict_time': 0,
            'total_time': 0
        }

    def load_data(self) -> Dict[str, pd.DataFrame]:
        """
        Load input data files.

        Returns:
            Dictionary of DataFrames containing the loaded data
        """
        start_time = time.time()
        logger.info(f"Loading data from {self.input_dir}")

        try:
            data = self.loader.load_all()

            self.metrics['load_time'] = time.time() - start_time
            logger.info(f"Data loaded successfully in {self.metrics['load_time']:.2f} seconds")

            return data
        except Exception as e:
            logger.error(f"Error loading data: {str(e)}")
            raise

    def convert_data(self, data: Dict[str, pd.DataFrame]) -> Dict[str, Any]:
        """
        Convert CSV data to domain model objects.

        Args:
            data: Dictionary of DataFrames

        Returns:
            Dictionary containing domain objects
        """
        start_time = time.time()
        logger.info("Converting data to domain model")

        try:
            domain_data = {
                'entries': self.converter.convert_entries(data['entries']),
                'examinations': self.converter.convert_examinations(data['examinations'])
            }

            self.metrics['conversion_time'] = time.time() - start_time
            logger.info(f"Data converted successfully in {self.metrics['conversion_time']:.2f} seconds")

            return domain_data
        except Exception as e:
            logger.error(f"Error converting data: {str(e)}")
            raise

    def build_calendar(self) -> List[AcademicWeek]:
        """Generate the academic weeks of the semester."""
        start_time = time.time()
        logger.info(f"Building academic calendar from {self.start_date}")

        weeks = generate_academic_weeks(
            self.start_date, self.end_date, default_exam_weeks=Config.DEFAULT_EXAM_WEEKS
        )

        self.metrics['calendar_time'] = time.time() - start_time
        logger.info(f"Calendar spans {weeks[0].start_date} to {weeks[-1].end_date} ({len(weeks)} weeks)")

        return weeks

    def detect_conflicts(self, entries: List[TimetableEntry]) -> List[TimetableEntry]:
        """Flag every entry that clashes with another entry."""
        start_time = time.time()
        conflicting = find_conflicts(entries)
        self.metrics['conflict_time'] = time.time() - start_time
        return conflicting

    def save_results(self, weeks: List[AcademicWeek], domain_data: Dict[str, Any]) -> Dict[str, str]:
        """
        Save planning results to CSV files.

        Args:
            weeks: Generated academic weeks
            domain_data: Dictionary containing domain objects

        Returns:
            Dictionary of output file paths
        """
        logger.info(f"Saving results to {self.output_dir}")

        entries = list(domain_data['entries'].values())
        examinations = list(domain_data['examinations'].values())

        calendar_df = self.converter.convert_weeks_to_df(weeks)
        weekly_df = self.converter.convert_to_weekly_timetable_df(weeks, entries, examinations)
        conflict_df = self.converter.generate_conflict_report(entries)

        output_files = {
            'academic_calendar': str(self.output_dir / 'Academic_Calendar.csv'),
            'weekly_timetable': str(self.output_dir / 'Weekly_Timetable.csv'),
            'conflict_report': str(self.output_dir / 'Conflict_Report.csv')
        }

        calendar_df.to_csv(output_files['academic_calendar'], index=False)
        weekly_df.to_csv(output_files['weekly_timetable'], index=False)
        conflict_df.to_csv(output_files['conflict_report'], index=False)

        logger.info("Results saved successfully")

        return output_files

    def plan(self, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Run the complete planning process.

        Args:
            today: Date used to find the current week, defaults to today

        Returns:
            Dictionary containing planning results and metrics
        """
        total_start_time = time.time()
        logger.info("Starting complete planning process")

        try:
            data = self.load_data()
            domain_data = self.convert_data(data)
            weeks = self.build_calendar()

            entries = list(domain_data['entries'].values())
            conflicting = self.detect_conflicts(entries)

            output_files = self.save_results(weeks, domain_data)

            self.metrics['total_time'] = time.time() - total_start_time

            current_week = get_current_academic_week(weeks, today)
            upcoming = get_upcoming_exams(domain_data['examinations'].values(), today)

            results = {
                'calendar_summary': {
                    'start_date': weeks[0].start_date.isoformat(),
                    'end_date': weeks[-1].end_date.isoformat(),
                    'total_weeks': len(weeks),
                    'teaching_weeks': len([w for w in weeks if w.week_type == WeekType.TEACHING]),
                    'exam_weeks': len([w for w in weeks if w.week_type == WeekType.EXAM]),
                    'current_week': current_week.display_label if current_week else None
                },
                'timetable_summary': {
                    'total_entries': len(entries),
                    'total_examinations': len(domain_data['examinations']),
                    'upcoming_examinations': len(upcoming),
                    'validation_issues': len(self.loader.issues)
                },
                'conflicts': [entry.id for entry in conflicting],
                'output_files': output_files,
                'metrics': self.metrics,
                'success': True
            }

            logger.info(f"Planning completed successfully in {self.metrics['total_time']:.2f} seconds")

            return results

        except Exception as e:
            logger.error(f"Planning failed: {str(e)}")

            self.metrics['total_time'] = time.time() - total_start_time

            results = {
                'error': str(e),
                'metrics': self.metrics,
                'success': False
            }

            return results
