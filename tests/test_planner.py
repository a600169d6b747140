"""
Tests for the data loader, converter and planner service.
"""
import os
import pytest
import pandas as pd
import tempfile
import shutil
from datetime import date
from pathlib import Path

from academic_calendar.planner import TimetablePlanner
from academic_calendar.data.loader import TimetableDataLoader, split_weeks, is_truthy
from academic_calendar.data.converter import DataConverter
from academic_calendar.models.entities import Examination, TimetableEntry
from academic_calendar.algorithms.calendar import generate_academic_weeks


def write_entries(directory, rows):
    pd.DataFrame(rows).to_csv(os.path.join(directory, 'Timetable_Entries.csv'), index=False)


def write_exams(directory, rows):
    pd.DataFrame(rows).to_csv(os.path.join(directory, 'Examinations.csv'), index=False)


def entry_row(entry_id, code, day, start, end, recurring='yes', weeks='', recess='no',
              specific_date='', class_type='Lecture'):
    return {
        'Entry ID': entry_id,
        'Module Code': code,
        'Module Name': f"{code} module",
        'Day': day,
        'Start Time': start,
        'End Time': end,
        'Venue': 'LT1',
        'Class Type': class_type,
        'Recurring': recurring,
        'Weeks': weeks,
        'Include Recess Week': recess,
        'Specific Date': specific_date,
        'Notes': ''
    }


class TestTimetablePlanner:
    """Test the TimetablePlanner class."""

    @pytest.fixture
    def test_data_dir(self):
        """Create a temporary directory with test data."""
        temp_dir = tempfile.mkdtemp()

        self.create_test_data(temp_dir)

        yield temp_dir

        shutil.rmtree(temp_dir)

    @pytest.fixture
    def output_dir(self):
        """Create a temporary directory for output files."""
        temp_dir = tempfile.mkdtemp()

        yield temp_dir

        shutil.rmtree(temp_dir)

    def create_test_data(self, directory):
        """Create test data files in the specified directory."""
        write_entries(directory, [
            entry_row('E1', 'CS1010', 'Monday', '09:00', '10:00'),
            entry_row('E2', 'CS1231', 'Monday', '09:30', '10:30', weeks='2;4;6', class_type='Tutorial'),
            entry_row('E3', 'MA1521', 'Tuesday', '14:00', '16:00', class_type='Lab'),
            entry_row('E4', 'CS1010', 'Tuesday', '09:00', '10:00', recurring='no',
                      specific_date='2025-08-19', class_type='Other'),
        ])
        write_exams(directory, [
            {'Exam ID': 'X1', 'Module Code': 'CS1010', 'Module Name': 'CS1010 module',
             'Exam Type': 'Final', 'Date': '2025-11-20', 'Start Time': '09:00',
             'End Time': '11:00', 'Duration': 120, 'Venue': 'MPSH', 'Notes': ''},
            {'Exam ID': 'X2', 'Module Code': 'MA1521', 'Module Name': 'MA1521 module',
             'Exam Type': 'Midterm', 'Date': '2025-09-30', 'Start Time': '10:00',
             'End Time': '11:00', 'Duration': 60, 'Venue': 'LT2', 'Notes': ''},
        ])

    def test_planner_initialization(self, test_data_dir, output_dir):
        """Test that the planner can be initialized."""
        planner = TimetablePlanner(test_data_dir, output_dir, start_date='2025-08-11')
        assert planner is not None
        assert planner.input_dir == Path(test_data_dir)
        assert planner.output_dir == Path(output_dir)

    def test_default_start_date(self, test_data_dir, output_dir):
        planner = TimetablePlanner(test_data_dir, output_dir, year=1, semester=2)
        assert planner.start_date == '2026-01-12'

    def test_missing_input_dir(self, output_dir):
        with pytest.raises(FileNotFoundError):
            TimetablePlanner(os.path.join(output_dir, 'missing'), output_dir)

    def test_data_loading(self, test_data_dir, output_dir):
        """Test that data can be loaded."""
        planner = TimetablePlanner(test_data_dir, output_dir, start_date='2025-08-11')
        data = planner.load_data()

        assert len(data['entries']) == 4
        assert len(data['examinations']) == 2
        assert planner.loader.issues == []

    def test_data_conversion(self, test_data_dir, output_dir):
        """Test that data can be converted to domain objects."""
        planner = TimetablePlanner(test_data_dir, output_dir, start_date='2025-08-11')
        domain_data = planner.convert_data(planner.load_data())

        entries = domain_data['entries']
        assert all(isinstance(e, TimetableEntry) for e in entries.values())
        assert all(isinstance(x, Examination) for x in domain_data['examinations'].values())

        assert entries['E1'].weeks is None
        assert entries['E1'].recurring is True
        assert entries['E2'].weeks == frozenset({2, 4, 6})
        assert entries['E4'].recurring is False
        assert entries['E4'].specific_date == '2025-08-19'
        assert domain_data['examinations']['X1'].duration == 120

    def test_planning(self, test_data_dir, output_dir):
        """Test the planning process."""
        planner = TimetablePlanner(test_data_dir, output_dir, start_date='2025-08-11')
        results = planner.plan(today=date(2025, 8, 20))

        assert results['success'] is True

        summary = results['calendar_summary']
        assert summary['start_date'] == '2025-08-11'
        assert summary['end_date'] == '2025-12-14'
        assert summary['total_weeks'] == 18
        assert summary['teaching_weeks'] == 13
        assert summary['exam_weeks'] == 4
        assert summary['current_week'] == 'Week 2'

        assert results['timetable_summary']['total_entries'] == 4
        assert results['timetable_summary']['upcoming_examinations'] == 2
        assert results['conflicts'] == ['E1', 'E2']

        for file_path in results['output_files'].values():
            assert os.path.exists(file_path)

        assert results['metrics']['total_time'] >= 0

    def test_output_reports(self, test_data_dir, output_dir):
        planner = TimetablePlanner(test_data_dir, output_dir, start_date='2025-08-11')
        results = planner.plan(today=date(2025, 8, 20))

        calendar_df = pd.read_csv(results['output_files']['academic_calendar'])
        assert len(calendar_df) == 18
        assert calendar_df.loc[7, 'Label'] == 'Recess Week'

        weekly_df = pd.read_csv(results['output_files']['weekly_timetable'])
        # 13 + 3 + 13 weekly classes, one one-off and two exams
        assert len(weekly_df) == 32

        conflict_df = pd.read_csv(results['output_files']['conflict_report'])
        flagged = conflict_df[conflict_df['Conflict']]
        assert list(flagged['Entry ID']) == ['E1', 'E2']

    def test_end_date(self, test_data_dir, output_dir):
        planner = TimetablePlanner(test_data_dir, output_dir,
                                   start_date='2025-08-11', end_date='2025-11-30')
        results = planner.plan(today=date(2025, 8, 20))
        assert results['calendar_summary']['exam_weeks'] == 2

    def test_missing_examinations_file(self, test_data_dir, output_dir):
        os.remove(os.path.join(test_data_dir, 'Examinations.csv'))
        planner = TimetablePlanner(test_data_dir, output_dir, start_date='2025-08-11')
        results = planner.plan(today=date(2025, 8, 20))
        assert results['success'] is True
        assert results['timetable_summary']['total_examinations'] == 0

    def test_missing_entries_file(self, test_data_dir, output_dir):
        os.remove(os.path.join(test_data_dir, 'Timetable_Entries.csv'))
        planner = TimetablePlanner(test_data_dir, output_dir, start_date='2025-08-11')
        results = planner.plan()
        assert results['success'] is False
        assert 'error' in results

    def test_duplicate_entry_ids_are_kept(self, test_data_dir, output_dir):
        write_entries(test_data_dir, [
            entry_row('E1', 'CS1010', 'Monday', '09:00', '10:00'),
            entry_row('E1', 'CS1010', 'Tuesday', '09:00', '10:00'),
            entry_row('E2', 'CS1231', 'Tuesday', '09:30', '10:30'),
        ])
        planner = TimetablePlanner(test_data_dir, output_dir, start_date='2025-08-11')
        results = planner.plan(today=date(2025, 8, 20))

        assert results['timetable_summary']['total_entries'] == 3
        assert results['conflicts'] == ['E1#2', 'E2']
        assert 'Duplicate entry ID: E1' in planner.loader.issues


class TestTimetableDataLoader:
    """Test the validation performed while loading."""

    @pytest.fixture
    def bad_data_dir(self):
        temp_dir = tempfile.mkdtemp()
        write_entries(temp_dir, [
            entry_row('B1', 'CS1010', 'Funday', '09:00', '10:00'),
            entry_row('B2', 'CS1010', 'Monday', '11:00', '10:00'),
            entry_row('B3', 'CS1010', 'Monday', '12:00', '13:00', weeks='0;14'),
            entry_row('B4', 'CS1010', 'Monday', '12:00', '13:00', recurring='no'),
            entry_row('B5', 'CS1010', 'Monday', '12:00', '13:00', recurring='no',
                      specific_date='2025-08-12'),
        ])
        write_exams(temp_dir, [
            {'Exam ID': 'X1', 'Date': '2025-11-20', 'Start Time': '09:00',
             'End Time': '10:00', 'Duration': 120},
        ])
        yield temp_dir
        shutil.rmtree(temp_dir)

    def test_validation_issues(self, bad_data_dir):
        loader = TimetableDataLoader(bad_data_dir)
        loader.load_all()

        assert len(loader.issues) == 6
        assert any('B1' in issue and 'unknown day' in issue for issue in loader.issues)
        assert any('B2' in issue and 'ends before' in issue for issue in loader.issues)
        assert any('B3' in issue and 'outside 1-13' in issue for issue in loader.issues)
        assert any('B4' in issue and 'no specific date' in issue for issue in loader.issues)
        assert any('B5' in issue and 'not a Monday' in issue for issue in loader.issues)
        assert any('X1' in issue and '11:00' in issue for issue in loader.issues)

    def test_split_weeks(self):
        assert split_weeks('1;5;9') == [1, 5, 9]
        assert split_weeks('1, 2') == [1, 2]
        assert split_weeks(None) is None
        assert split_weeks('  ') is None

    def test_split_weeks_rejects_fractions(self):
        with pytest.raises(ValueError):
            split_weeks('2.5')
        with pytest.raises(ValueError):
            split_weeks('1;3.9')

    def test_fractional_and_duplicate_values_reported(self):
        temp_dir = tempfile.mkdtemp()
        try:
            write_entries(temp_dir, [
                entry_row('F1', 'CS1010', 'Monday', '09:00', '10:00', weeks='2.5'),
            ])
            write_exams(temp_dir, [
                {'Exam ID': 'X1', 'Date': '2025-11-20', 'Start Time': '09:00',
                 'End Time': '11:00', 'Duration': 120},
                {'Exam ID': 'X1', 'Date': '2025-11-21', 'Start Time': '09:00',
                 'End Time': '11:00', 'Duration': 120},
            ])
            loader = TimetableDataLoader(temp_dir)
            loader.load_all()
        finally:
            shutil.rmtree(temp_dir)

        assert loader.issues == ['Entry F1 has invalid weeks: 2.5', 'Duplicate exam ID: X1']

    def test_blank_exam_end_time_is_not_an_issue(self):
        temp_dir = tempfile.mkdtemp()
        try:
            write_entries(temp_dir, [entry_row('E1', 'CS1010', 'Monday', '09:00', '10:00')])
            write_exams(temp_dir, [
                {'Exam ID': 'X1', 'Date': '2025-11-20', 'Start Time': '09:00',
                 'End Time': '', 'Duration': 90},
            ])
            loader = TimetableDataLoader(temp_dir)
            data = loader.load_all()
        finally:
            shutil.rmtree(temp_dir)

        assert loader.issues == []
        exams = DataConverter.convert_examinations(data['examinations'])
        assert exams['X1'].end_time == '10:30'

    def test_is_truthy(self):
        assert is_truthy('Yes') is True
        assert is_truthy('no') is False
        assert is_truthy(float('nan'), default=True) is True


class TestDataConverter:
    """Test conversions that do not go through CSV files."""

    def test_entry_from_record(self):
        entry = DataConverter.entry_from_record({
            'id': 'A', 'day': 'Monday', 'start_time': '09:00', 'end_time': '10:00',
            'weeks': [1, 5, 9], 'include_recess_week': True
        })
        assert entry.weeks == frozenset({1, 5, 9})
        assert entry.recurring is True
        assert entry.include_recess_week is True

    def test_entry_from_record_keeps_missing_weeks_distinct_from_empty(self):
        unrestricted = DataConverter.entry_from_record(
            {'day': 'Monday', 'start_time': '09:00', 'end_time': '10:00'})
        never = DataConverter.entry_from_record(
            {'day': 'Monday', 'start_time': '09:00', 'end_time': '10:00', 'weeks': []})
        assert unrestricted.weeks is None
        assert never.weeks == frozenset()

    def test_week_to_record(self):
        weeks = generate_academic_weeks('2025-08-11')
        record = DataConverter.week_to_record(weeks[9])
        assert record == {
            'week_number': 10,
            'display_label': 'Week 9',
            'week_type': 'teaching',
            'teaching_week': 9,
            'start_date': '2025-10-13',
            'end_date': '2025-10-19',
        }
        assert DataConverter.week_to_record(weeks[7])['teaching_week'] is None
