#!/usr/bin/env python3
"""
Command-line interface for the academic calendar engine.
Builds the semester calendar for a timetable and reports clashing entries.
"""
import argparse
import logging
import json
import sys
from datetime import datetime
from pathlib import Path

from .config import Config
from .planner import TimetablePlanner


def parse_date(value):
    """Parse an ISO date argument."""
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid date format: '{value}'. Expected YYYY-MM-DD."
        )
    return value


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Academic Calendar CLI',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        '--input-dir',
        type=str,
        default='input',
        help='Directory containing input CSV files'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        default='output',
        help='Directory to save output CSV files'
    )

    parser.add_argument(
        '--start-date',
        type=parse_date,
        default=None,
        help='Any date in Week 1 of the semester (YYYY-MM-DD)'
    )

    parser.add_argument(
        '--end-date',
        type=parse_date,
        default=None,
        help='Last day of the exam period (YYYY-MM-DD)'
    )

    parser.add_argument(
        '--year',
        type=int,
        choices=[1, 2, 3, 4],
        default=1,
        help='Year of study, used when no start date is given'
    )

    parser.add_argument(
        '--semester',
        type=int,
        choices=[1, 2],
        default=1,
        help='Semester, used when no start date is given'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=Config.LOG_LEVEL,
        help='Logging level'
    )

    parser.add_argument(
        '--json-output',
        action='store_true',
        help='Output results as JSON'
    )

    return parser.parse_args(argv)


def setup_logging(log_level):
    """Configure logging."""
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {log_level}')

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main(argv=None):
    """Main entry point for the CLI."""
    args = parse_args(argv)

    setup_logging(args.log_level)

    input_dir = Path(args.input_dir)
    if not input_dir.exists():
        print(f"Error: Input directory does not exist: {input_dir}")
        sys.exit(1)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        planner = TimetablePlanner(
            input_dir=str(input_dir),
            output_dir=str(output_dir),
            start_date=args.start_date,
            end_date=args.end_date,
            year=args.year,
            semester=args.semester
        )

        results = planner.plan()

        if args.json_output:
            print(json.dumps(results, indent=2))
        else:
            print("\nPlanning Results:")

            if results['success']:
                calendar = results['calendar_summary']
                timetable = results['timetable_summary']
                print(f"  Semester: {calendar['start_date']} to {calendar['end_date']} ({calendar['total_weeks']} weeks)")
                print(f"  Current week: {calendar['current_week'] or 'outside semester'}")
                print(f"  Entries: {timetable['total_entries']}, examinations: {timetable['total_examinations']}")
                if results['conflicts']:
                    print(f"  Conflicting entries: {', '.join(results['conflicts'])}")
                else:
                    print("  No conflicts found")

                print("\nOutput files:")
                for name, path in results['output_files'].items():
                    print(f"  {name}: {path}")

                print("\nPerformance metrics:")
                for metric, value in results['metrics'].items():
                    print(f"  {metric}: {value:.2f} seconds")
            else:
                print(f"  Error: {results['error']}")
                sys.exit(1)

    except Exception as e:
        print(f"Error: {str(e)}")
        sys.exit(1)


if __name__ == '__main__':
    main()
