"""
REST API for the academic calendar engine.
Provides HTTP endpoints to build semester calendars and check timetables.
"""
import os
import shutil
import uuid
import logging
import time
from datetime import datetime
from flask import Flask, request, jsonify, abort
from flask_cors import CORS
from werkzeug.utils import secure_filename

from .config import Config
from .data.converter import DataConverter
from .algorithms.calendar import (
    generate_academic_weeks, get_academic_weeks_for_semester, get_week_for_date
)
from .algorithms.conflicts import find_conflicts
from .planner import TimetablePlanner

logging.basicConfig(level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

app.config['UPLOAD_FOLDER'] = Config.UPLOAD_FOLDER
app.config['RESULTS_FOLDER'] = Config.RESULTS_FOLDER
app.config['MAX_CONTENT_LENGTH'] = Config.MAX_CONTENT_LENGTH

ALLOWED_FILES = {'Timetable_Entries.csv', 'Examinations.csv'}


def _date_arg(name, required=False):
    value = request.args.get(name)
    if not value:
        if required:
            abort(400, description=f"Missing parameter: {name}")
        return None
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        abort(400, description=f"Invalid date for {name}: {value}")
    return value


def _weeks_from_args():
    """Build the academic weeks from either explicit dates or year/semester."""
    start_date = _date_arg('start_date')
    end_date = _date_arg('end_date')
    if start_date:
        return generate_academic_weeks(start_date, end_date, default_exam_weeks=Config.DEFAULT_EXAM_WEEKS)

    year = request.args.get('year', type=int)
    semester = request.args.get('semester', type=int)
    if year is None or semester is None:
        abort(400, description="Provide start_date or both year and semester")
    return get_academic_weeks_for_semester(year, semester, overrides=Config.SEMESTER_START_DATES)


@app.route('/api/v1/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'timestamp': time.time()
    })


@app.route('/api/v1/calendar', methods=['GET'])
def get_calendar():
    """Generate the academic weeks of a semester."""
    weeks = _weeks_from_args()
    return jsonify({
        'weeks': [DataConverter.week_to_record(week) for week in weeks]
    })


@app.route('/api/v1/calendar/week', methods=['GET'])
def get_week():
    """Find the academic week containing a date."""
    day = _date_arg('date', required=True)
    week = get_week_for_date(day, _weeks_from_args())
    if week is None:
        return jsonify({'week': None})
    return jsonify({'week': DataConverter.week_to_record(week)})


@app.route('/api/v1/conflicts', methods=['POST'])
def check_conflicts():
    """Flag clashing entries in a JSON list of timetable entries."""
    payload = request.get_json(silent=True)
    if not payload or not isinstance(payload.get('entries'), list):
        abort(400, description="Expected a JSON body with an 'entries' list")

    try:
        entries = [DataConverter.entry_from_record(record) for record in payload['entries']]
    except (KeyError, TypeError, ValueError) as e:
        abort(400, description=f"Invalid entry: {e}")

    # Entries without an id are reported by their position, e.g. "#2"
    used_ids = {entry.id for entry in entries if entry.id}
    for idx, entry in enumerate(entries):
        if not entry.id:
            candidate = f"#{idx}"
            suffix = 1
            while candidate in used_ids:
                suffix += 1
                candidate = f"#{idx}-{suffix}"
            entry.id = candidate
            used_ids.add(candidate)

    conflicting = find_conflicts(entries)
    return jsonify({
        'conflicts': [entry.id for entry in conflicting],
        'total_entries': len(entries)
    })


@app.route('/api/v1/timetable/plan', methods=['POST'])
def plan_timetable():
    """Upload timetable CSV files and run the planner on them."""
    if 'files' not in request.files:
        abort(400, description="No files provided")

    files = request.files.getlist('files')
    if not files:
        abort(400, description="No files selected")

    start_date = request.form.get('start_date') or None
    end_date = request.form.get('end_date') or None
    for name, value in (('start_date', start_date), ('end_date', end_date)):
        if value:
            try:
                datetime.strptime(value, '%Y-%m-%d')
            except ValueError:
                abort(400, description=f"Invalid date for {name}: {value}")

    job_id = str(uuid.uuid4())
    job_input_dir = os.path.join(app.config['UPLOAD_FOLDER'], job_id)
    job_output_dir = os.path.join(app.config['RESULTS_FOLDER'], job_id)

    os.makedirs(job_input_dir, exist_ok=True)

    try:
        for file in files:
            if file.filename:
                filename = secure_filename(file.filename)
                if filename not in ALLOWED_FILES:
                    abort(400, description=f"Unexpected file: {filename}")
                file.save(os.path.join(job_input_dir, filename))

        os.makedirs(job_output_dir, exist_ok=True)

        planner = TimetablePlanner(
            input_dir=job_input_dir,
            output_dir=job_output_dir,
            start_date=start_date,
            end_date=end_date,
            year=request.form.get('year', 1, type=int),
            semester=request.form.get('semester', 1, type=int)
        )
        results = planner.plan()
        logger.info(f"Plan {job_id} finished with success={results['success']}")
    finally:
        shutil.rmtree(job_input_dir, ignore_errors=True)

    results['job_id'] = job_id
    return jsonify(results), 200 if results['success'] else 422


def create_app():
    """Create the Flask application."""
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    os.makedirs(app.config['RESULTS_FOLDER'], exist_ok=True)
    return app


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    create_app().run(host='0.0.0.0', port=port)
