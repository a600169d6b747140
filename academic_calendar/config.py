"""
Configuration for the academic calendar engine.

Values are read from the environment; a ``.env`` file in the working
directory is loaded first so deployments can keep settings next to the app.
"""
import json
import logging
import os
from typing import Dict

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _load_start_dates() -> Dict[str, str]:
    raw = os.environ.get('SEMESTER_START_DATES')
    if not raw:
        return {}
    try:
        overrides = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("SEMESTER_START_DATES is not valid JSON, ignoring it")
        return {}
    if not isinstance(overrides, dict):
        logger.warning("SEMESTER_START_DATES must be a JSON object, ignoring it")
        return {}
    return {str(k): str(v) for k, v in overrides.items()}


class Config:
    """Settings shared by the CLI, the API and the calendar defaults."""
    LOG_LEVEL = os.environ.get('ACADEMIC_CALENDAR_LOG_LEVEL', 'INFO')
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', '/tmp/academic_calendar/uploads')
    RESULTS_FOLDER = os.environ.get('RESULTS_FOLDER', '/tmp/academic_calendar/results')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB limit
    DEFAULT_EXAM_WEEKS = int(os.environ.get('DEFAULT_EXAM_WEEKS', 4))
    # Keys look like "Y1S1"; values are ISO dates of the Week 1 Monday
    SEMESTER_START_DATES = _load_start_dates()
