# Initialize algorithms package
from . import calendar
from . import recurrence
from . import conflicts

__all__ = ['calendar', 'recurrence', 'conflicts']
