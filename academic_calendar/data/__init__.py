from .loader import TimetableDataLoader
from .converter import DataConverter

__all__ = ['TimetableDataLoader', 'DataConverter']
