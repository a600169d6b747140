"""
Academic calendar engine.

Builds semester week structures from a start date, decides which timetable
entries run in which week and flags clashing entries.
"""
__version__ = "0.1.0"
