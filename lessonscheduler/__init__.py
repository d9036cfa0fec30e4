"""
Lesson scheduling and recurrence engine for coach calendars.
"""

__version__ = "0.1.0"
