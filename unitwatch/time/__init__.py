from unitwatch.time.converters import StandardTimeConverter
from unitwatch.time.schedule import (
    CalendarSchedule,
    CompositeSchedule,
    OnBootSchedule,
    RecurringSchedule,
    Schedule,
    humanize_calendar,
    humanize_duration,
    humanize_schedule,
    parse_schedule,
    parse_time_span,
)

__all__ = [
    'CalendarSchedule',
    'CompositeSchedule',
    'OnBootSchedule',
    'RecurringSchedule',
    'Schedule',
    'StandardTimeConverter',
    'humanize_calendar',
    'humanize_duration',
    'humanize_schedule',
    'parse_schedule',
    'parse_time_span',
]
