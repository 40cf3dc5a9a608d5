"""Interpretation of timer schedules.

A timer can be driven by a calendar expression (``OnCalendar=``), a delay
after boot (``OnBootSec=``), a period after its unit was last activated
(``OnUnitActiveSec=``) or several of these at once. ``Schedule`` is the
closed union of those cases; rendering matches on it exhaustively.

Calendar humanization is best effort: a handful of aliases and weekday/hour
range shapes are recognized, everything else is shown as written.
"""
import re
from typing import Annotated, Literal, assert_never

from pydantic import Field, field_validator

from unitwatch.errors import ScheduleParseError
from unitwatch.utils import BaseModel


class CalendarSchedule(BaseModel):
    """Runs on a calendar expression.

    Args:
        expression: OnCalendar expression
    """
    model_config = {'frozen': True}

    kind: Literal['calendar'] = 'calendar'
    expression: str = Field(..., min_length=1)


class OnBootSchedule(BaseModel):
    """Runs once, a fixed delay after boot.

    Args:
        seconds: Delay after boot
    """
    model_config = {'frozen': True}

    kind: Literal['on_boot'] = 'on_boot'
    seconds: int = Field(..., ge=0)


class RecurringSchedule(BaseModel):
    """Runs periodically, relative to the last activation.

    Args:
        seconds: Period between activations
    """
    model_config = {'frozen': True}

    kind: Literal['recurring'] = 'recurring'
    seconds: int = Field(..., ge=0)


class CompositeSchedule(BaseModel):
    """Several schedules combined on one timer.

    Args:
        schedules: Component schedules, in definition order
    """
    model_config = {'frozen': True}

    kind: Literal['composite'] = 'composite'
    schedules: list['Schedule'] = Field(...)

    @field_validator('schedules')
    @classmethod
    def validate_not_empty(cls, v: list['Schedule']) -> list['Schedule']:
        if not v:
            raise ValueError('A composite schedule needs at least one part')
        return v


Schedule = Annotated[
    CalendarSchedule | OnBootSchedule | RecurringSchedule | CompositeSchedule,
    Field(discriminator='kind'),
]

CompositeSchedule.model_rebuild()


_TIME_SPAN = re.compile(
    r'^(?P<value>\d+)(?P<unit>min|m|hours|hour|h|sec|s)?$'
)
_UNIT_SECONDS = {
    'min': 60,
    'm': 60,
    'hours': 3600,
    'hour': 3600,
    'h': 3600,
    'sec': 1,
    's': 1,
    None: 1,
}

_DAY = r'(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)'
_DAY_SPEC = re.compile(
    rf'^(?P<range>{_DAY}(?:-|\.\.){_DAY})$|^(?P<list>{_DAY}(?:,{_DAY})+)$'
)
_HOUR_RANGE = re.compile(
    r'^(?P<start>\d{1,2})(?::00)?(?:-|\.\.)(?P<end>\d{1,2}):00(?::00)?$'
)
_CLOCK_TIME = re.compile(r'^(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::00)?$')
_ANY_DATE = '*-*-*'

_ALIASES = {
    'hourly': 'Hourly',
    '*-*-* *:00:00': 'Hourly',
    '*-*-* *:*:*': 'Hourly',
    'daily': 'Daily at midnight',
    '*-*-* 00:00:00': 'Daily at midnight',
    'weekly': 'Weekly on Monday',
    'Mon *-*-* 00:00:00': 'Weekly on Monday',
    'monthly': 'Monthly',
    '*-*-01 00:00:00': 'Monthly',
}


def parse_schedule(
    calendar: str | None = None,
    on_boot: str | None = None,
    on_active: str | None = None,
) -> Schedule:
    """Build a schedule from the timer's raw settings.

    Args:
        calendar: OnCalendar expression
        on_boot: OnBootSec time span
        on_active: OnUnitActiveSec time span

    Returns:
        The single schedule present, or a composite of all of them

    Raises:
        ScheduleParseError: If nothing is present or a time span is invalid
    """
    schedules: list[Schedule] = []

    if calendar is not None:
        schedules.append(CalendarSchedule(expression=calendar))
    if on_boot is not None:
        schedules.append(OnBootSchedule(seconds=parse_time_span(on_boot)))
    if on_active is not None:
        schedules.append(
            RecurringSchedule(seconds=parse_time_span(on_active))
        )

    if not schedules:
        raise ScheduleParseError('No schedule information found')
    if len(schedules) == 1:
        return schedules[0]
    return CompositeSchedule(schedules=schedules)


def parse_time_span(expression: str) -> int:
    """Parse ``5min``, ``2h``, ``30s`` or a bare number of seconds.

    Raises:
        ScheduleParseError: If the expression is not a supported time span
    """
    match = _TIME_SPAN.match(expression.strip())
    if not match:
        raise ScheduleParseError(f'Invalid time span: {expression!r}')

    return int(match.group('value')) * _UNIT_SECONDS[match.group('unit')]


def humanize_duration(seconds: int) -> str:
    if seconds < 60:
        return f'{seconds}s'

    if seconds < 3600:
        minutes, secs = divmod(seconds, 60)
        return f'{minutes}min {secs}s' if secs else f'{minutes}min'

    if seconds < 86400:
        hours, rest = divmod(seconds, 3600)
        minutes = rest // 60
        return f'{hours}h {minutes}min' if minutes else f'{hours}h'

    days, rest = divmod(seconds, 86400)
    hours = rest // 3600
    return f'{days}d {hours}h' if hours else f'{days}d'


def humanize_calendar(expression: str) -> str:
    """Render an OnCalendar expression for people.

    Unrecognized expressions come back unchanged.
    """
    expr = ' '.join(expression.split())

    if expr in _ALIASES:
        return _ALIASES[expr]

    tokens = expr.split(' ')
    day_match = _DAY_SPEC.match(tokens[0])
    if day_match:
        days = _format_days(day_match)
        time_tokens = _strip_date_and_zone(tokens[1:])
        if len(time_tokens) == 1:
            hour_range = _format_hour_range(time_tokens[0])
            if hour_range:
                return f'{days}, {hour_range}'
        rest = ' '.join(tokens[1:])
        return f'{days} {rest}' if rest else days

    if tokens[0] == _ANY_DATE:
        time_tokens = _strip_date_and_zone(tokens[1:])
        if len(time_tokens) == 1:
            hour_range = _format_hour_range(time_tokens[0])
            if hour_range:
                return f'Hourly, {hour_range}'
            clock = _CLOCK_TIME.match(time_tokens[0])
            if clock and int(clock.group('hour')) < 24:
                return f'Daily at {_format_clock(clock)}'

    return expression


def humanize_schedule(schedule: Schedule) -> str:
    match schedule:
        case CalendarSchedule(expression=expression):
            return humanize_calendar(expression)
        case OnBootSchedule(seconds=seconds):
            return f'{humanize_duration(seconds)} after boot'
        case RecurringSchedule(seconds=seconds):
            return f'Every {humanize_duration(seconds)}'
        case CompositeSchedule(schedules=schedules):
            return ', '.join(humanize_schedule(part) for part in schedules)
        case _:
            assert_never(schedule)


def _format_days(match: re.Match[str]) -> str:
    if match.group('range'):
        return match.group('range').replace('..', '-')
    return ', '.join(match.group('list').split(','))


def _strip_date_and_zone(tokens: list[str]) -> list[str]:
    """Drop a wildcard date and a trailing time zone from time tokens.
    """
    if tokens and tokens[0] == _ANY_DATE:
        tokens = tokens[1:]
    if len(tokens) == 2 and not tokens[1][:1].isdigit():
        tokens = tokens[:1]
    return tokens


def _format_hour_range(token: str) -> str | None:
    match = _HOUR_RANGE.match(token)
    if not match:
        return None

    start, end = int(match.group('start')), int(match.group('end'))
    if start > 24 or end > 24:
        return None
    return f'{_twelve_hour(start)} - {_twelve_hour(end)}'


def _format_clock(match: re.Match[str]) -> str:
    hour, minute = int(match.group('hour')), int(match.group('minute'))
    if minute == 0:
        return 'midnight' if hour == 0 else _twelve_hour(hour)

    suffix = 'AM' if hour % 24 < 12 else 'PM'
    return f'{hour % 12 or 12}:{minute:02d} {suffix}'


def _twelve_hour(hour: int) -> str:
    suffix = 'AM' if hour % 24 < 12 else 'PM'
    return f'{hour % 12 or 12} {suffix}'
