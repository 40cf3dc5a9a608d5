import json
import logging
import re
from datetime import UTC, datetime
from typing import Any

from unitwatch.control.types import (
    ControlPlaneConstants,
    JournalFields,
    ServicePropertyNames,
    TimerPropertyNames,
    UnitSuffix,
)
from unitwatch.control.validation import timer_to_service
from unitwatch.errors import (
    InvalidIdentifierError,
    OutputParseError,
    ScheduleParseError,
    UnitNotFoundError,
)
from unitwatch.models.timers import TimerDescriptor
from unitwatch.models.units import LogRecord, UnitStatus, UnitSummary
from unitwatch.time.converters import StandardTimeConverter
from unitwatch.time.schedule import humanize_schedule, parse_schedule

logger = logging.getLogger(__name__)

_time_converter = StandardTimeConverter()

_LIST_TIMESTAMP = re.compile(
    r'[A-Z][a-z]{2} \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}(?: [A-Za-z][\w/+-]*)?'
)
_NO_SCHEDULE = 'Schedule not available'


def parse_unit_list(output: str) -> list[UnitSummary]:
    """Parse ``systemctl list-units --plain --no-legend`` output.

    Lines with fewer than four fields are skipped. The description is the
    rest of the line after the fourth field.
    """
    units = []

    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 4:
            continue

        name, load_state, active_state, sub_state = parts[:4]
        units.append(UnitSummary(
            name=name,
            description=' '.join(parts[4:]),
            load_state=load_state,
            active_state=active_state,
            sub_state=sub_state,
        ))

    return units


def parse_unit_status(name: str, output: str) -> UnitStatus:
    """Parse ``systemctl show --property=...`` output for a service.

    Raises:
        OutputParseError: If ActiveState or SubState is missing
    """
    properties = parse_properties(output)

    active_state = properties.get(ServicePropertyNames.ACTIVE_STATE)
    if active_state is None:
        raise OutputParseError(
            'systemctl',
            'Missing ActiveState in systemctl output',
        )

    sub_state = properties.get(ServicePropertyNames.SUB_STATE)
    if sub_state is None:
        raise OutputParseError(
            'systemctl',
            'Missing SubState in systemctl output',
        )

    main_pid = None
    raw_pid = properties.get(ServicePropertyNames.MAIN_PID, '')
    if raw_pid.isdigit() and int(raw_pid) != 0:
        main_pid = int(raw_pid)

    active_enter_time = _time_converter.parse_systemd_timestamp(
        properties.get(ServicePropertyNames.ACTIVE_ENTER_TIMESTAMP, '')
    )

    return UnitStatus(
        name=name,
        active_state=active_state,
        sub_state=sub_state,
        main_pid=main_pid,
        active_enter_time=active_enter_time,
    )


def parse_log_records(output: str) -> list[LogRecord]:
    """Parse ``journalctl --output=json`` output.

    Every non-blank line must be a JSON object.

    Raises:
        OutputParseError: If any line is not valid JSON
    """
    records = []

    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue

        try:
            entry = json.loads(line)
        except json.JSONDecodeError as e:
            raise OutputParseError(
                'journalctl',
                f'Invalid JSON in journalctl output: {e}',
            ) from e

        if not isinstance(entry, dict):
            raise OutputParseError(
                'journalctl',
                'Expected a JSON object per journalctl line',
            )

        records.append(LogRecord(
            timestamp=_journal_timestamp(entry),
            message=journal_message(entry),
            priority=_journal_priority(entry),
        ))

    return records


def parse_timer_list(output: str) -> list[TimerDescriptor]:
    """Parse ``systemctl list-timers --all --plain`` output.

    Columns are ``NEXT LEFT LAST PASSED UNIT ACTIVATES``. Timestamps are
    located by shape since LEFT and PASSED have a variable number of words.
    """
    timers = []

    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 6 or not parts[-2].endswith(UnitSuffix.TIMER):
            continue

        timestamps = _LIST_TIMESTAMP.findall(' '.join(parts[:-2]))
        if parts[0] == 'n/a':
            next_run = None
            last_trigger = timestamps[0] if timestamps else None
        else:
            next_run = timestamps[0] if timestamps else None
            last_trigger = timestamps[1] if len(timestamps) > 1 else None

        timers.append(TimerDescriptor(
            name=parts[-2],
            enabled=True,
            next_run=next_run,
            last_trigger=last_trigger,
            service=parts[-1],
        ))

    return timers


def parse_timer_properties(name: str, output: str) -> TimerDescriptor:
    """Parse ``systemctl show`` output for a timer.

    Raises:
        UnitNotFoundError: If systemd does not know the timer
    """
    properties = parse_properties(output)
    calendar_entries = [
        calendar
        for value in properties.get_all(TimerPropertyNames.TIMERS_CALENDAR)
        if (calendar := extract_on_calendar(value))
    ]

    if properties.get(TimerPropertyNames.LOAD_STATE) == 'not-found':
        raise UnitNotFoundError(name)

    enabled = (
        properties.get(TimerPropertyNames.UNIT_FILE_STATE) == 'enabled'
        and properties.get(TimerPropertyNames.ACTIVE_STATE) == 'active'
    )

    try:
        service = timer_to_service(name)
    except InvalidIdentifierError:
        service = name

    if calendar_entries:
        schedule_human = ', '.join(
            _humanize_calendar_entry(entry) for entry in calendar_entries
        )
    else:
        schedule_human = _NO_SCHEDULE

    return TimerDescriptor(
        name=properties.get(TimerPropertyNames.ID) or name,
        enabled=enabled,
        schedule=', '.join(calendar_entries),
        schedule_human=schedule_human,
        next_run=_optional_time(
            properties.get(TimerPropertyNames.NEXT_ELAPSE_REALTIME_USEC)
        ),
        last_trigger=_optional_time(
            properties.get(TimerPropertyNames.LAST_TRIGGER_USEC)
        ),
        service=service,
    )


def extract_on_calendar(value: str) -> str | None:
    """Extract the OnCalendar expression from a TimersCalendar entry.

    The entry looks like ``{ OnCalendar=Mon..Fri 07..21:00:00 ; next_elapse=... }``.
    """
    _, marker, rest = value.partition('OnCalendar=')
    if not marker:
        return None

    calendar = re.split(r'[;}]', rest, maxsplit=1)[0].strip()
    return calendar or None


class PropertyDump(dict[str, str]):
    """``KEY=VALUE`` properties; repeated keys keep every value.
    """

    def __init__(self) -> None:
        super().__init__()
        self._repeated: dict[str, list[str]] = {}

    def add(self, key: str, value: str) -> None:
        self.setdefault(key, value)
        self._repeated.setdefault(key, []).append(value)

    def get_all(self, key: str) -> list[str]:
        return list(self._repeated.get(key, []))


def parse_properties(output: str) -> PropertyDump:
    properties = PropertyDump()

    for line in output.splitlines():
        key, separator, value = line.strip().partition('=')
        if separator:
            properties.add(key, value)

    return properties


def journal_message(entry: dict[str, Any]) -> str:
    """Return the MESSAGE field as text.

    journalctl emits non-UTF-8 messages as arrays of byte values.
    """
    message = entry.get(JournalFields.MESSAGE)
    if isinstance(message, str):
        return message
    if isinstance(message, list) and all(
        isinstance(b, int) and 0 <= b < 256 for b in message
    ):
        return bytes(message).decode('utf-8', errors='replace')
    return ''


def _journal_priority(entry: dict[str, Any]) -> int:
    raw = entry.get(JournalFields.PRIORITY)
    try:
        priority = int(raw)
    except (TypeError, ValueError):
        return ControlPlaneConstants.DEFAULT_PRIORITY

    if 0 <= priority <= 7:
        return priority
    return ControlPlaneConstants.DEFAULT_PRIORITY


def _journal_timestamp(entry: dict[str, Any]) -> datetime:
    raw = entry.get(JournalFields.REALTIME_TIMESTAMP)
    if isinstance(raw, str):
        parsed = _time_converter.parse_realtime_text(raw)
        if parsed is not None:
            return parsed

    logger.debug('Journal entry without usable timestamp, using now')
    return datetime.now(UTC)


def _optional_time(value: str | None) -> str | None:
    if not value or value == '0' or value == 'n/a':
        return None
    return _time_converter.format_realtime_text(value)


def _humanize_calendar_entry(entry: str) -> str:
    try:
        schedule = parse_schedule(calendar=entry)
    except ScheduleParseError:
        return entry
    return humanize_schedule(schedule)
