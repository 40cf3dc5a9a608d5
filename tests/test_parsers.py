import json
from datetime import UTC, datetime, timedelta

import pytest

from unitwatch.control.parsers import (
    extract_on_calendar,
    parse_log_records,
    parse_properties,
    parse_timer_list,
    parse_timer_properties,
    parse_unit_list,
    parse_unit_status,
)
from unitwatch.errors import OutputParseError, UnitNotFoundError

UNIT_LIST = """\
nginx.service      loaded active   running A high performance web server
ssh.service        loaded active   running OpenBSD Secure Shell server
broken.service     not-found inactive
cron.service       loaded inactive dead    Regular background program processing daemon
"""

TIMER_LIST = """\
NEXT                        LEFT       LAST                        PASSED    UNIT          ACTIVATES
Thu 2026-01-15 14:00:00 CET 45min left Thu 2026-01-15 13:00:00 CET 14min ago backup.timer  backup.service
n/a                         n/a        Wed 2026-01-14 09:00:00 CET 1 day ago oneshot.timer oneshot.service

2 timers listed.
Pass --all to see loaded but inactive timers, too.
"""

TIMER_SHOW = """\
Id=backup.timer
LoadState=loaded
UnitFileState=enabled
ActiveState=active
NextElapseUSecRealtime=1768482000000000
LastTriggerUSec=0
TimersCalendar={ OnCalendar=Mon..Fri *-*-* 08..21:00:00 ; next_elapse=Thu 2026-01-15 14:00:00 CET }
"""


def _usec(dt: datetime) -> str:
    return str(int(dt.timestamp() * 1_000_000))


def test_unit_list_skips_short_rows():
    units = parse_unit_list(UNIT_LIST)

    assert [unit.name for unit in units] == [
        'nginx.service',
        'ssh.service',
        'cron.service',
    ]
    assert units[0].description == 'A high performance web server'
    assert units[2].active_state == 'inactive'
    assert units[2].sub_state == 'dead'


def test_unit_list_without_description():
    units = parse_unit_list('a.service loaded active running\n')

    assert len(units) == 1
    assert units[0].description == ''


def test_unit_list_empty_input():
    assert parse_unit_list('') == []
    assert parse_unit_list('\n\n') == []


def test_unit_status_from_microseconds():
    entered = datetime.now(UTC) - timedelta(seconds=5)
    output = (
        'ActiveState=active\n'
        'SubState=running\n'
        'MainPID=1234\n'
        f'ActiveEnterTimestamp={_usec(entered)}\n'
    )

    status = parse_unit_status('nginx.service', output)

    assert status.active_state == 'active'
    assert status.sub_state == 'running'
    assert status.main_pid == 1234
    assert 4 <= status.uptime_seconds <= 6


def test_unit_status_from_systemd_text_timestamp():
    output = (
        'ActiveState=active\n'
        'SubState=running\n'
        'MainPID=0\n'
        'ActiveEnterTimestamp=Wed 2024-01-10 10:00:00 UTC\n'
    )

    status = parse_unit_status('nginx.service', output)

    assert status.main_pid is None
    assert status.active_enter_time == datetime(2024, 1, 10, 10, tzinfo=UTC)


def test_unit_status_unparseable_timestamp_is_absent():
    output = (
        'ActiveState=inactive\n'
        'SubState=dead\n'
        'MainPID=garbage\n'
        'ActiveEnterTimestamp=sometime yesterday\n'
    )

    status = parse_unit_status('cron.service', output)

    assert status.main_pid is None
    assert status.active_enter_time is None
    assert status.uptime_seconds == 0


def test_unit_status_future_timestamp_has_zero_uptime():
    entered = datetime.now(UTC) + timedelta(hours=1)
    output = (
        'ActiveState=active\nSubState=running\n'
        f'ActiveEnterTimestamp={_usec(entered)}\n'
    )

    assert parse_unit_status('a.service', output).uptime_seconds == 0


@pytest.mark.parametrize('output', [
    'SubState=running\nMainPID=1\n',
    'ActiveState=active\nMainPID=1\n',
    '',
])
def test_unit_status_missing_required_property(output):
    with pytest.raises(OutputParseError):
        parse_unit_status('a.service', output)


def test_unit_status_uptime_is_serialized():
    output = 'ActiveState=active\nSubState=running\n'
    dumped = parse_unit_status('a.service', output).model_dump()

    assert dumped['uptime_seconds'] == 0


def test_log_records():
    lines = [
        {
            'MESSAGE': 'Started nginx',
            'PRIORITY': '6',
            '__REALTIME_TIMESTAMP': '1768482000000000',
        },
        {
            'MESSAGE': [104, 105, 255],
            'PRIORITY': '3',
            '__REALTIME_TIMESTAMP': '1768482001000000',
        },
        {'PRIORITY': '42'},
    ]
    output = '\n'.join(json.dumps(line) for line in lines) + '\n'

    records = parse_log_records(output)

    assert len(records) == 3
    assert records[0].message == 'Started nginx'
    assert records[0].timestamp == datetime(2026, 1, 15, 13, tzinfo=UTC)
    assert records[1].message == 'hi\ufffd'
    assert records[1].priority == 3
    assert records[2].message == ''
    assert records[2].priority == 6
    assert records[2].timestamp.tzinfo is not None


def test_log_records_invalid_line_fails_whole_call():
    output = '{"MESSAGE": "ok"}\nnot json\n'

    with pytest.raises(OutputParseError, match='journalctl'):
        parse_log_records(output)


def test_log_records_non_object_line_fails():
    with pytest.raises(OutputParseError):
        parse_log_records('[1, 2, 3]\n')


def test_timer_list_rows():
    timers = parse_timer_list(TIMER_LIST)

    assert [timer.name for timer in timers] == [
        'backup.timer',
        'oneshot.timer',
    ]
    assert [timer.service for timer in timers] == [
        'backup.service',
        'oneshot.service',
    ]
    assert timers[0].next_run == 'Thu 2026-01-15 14:00:00 CET'
    assert timers[0].last_trigger == 'Thu 2026-01-15 13:00:00 CET'
    assert timers[1].next_run is None
    assert timers[1].last_trigger == 'Wed 2026-01-14 09:00:00 CET'
    assert all(timer.enabled for timer in timers)


def test_timer_list_empty():
    assert parse_timer_list('0 timers listed.\n') == []


def test_timer_properties():
    timer = parse_timer_properties('backup.timer', TIMER_SHOW)

    assert timer.name == 'backup.timer'
    assert timer.service == 'backup.service'
    assert timer.enabled
    assert timer.schedule == 'Mon..Fri *-*-* 08..21:00:00'
    assert timer.schedule_human == 'Mon-Fri, 8 AM - 9 PM'
    assert timer.next_run == '2026-01-15T13:00:00+00:00'
    assert timer.last_trigger is None


def test_timer_properties_disabled_without_calendar():
    output = (
        'Id=boot.timer\n'
        'LoadState=loaded\n'
        'UnitFileState=disabled\n'
        'ActiveState=active\n'
        'NextElapseUSecRealtime=\n'
        'LastTriggerUSec=Wed 2026-01-14 09:00:00 CET\n'
        'TimersCalendar=\n'
    )

    timer = parse_timer_properties('boot.timer', output)

    assert not timer.enabled
    assert timer.schedule == ''
    assert timer.schedule_human == 'Schedule not available'
    assert timer.next_run is None
    assert timer.last_trigger == 'Wed 2026-01-14 09:00:00 CET'


def test_timer_properties_not_found():
    output = 'Id=ghost.timer\nLoadState=not-found\nActiveState=inactive\n'

    with pytest.raises(UnitNotFoundError):
        parse_timer_properties('ghost.timer', output)


def test_timer_properties_multiple_calendars():
    output = (
        'Id=multi.timer\nLoadState=loaded\n'
        'TimersCalendar={ OnCalendar=daily ; next_elapse=n/a }\n'
        'TimersCalendar={ OnCalendar=Sat 10:00 ; next_elapse=n/a }\n'
    )

    timer = parse_timer_properties('multi.timer', output)

    assert timer.schedule == 'daily, Sat 10:00'
    assert timer.schedule_human == 'Daily at midnight, Sat 10:00'


def test_extract_on_calendar():
    assert extract_on_calendar(
        '{ OnCalendar=*-*-* 02:00:00 ; next_elapse=Fri 2026-01-16 }'
    ) == '*-*-* 02:00:00'
    assert extract_on_calendar('{ OnCalendar=hourly }') == 'hourly'
    assert extract_on_calendar('{ OnUnitActiveSec=5min }') is None


def test_parse_properties_keeps_first_and_all_values():
    properties = parse_properties('A=1\nB=x=y\nA=2\nnoise\n')

    assert properties['A'] == '1'
    assert properties['B'] == 'x=y'
    assert properties.get_all('A') == ['1', '2']
    assert properties.get_all('C') == []


def test_timer_with_several_calendar_entries():
    output = (
        'Id=report.timer\n'
        'LoadState=loaded\n'
        'UnitFileState=enabled\n'
        'ActiveState=active\n'
        'TimersCalendar={ OnCalendar=daily ; next_elapse=n/a }\n'
        'TimersCalendar={ OnCalendar=Mon-Fri 08-21:00 ; next_elapse=n/a }\n'
        'TimersCalendar={ OnCalendar=*:0/15 ; next_elapse=n/a }\n'
    )

    timer = parse_timer_properties('report.timer', output)

    assert timer.schedule == 'daily, Mon-Fri 08-21:00, *:0/15'
    assert timer.schedule_human == (
        'Daily at midnight, Mon-Fri, 8 AM - 9 PM, *:0/15'
    )
