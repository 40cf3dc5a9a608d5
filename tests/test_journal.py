import json
import logging
from datetime import UTC, datetime

import pytest

from unitwatch.control.journal import (
    ExecutionHistoryAggregator,
    JournalClient,
    classify_trigger,
    parse_journal_entries,
)
from unitwatch.control.types import ExecutionStatus, TriggerType
from unitwatch.errors import (
    CommandFailedError,
    InvalidIdentifierError,
    UnitNotFoundError,
)

BASE_USEC = 1768482000000000
HISTORY_ARGS = [
    '-u', 'backup.service',
    '--since', '7 days ago',
    '-o', 'json',
    '--no-pager',
]


def _line(invocation_id, offset_seconds, message, **extra):
    entry = {
        'INVOCATION_ID': invocation_id,
        '__REALTIME_TIMESTAMP': str(BASE_USEC + offset_seconds * 1_000_000),
        'MESSAGE': message,
        **extra,
    }
    return json.dumps(entry)


def _journal(*lines):
    return '\n'.join(lines) + '\n'


def test_finished_run_has_duration_and_success():
    entries = parse_journal_entries(_journal(
        _line('aaa', 0, 'Starting backup via timer'),
        _line('aaa', 45, 'Deactivated successfully', EXIT_STATUS='0'),
    ))

    records = ExecutionHistoryAggregator().aggregate(entries, limit=10)

    assert len(records) == 1
    record = records[0]
    assert record.invocation_id == 'aaa'
    assert record.status == ExecutionStatus.SUCCESS
    assert record.duration_seconds == 45
    assert record.exit_code == 0
    assert record.start_time == datetime(2026, 1, 15, 13, tzinfo=UTC)
    assert record.end_time == datetime(2026, 1, 15, 13, 0, 45, tzinfo=UTC)
    assert record.trigger == TriggerType.SCHEDULED


def test_run_without_end_marker_is_running():
    entries = parse_journal_entries(_journal(
        _line('bbb', 0, 'Starting backup'),
    ))

    record = ExecutionHistoryAggregator().aggregate(entries, limit=10)[0]

    assert record.status == ExecutionStatus.RUNNING
    assert record.duration_seconds is None
    assert record.end_time is None
    assert record.exit_code is None


def test_non_zero_exit_status_is_failure():
    entries = parse_journal_entries(_journal(
        _line('ccc', 0, 'Started by systemctl start'),
        _line('ccc', 3, 'Main process exited', EXIT_STATUS='2'),
    ))

    record = ExecutionHistoryAggregator().aggregate(entries, limit=10)[0]

    assert record.status == ExecutionStatus.FAILED
    assert record.exit_code == 2
    assert record.duration_seconds == 3
    assert record.trigger == TriggerType.MANUAL


def test_unparseable_exit_status_counts_as_success():
    entries = parse_journal_entries(_journal(
        _line('ddd', 0, 'start'),
        _line('ddd', 1, 'end', EXIT_STATUS='TERM'),
    ))

    record = ExecutionHistoryAggregator().aggregate(entries, limit=10)[0]

    assert record.status == ExecutionStatus.SUCCESS
    assert record.exit_code is None


def test_same_timestamp_end_has_no_duration():
    entries = parse_journal_entries(_journal(
        _line('eee', 0, 'start'),
        _line('eee', 0, 'end', EXIT_STATUS='0'),
    ))

    record = ExecutionHistoryAggregator().aggregate(entries, limit=10)[0]

    assert record.status == ExecutionStatus.SUCCESS
    assert record.duration_seconds is None


def test_groups_sorted_newest_first_and_truncated():
    entries = parse_journal_entries(_journal(
        _line('old', 0, 'start'),
        _line('new', 200, 'start'),
        _line('old', 10, 'end', EXIT_STATUS='0'),
        _line('mid', 100, 'start'),
        _line('new', 205, 'end', EXIT_STATUS='1'),
    ))

    records = ExecutionHistoryAggregator().aggregate(entries, limit=2)

    assert [record.invocation_id for record in records] == ['new', 'mid']


def test_malformed_lines_are_skipped(caplog):
    output = _journal(
        'this is not json',
        _line('fff', 0, 'start'),
        '[1, 2]',
        json.dumps({'MESSAGE': 'no invocation id'}),
        json.dumps({'INVOCATION_ID': 'ggg', '__REALTIME_TIMESTAMP': 'x'}),
        _line('fff', 5, 'end', EXIT_STATUS='0'),
    )

    with caplog.at_level(logging.WARNING):
        entries = parse_journal_entries(output)

    assert [entry.invocation_id for entry in entries] == ['fff', 'fff']
    assert 'Skipping malformed journal line 1' in caplog.text


@pytest.mark.parametrize('messages, trigger', [
    (['Triggered by timer backup.timer'], TriggerType.SCHEDULED),
    (['Scheduled run'], TriggerType.SCHEDULED),
    (['Manual run requested'], TriggerType.MANUAL),
    (['Invoked via systemctl start'], TriggerType.MANUAL),
    (['nothing to see'], TriggerType.SCHEDULED),
    (['manual override', 'then timer'], TriggerType.MANUAL),
    ([], TriggerType.SCHEDULED),
])
def test_classify_trigger(messages, trigger):
    assert classify_trigger(messages) == trigger


@pytest.mark.asyncio
async def test_client_history(executor):
    executor.with_stdout('journalctl', HISTORY_ARGS, _journal(
        _line('aaa', 0, 'start'),
        _line('aaa', 45, 'done', EXIT_STATUS='0'),
    ))

    records = await JournalClient(executor).get_execution_history(
        'backup.service',
        limit=5,
    )

    assert len(records) == 1
    assert records[0].duration_seconds == 45
    assert executor.calls == [
        'journalctl -u backup.service --since 7 days ago -o json --no-pager',
    ]


@pytest.mark.asyncio
async def test_client_detail(executor):
    args = [
        '-u', 'backup.service',
        'INVOCATION_ID=aaa',
        '-o', 'json',
        '--no-pager',
    ]
    executor.with_stdout('journalctl', args, _journal(
        _line('aaa', 0, 'start'),
        _line('aaa', 2, 'copying'),
        _line('aaa', 4, 'done', EXIT_STATUS='0'),
    ))

    detail = await JournalClient(executor).get_execution_detail(
        'backup.service',
        'aaa',
    )

    assert detail.output == ['start', 'copying', 'done']
    assert detail.duration_seconds == 4


@pytest.mark.asyncio
async def test_client_detail_unknown_invocation(executor):
    args = [
        '-u', 'backup.service',
        'INVOCATION_ID=zzz',
        '-o', 'json',
        '--no-pager',
    ]
    executor.with_stdout('journalctl', args, '')

    with pytest.raises(UnitNotFoundError):
        await JournalClient(executor).get_execution_detail(
            'backup.service',
            'zzz',
        )


@pytest.mark.asyncio
async def test_client_rejects_bad_invocation_id(executor):
    with pytest.raises(InvalidIdentifierError):
        await JournalClient(executor).get_execution_detail(
            'backup.service',
            'a;b',
        )

    assert executor.calls == []


@pytest.mark.asyncio
async def test_client_maps_failures(executor):
    executor.with_error(
        'journalctl',
        HISTORY_ARGS,
        1,
        'Failed to add filter: unit does not exist',
    )

    with pytest.raises(UnitNotFoundError):
        await JournalClient(executor).get_execution_history(
            'backup.service',
            limit=5,
        )


@pytest.mark.asyncio
async def test_client_other_failure_is_command_failed(executor):
    executor.with_error('journalctl', HISTORY_ARGS, 1, 'Access denied')

    with pytest.raises(CommandFailedError) as exc_info:
        await JournalClient(executor).get_execution_history(
            'backup.service',
            limit=5,
        )

    assert exc_info.value.exit_code == 1
    assert exc_info.value.stderr == 'Access denied'
