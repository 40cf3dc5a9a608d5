import json

import pytest
from click.testing import CliRunner

from unitwatch.cli import cli
from unitwatch.cli.context import CliState
from unitwatch.control.types import ControlPlaneConstants
from unitwatch.system.constants import SettingsKeys


@pytest.fixture
def state(settings, executor, store):
    return CliState(settings, executor, store)


@pytest.fixture
def invoke(state):
    runner = CliRunner()

    def run(*args):
        return runner.invoke(
            cli,
            ['--no-journal', *args],
            obj=state,
            catch_exceptions=False,
        )

    return run


def test_services_list(executor, invoke):
    executor.with_stdout(
        'systemctl',
        [
            'list-units',
            '--type=service',
            '--all',
            '--no-pager',
            '--plain',
            '--no-legend',
        ],
        'nginx.service loaded active running Web server\n',
    )

    result = invoke('services', 'list')

    assert result.exit_code == 0
    assert 'SERVICE' in result.output
    assert 'nginx.service' in result.output
    assert 'Web server' in result.output


def test_service_status_json(executor, invoke):
    executor.with_stdout(
        'systemctl',
        [
            'show',
            'nginx.service',
            f'--property={ControlPlaneConstants.SERVICE_PROPERTIES}',
        ],
        'ActiveState=inactive\nSubState=dead\nMainPID=0\n',
    )

    result = invoke('--json', 'services', 'status', 'nginx.service')

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data['name'] == 'nginx.service'
    assert data['active_state'] == 'inactive'
    assert data['uptime_seconds'] == 0


def test_invalid_name_exits_with_error(executor, invoke):
    result = invoke('services', 'start', 'nginx;reboot')

    assert result.exit_code == 1
    assert 'Error: Invalid identifier' in result.output
    assert executor.calls == []


def test_control_failure_exits_with_error(executor, invoke):
    executor.with_error(
        'systemctl',
        ['restart', 'nginx.service'],
        4,
        'Access denied',
    )

    result = invoke('services', 'restart', 'nginx.service')

    assert result.exit_code == 1
    assert 'Error: Permission denied: Access denied' in result.output


def test_service_logs(executor, invoke):
    executor.with_stdout(
        'journalctl',
        ['-u', 'nginx.service', '-n', '5', '--no-pager', '--output=json'],
        json.dumps({
            '__REALTIME_TIMESTAMP': '1768482000000000',
            'MESSAGE': 'listening on :80',
            'PRIORITY': '4',
        }),
    )

    result = invoke('services', 'logs', 'nginx.service', '-n', '5')

    assert result.exit_code == 0
    assert '[warning] listening on :80' in result.output


def test_timer_run(executor, invoke):
    executor.with_stdout(
        'systemctl',
        ['start', '--no-block', 'backup.service'],
        '',
    )

    result = invoke('timers', 'run', 'backup.timer')

    assert result.exit_code == 0
    assert result.output.strip() == 'Triggered backup.service'


def test_timer_history(executor, invoke):
    executor.with_stdout(
        'journalctl',
        [
            '-u', 'backup.service',
            '--since', '7 days ago',
            '-o', 'json',
            '--no-pager',
        ],
        '\n'.join([
            json.dumps({
                'INVOCATION_ID': 'abc123',
                '__REALTIME_TIMESTAMP': '1768482000000000',
                'MESSAGE': 'start',
            }),
            json.dumps({
                'INVOCATION_ID': 'abc123',
                '__REALTIME_TIMESTAMP': '1768482090000000',
                'MESSAGE': 'end',
                'EXIT_STATUS': '0',
            }),
        ]),
    )

    result = invoke('timers', 'history', 'backup.timer', '--limit', '1')

    assert result.exit_code == 0
    assert 'abc123' in result.output
    assert 'success' in result.output
    assert '1min 30s' in result.output


def test_watch_set_and_show(invoke, store):
    result = invoke('watch', 'set-services', 'nginx.service', 'cron.service')

    assert result.exit_code == 0
    assert json.loads(store.snapshot()[SettingsKeys.WATCHED_SERVICES]) == [
        'nginx.service',
        'cron.service',
    ]

    result = invoke('--json', 'watch', 'show')

    assert json.loads(result.output) == {
        'watched_services': ['nginx.service', 'cron.service'],
        'watched_timers': [],
    }


def test_watch_set_timers_rejects_service_names(invoke, store):
    result = invoke('watch', 'set-timers', 'bad name.timer')

    assert result.exit_code == 1
    assert store.snapshot() == {}


def test_watch_set_timers_without_names_clears(invoke, store):
    invoke('watch', 'set-timers', 'backup.timer')

    result = invoke('watch', 'set-timers')

    assert result.exit_code == 0
    assert store.snapshot() == {}
    assert 'Timers:   (none)' in result.output
