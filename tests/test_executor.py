import pytest

from unitwatch.control.executor import (
    ScriptedCommandExecutor,
    SystemCommandExecutor,
    command_key,
)
from unitwatch.errors import (
    CommandIoError,
    CommandTimeoutError,
    ErrorKind,
    ScriptedResponseMissingError,
)
from unitwatch.models.units import CommandOutcome


def test_command_key_joins_program_and_args():
    assert command_key('systemctl', ['show', 'a.service']) == \
        'systemctl show a.service'


@pytest.mark.asyncio
async def test_scripted_executor_returns_registered_outcome():
    executor = ScriptedCommandExecutor().with_stdout(
        'systemctl',
        ['is-active', 'nginx.service'],
        'active\n',
    )

    outcome = await executor.execute(
        'systemctl',
        ['is-active', 'nginx.service'],
    )

    assert outcome == CommandOutcome(exit_code=0, stdout='active\n')
    assert outcome.succeeded
    assert executor.calls == ['systemctl is-active nginx.service']


@pytest.mark.asyncio
async def test_scripted_executor_error_outcome():
    executor = ScriptedCommandExecutor().with_error(
        'systemctl',
        ['start', 'x.service'],
        5,
        'Unit x.service not found.',
    )

    outcome = await executor.execute('systemctl', ['start', 'x.service'])

    assert outcome.exit_code == 5
    assert not outcome.succeeded
    assert outcome.stderr == 'Unit x.service not found.'


@pytest.mark.asyncio
async def test_scripted_executor_unknown_command():
    executor = ScriptedCommandExecutor()

    with pytest.raises(ScriptedResponseMissingError) as exc_info:
        await executor.execute('systemctl', ['list-units'])

    assert exc_info.value.kind == ErrorKind.OTHER
    assert executor.calls == ['systemctl list-units']


@pytest.mark.asyncio
async def test_scripted_executor_builders_chain_and_override():
    executor = (
        ScriptedCommandExecutor()
        .with_stdout('echo', ['a'], 'first')
        .with_stdout('echo', ['a'], 'second')
        .with_stdout('echo', ['b'], 'other')
    )

    assert (await executor.execute('echo', ['a'])).stdout == 'second'
    assert (await executor.execute('echo', ['b'])).stdout == 'other'


@pytest.mark.asyncio
async def test_system_executor_captures_output():
    executor = SystemCommandExecutor(timeout=5)

    outcome = await executor.execute('echo', ['hello', 'a;b'])

    assert outcome.exit_code == 0
    # Arguments are passed verbatim, never through a shell.
    assert outcome.stdout == 'hello a;b\n'


@pytest.mark.asyncio
async def test_system_executor_reports_exit_code_and_stderr():
    executor = SystemCommandExecutor(timeout=5)

    outcome = await executor.execute(
        'sh',
        ['-c', 'echo oops >&2; exit 3'],
    )

    assert outcome.exit_code == 3
    assert outcome.stderr == 'oops\n'


@pytest.mark.asyncio
async def test_system_executor_decodes_invalid_utf8():
    executor = SystemCommandExecutor(timeout=5)

    outcome = await executor.execute('printf', ['\\377ok'])

    assert outcome.stdout == '\ufffdok'


@pytest.mark.asyncio
async def test_system_executor_missing_program():
    executor = SystemCommandExecutor(timeout=5)

    with pytest.raises(CommandIoError) as exc_info:
        await executor.execute('unitwatch-no-such-program', [])

    assert exc_info.value.kind == ErrorKind.IO_ERROR


@pytest.mark.asyncio
async def test_system_executor_timeout():
    executor = SystemCommandExecutor(timeout=0.2)

    with pytest.raises(CommandTimeoutError, match='timed out'):
        await executor.execute('sleep', ['5'])
