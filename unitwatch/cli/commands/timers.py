import click

from unitwatch.cli.context import CliState, pass_state, run_command
from unitwatch.cli.formatting import (
    echo_json,
    echo_operation_result,
    format_relative_time,
    format_table,
)
from unitwatch.models.executions import ExecutionDetail, ExecutionRecord
from unitwatch.models.timers import TimerDescriptor
from unitwatch.time.schedule import humanize_duration


def format_timers_table(timers: list[TimerDescriptor]) -> str:
    """Format timers into a simple table.
    """
    rows = [
        (
            timer.name,
            format_relative_time(timer.next_run),
            format_relative_time(timer.last_trigger),
            timer.service,
        )
        for timer in sorted(timers, key=lambda t: t.name)
    ]
    return format_table(
        ('TIMER', 'NEXT', 'LAST', 'ACTIVATES'),
        rows,
        'No timers found.',
    )


def format_history_table(records: list[ExecutionRecord]) -> str:
    rows = [
        (
            record.invocation_id,
            format_relative_time(record.start_time),
            record.status,
            '-' if record.exit_code is None else str(record.exit_code),
            (
                '-' if record.duration_seconds is None
                else humanize_duration(record.duration_seconds)
            ),
            record.trigger,
        )
        for record in records
    ]
    return format_table(
        ('INVOCATION', 'STARTED', 'STATUS', 'EXIT', 'DURATION', 'TRIGGER'),
        rows,
        'No executions found.',
    )


def format_execution_detail(detail: ExecutionDetail) -> str:
    lines = [
        f'Invocation: {detail.invocation_id}',
        f'Started:    {detail.start_time.isoformat()}',
        f'Status:     {detail.status}',
    ]
    if detail.end_time is not None:
        lines.append(f'Ended:      {detail.end_time.isoformat()}')
    if detail.exit_code is not None:
        lines.append(f'Exit code:  {detail.exit_code}')
    if detail.duration_seconds is not None:
        lines.append(
            f'Duration:   {humanize_duration(detail.duration_seconds)}'
        )
    lines.append(f'Trigger:    {detail.trigger}')
    lines.append('')
    lines.extend(detail.output)

    return '\n'.join(lines)


@click.group('timers')
def timers() -> None:
    """Inspect and control systemd timers.
    """


@timers.command('list')
@pass_state
def list_timers(state: CliState) -> None:
    """List all systemd timers.
    """
    async def _list_timers() -> None:
        descriptors = await state.timer_manager().list_timers()
        if state.json_output:
            echo_json(descriptors)
        else:
            click.echo(format_timers_table(descriptors))

    run_command(_list_timers())


@timers.command('show')
@click.argument('name')
@pass_state
def show_timer(state: CliState, name: str) -> None:
    """Show one timer with its schedule.
    """
    async def _show_timer() -> None:
        timer = await state.timer_manager().get_timer(name)
        if state.json_output:
            echo_json(timer)
            return

        click.echo(f'{timer.name} -> {timer.service}')
        click.echo(f'Enabled:  {"yes" if timer.enabled else "no"}')
        click.echo(f'Schedule: {timer.schedule_human}')
        click.echo(f'Next:     {format_relative_time(timer.next_run)}')
        click.echo(f'Last:     {format_relative_time(timer.last_trigger)}')

    run_command(_show_timer())


@timers.command('run')
@click.argument('name')
@pass_state
def run_timer(state: CliState, name: str) -> None:
    """Start the timer's service now.
    """
    async def _run_timer() -> None:
        result = await state.timer_manager().run_timer(name)
        echo_operation_result(result, state.json_output)

    run_command(_run_timer())


@timers.command('enable')
@click.argument('name')
@pass_state
def enable_timer(state: CliState, name: str) -> None:
    """Enable a timer and start it.
    """
    async def _enable_timer() -> None:
        result = await state.timer_manager().enable_timer(name)
        echo_operation_result(result, state.json_output)

    run_command(_enable_timer())


@timers.command('disable')
@click.argument('name')
@pass_state
def disable_timer(state: CliState, name: str) -> None:
    """Stop a timer and disable it.
    """
    async def _disable_timer() -> None:
        result = await state.timer_manager().disable_timer(name)
        echo_operation_result(result, state.json_output)

    run_command(_disable_timer())


@timers.command('history')
@click.argument('name')
@click.option(
    '--limit',
    type=click.IntRange(min=1),
    default=None,
    help='Maximum number of executions to show.',
)
@pass_state
def timer_history(state: CliState, name: str, limit: int | None) -> None:
    """List recent executions of a timer's service.
    """
    async def _timer_history() -> None:
        records = await state.timer_manager().get_execution_history(
            name,
            limit or state.settings.history_limit,
        )
        if state.json_output:
            echo_json(records)
        else:
            click.echo(format_history_table(records))

    run_command(_timer_history())


@timers.command('execution')
@click.argument('name')
@click.argument('invocation_id')
@pass_state
def timer_execution(state: CliState, name: str, invocation_id: str) -> None:
    """Show one execution of a timer's service with its output.
    """
    async def _timer_execution() -> None:
        detail = await state.timer_manager().get_execution_detail(
            name,
            invocation_id,
        )
        if state.json_output:
            echo_json(detail)
        else:
            click.echo(format_execution_detail(detail))

    run_command(_timer_execution())
