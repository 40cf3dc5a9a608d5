import click

from unitwatch.cli.context import CliState, pass_state, run_command
from unitwatch.cli.formatting import (
    echo_json,
    echo_operation_result,
    format_table,
)
from unitwatch.models.units import LogRecord, UnitSummary
from unitwatch.time.schedule import humanize_duration

_PRIORITY_LABELS = (
    'emerg', 'alert', 'crit', 'err', 'warning', 'notice', 'info', 'debug',
)


def format_services_table(services: list[UnitSummary]) -> str:
    """Format services into a simple table.
    """
    rows = [
        (
            service.name,
            service.load_state,
            service.active_state,
            service.sub_state,
            service.description,
        )
        for service in sorted(services, key=lambda s: s.name)
    ]
    return format_table(
        ('SERVICE', 'LOAD', 'ACTIVE', 'SUB', 'DESCRIPTION'),
        rows,
        'No services found.',
    )


def format_log_lines(records: list[LogRecord]) -> str:
    if not records:
        return 'No log entries.'

    return '\n'.join(
        f'{record.timestamp.astimezone():%Y-%m-%d %H:%M:%S} '
        f'[{_PRIORITY_LABELS[record.priority]}] {record.message}'
        for record in records
    )


@click.group('services')
def services() -> None:
    """Inspect and control systemd services.
    """


@services.command('list')
@pass_state
def list_services(state: CliState) -> None:
    """List all service units.
    """
    async def _list_services() -> None:
        units = await state.service_manager().list_services()
        if state.json_output:
            echo_json(units)
        else:
            click.echo(format_services_table(units))

    run_command(_list_services())


@services.command('status')
@click.argument('name')
@pass_state
def service_status(state: CliState, name: str) -> None:
    """Show the status of one service.
    """
    async def _service_status() -> None:
        status = await state.service_manager().get_service_status(name)
        if state.json_output:
            echo_json(status)
            return

        click.echo(f'{status.name}: {status.active_state} ({status.sub_state})')
        if status.main_pid is not None:
            click.echo(f'Main PID: {status.main_pid}')
        if status.active_enter_time is not None:
            click.echo(f'Uptime: {humanize_duration(status.uptime_seconds)}')

    run_command(_service_status())


@services.command('start')
@click.argument('name')
@pass_state
def start_service(state: CliState, name: str) -> None:
    """Start a service.
    """
    async def _start_service() -> None:
        result = await state.service_manager().start_service(name)
        echo_operation_result(result, state.json_output)

    run_command(_start_service())


@services.command('stop')
@click.argument('name')
@pass_state
def stop_service(state: CliState, name: str) -> None:
    """Stop a service.
    """
    async def _stop_service() -> None:
        result = await state.service_manager().stop_service(name)
        echo_operation_result(result, state.json_output)

    run_command(_stop_service())


@services.command('restart')
@click.argument('name')
@pass_state
def restart_service(state: CliState, name: str) -> None:
    """Restart a service.
    """
    async def _restart_service() -> None:
        result = await state.service_manager().restart_service(name)
        echo_operation_result(result, state.json_output)

    run_command(_restart_service())


@services.command('enable')
@click.argument('name')
@pass_state
def enable_service(state: CliState, name: str) -> None:
    """Enable a service and start it.
    """
    async def _enable_service() -> None:
        result = await state.service_manager().enable_service(name)
        echo_operation_result(result, state.json_output)

    run_command(_enable_service())


@services.command('disable')
@click.argument('name')
@pass_state
def disable_service(state: CliState, name: str) -> None:
    """Stop a service and disable it.
    """
    async def _disable_service() -> None:
        result = await state.service_manager().disable_service(name)
        echo_operation_result(result, state.json_output)

    run_command(_disable_service())


@services.command('logs')
@click.argument('name')
@click.option(
    '-n',
    '--lines',
    type=click.IntRange(min=1),
    default=None,
    help='Number of journal lines to show.',
)
@pass_state
def service_logs(state: CliState, name: str, lines: int | None) -> None:
    """Show recent journal lines of a service.
    """
    async def _service_logs() -> None:
        records = await state.service_manager().get_logs(
            name,
            lines or state.settings.log_lines,
        )
        if state.json_output:
            echo_json(records)
        else:
            click.echo(format_log_lines(records))

    run_command(_service_logs())
