import click

from unitwatch.cli.context import CliState, pass_state, run_command
from unitwatch.cli.formatting import (
    echo_json,
    format_relative_time,
    format_table,
)
from unitwatch.models.timers import AvailableTimer
from unitwatch.models.watch import (
    WatchedServiceStatus,
    WatchedTimerStatus,
    WatchSettings,
)
from unitwatch.time.schedule import humanize_duration


def format_watched_services(rows: list[WatchedServiceStatus]) -> str:
    return format_table(
        ('SERVICE', 'STATUS', 'STATE', 'UPTIME'),
        [
            (
                row.name,
                row.status,
                f'{row.active_state}/{row.sub_state}',
                humanize_duration(row.uptime_seconds)
                if row.status == 'running' else '-',
            )
            for row in rows
        ],
        'No watched services.',
    )


def format_watched_timers(rows: list[WatchedTimerStatus]) -> str:
    return format_table(
        ('TIMER', 'ENABLED', 'NEXT', 'LAST', 'RESULT', 'SCHEDULE'),
        [
            (
                row.name,
                'yes' if row.enabled else 'no',
                format_relative_time(row.next_run),
                format_relative_time(row.last_run),
                row.last_result or '-',
                row.schedule_human,
            )
            for row in rows
        ],
        'No watched timers.',
    )


def format_settings(settings: WatchSettings) -> str:
    services = ', '.join(settings.watched_services) or '(none)'
    timers = ', '.join(settings.watched_timers) or '(none)'
    return f'Services: {services}\nTimers:   {timers}'


def format_available_timers(timers: list[AvailableTimer]) -> str:
    return format_table(
        ('TIMER', 'DESCRIPTION'),
        [(timer.name, timer.description) for timer in timers],
        'No timers found.',
    )


@click.group('watch')
def watch() -> None:
    """Manage and summarize the watch-list.
    """


@watch.command('show')
@pass_state
def show_settings(state: CliState) -> None:
    """Show the watched services and timers.
    """
    async def _show_settings() -> None:
        settings = await state.watch_service().get_settings()
        if state.json_output:
            echo_json(settings)
        else:
            click.echo(format_settings(settings))

    run_command(_show_settings())


@watch.command('services')
@pass_state
def watched_services(state: CliState) -> None:
    """Status of every watched service.
    """
    async def _watched_services() -> None:
        rows = await state.watch_service().summarize_services()
        if state.json_output:
            echo_json(rows)
        else:
            click.echo(format_watched_services(rows))

    run_command(_watched_services())


@watch.command('timers')
@pass_state
def watched_timers(state: CliState) -> None:
    """Status of every watched timer.
    """
    async def _watched_timers() -> None:
        rows = await state.watch_service().summarize_timers()
        if state.json_output:
            echo_json(rows)
        else:
            click.echo(format_watched_timers(rows))

    run_command(_watched_timers())


@watch.command('available')
@pass_state
def available_timers(state: CliState) -> None:
    """List timers that can be watched.
    """
    async def _available_timers() -> None:
        timers = await state.watch_service().available_timers()
        if state.json_output:
            echo_json(timers)
        else:
            click.echo(format_available_timers(timers))

    run_command(_available_timers())


@watch.command('set-services')
@click.argument('names', nargs=-1)
@pass_state
def set_services(state: CliState, names: tuple[str, ...]) -> None:
    """Replace the watched services. No names clears the list.
    """
    async def _set_services() -> None:
        service = state.watch_service()
        current = await service.get_settings()
        saved = await service.save_settings(
            current.model_copy(update={'watched_services': list(names)}),
        )
        if state.json_output:
            echo_json(saved)
        else:
            click.echo(format_settings(saved))

    run_command(_set_services())


@watch.command('set-timers')
@click.argument('names', nargs=-1)
@pass_state
def set_timers(state: CliState, names: tuple[str, ...]) -> None:
    """Replace the watched timers. No names clears the list.
    """
    async def _set_timers() -> None:
        service = state.watch_service()
        current = await service.get_settings()
        saved = await service.save_settings(
            current.model_copy(update={'watched_timers': list(names)}),
        )
        if state.json_output:
            echo_json(saved)
        else:
            click.echo(format_settings(saved))

    run_command(_set_timers())
