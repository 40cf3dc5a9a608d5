import click

from unitwatch.cli.commands.services import services
from unitwatch.cli.commands.timers import timers
from unitwatch.cli.commands.tui import tui
from unitwatch.cli.commands.watch import watch
from unitwatch.cli.context import CliState
from unitwatch.config import setup_logger


@click.group()
@click.option(
    '--json',
    'json_output',
    is_flag=True,
    help='Print JSON instead of tables.',
)
@click.option(
    '--journal/--no-journal',
    default=False,
    help='Send logs to the systemd journal instead of stderr.',
)
@click.pass_context
def cli(ctx: click.Context, json_output: bool, journal: bool) -> None:
    """unitwatch - Observe and control systemd services and timers.
    """
    setup_logger(journal=journal)

    state = ctx.ensure_object(CliState)
    state.json_output = json_output


cli.add_command(services)
cli.add_command(timers)
cli.add_command(watch)
cli.add_command(tui)


def run_cli() -> None:
    """Run the CLI interface.
    """
    cli()


__all__ = [
    'cli',
    'run_cli',
]
