import click

from unitwatch.cli.context import CliState, pass_state
from unitwatch.tui.app import UnitwatchApp


@click.command('tui')
@pass_state
def tui(state: CliState) -> None:
    """Open the terminal UI for the watch-list.
    """
    UnitwatchApp(state.watch_service()).run()
