from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Label

from unitwatch.cli.formatting import format_relative_time
from unitwatch.errors import UnitControlError
from unitwatch.services.watch_service import WatchService
from unitwatch.time.schedule import humanize_duration


class WatchListScreen(Screen):
    """A screen showing watched services and watched timers.
    """

    BINDINGS = [
        Binding('r', 'refresh', 'Refresh'),
        Binding('q', 'app.quit', 'Quit'),
    ]

    def __init__(self, watch_service: WatchService) -> None:
        """Initialise the screen.
        """
        super().__init__()
        self._watch_service = watch_service
        self._services_table = DataTable(id='services')
        self._timers_table = DataTable(id='timers')

    def compose(self) -> ComposeResult:
        """Compose the screen.
        """
        yield Label('Services')
        yield self._services_table
        yield Label('Timers')
        yield self._timers_table
        yield Footer()

    async def on_mount(self) -> None:
        """Mount the screen.
        """
        self._services_table.add_columns('Name', 'Status', 'State', 'Uptime')
        self._timers_table.add_columns(
            'Name',
            'Enabled',
            'Schedule',
            'Next Run',
            'Last Run',
            'Last Result',
        )
        await self.action_refresh()

    async def action_refresh(self) -> None:
        """Reload both tables.
        """
        try:
            services = await self._watch_service.summarize_services()
            timers = await self._watch_service.summarize_timers()
        except UnitControlError as e:
            self.notify(str(e), title='Refresh failed', severity='error')
            return

        self._services_table.clear()
        for service in services:
            uptime = '-'
            if service.status == 'running':
                uptime = humanize_duration(service.uptime_seconds)

            self._services_table.add_row(
                service.name,
                service.status,
                f'{service.active_state}/{service.sub_state}',
                uptime,
            )

        self._timers_table.clear()
        for timer in timers:
            self._timers_table.add_row(
                timer.name,
                'yes' if timer.enabled else 'no',
                timer.schedule_human,
                format_relative_time(timer.next_run),
                format_relative_time(timer.last_run),
                timer.last_result or '-',
            )
