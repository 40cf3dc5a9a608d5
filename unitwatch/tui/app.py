from textual.app import App

from unitwatch.services.watch_service import WatchService
from unitwatch.tui.screens.watch_list import WatchListScreen


class UnitwatchApp(App[None]):
    """A textual application summarizing watched systemd units.
    """

    TITLE = 'unitwatch'

    def __init__(self, watch_service: WatchService, *args, **kwargs):
        """Initialize the app with the watch-list service.
        """
        super().__init__(*args, **kwargs)
        self._watch_service = watch_service

    async def on_mount(self) -> None:
        """Mount the main screen.
        """
        self.push_screen(WatchListScreen(self._watch_service))
