from unitwatch.tui.screens.watch_list import WatchListScreen

__all__ = [
    'WatchListScreen',
]
