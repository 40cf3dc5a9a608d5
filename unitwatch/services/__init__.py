from unitwatch.services.watch_service import WatchService

__all__ = [
    'WatchService',
]
