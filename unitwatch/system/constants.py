from enum import StrEnum


class UnitwatchPaths(StrEnum):
    """Filesystem locations used by unitwatch.
    """

    # Per-user settings (relative to home)
    USER_CONFIG_DIR = '.config/unitwatch'
    SETTINGS_FILE_NAME = 'settings.json'

    # Execution logs written by timer wrapper scripts
    TIMER_LOG_DIR = '/var/log/timers'
    SERVICE_LOG_DIR = '/var/log'


class SettingsKeys(StrEnum):
    """Keys of the watch-list in the key-value store.
    """

    WATCHED_SERVICES = 'watched_services'
    WATCHED_TIMERS = 'watched_timers'
