from enum import IntEnum, StrEnum
from typing import Final


class UnitAction(StrEnum):
    """Unit operation types.
    """

    START = 'start'
    STOP = 'stop'
    RESTART = 'restart'
    ENABLE = 'enable'
    DISABLE = 'disable'
    RUN = 'run'


class IdentifierKind(StrEnum):
    """Validation rule sets for caller-supplied identifiers.
    """

    GENERIC = 'generic'
    SERVICE = 'service'
    TIMER = 'timer'


class ExecutionStatus(StrEnum):
    """Lifecycle status of one invocation.
    """

    RUNNING = 'running'
    SUCCESS = 'success'
    FAILED = 'failed'


class TriggerType(StrEnum):
    """What started an invocation.
    """

    SCHEDULED = 'scheduled'
    MANUAL = 'manual'


class HistorySource(StrEnum):
    """Where execution history is reconstructed from.
    """

    JOURNAL = 'journal'
    LOG_FILES = 'log_files'


class SystemctlExitCode(IntEnum):
    """Exit codes of systemctl that map to a specific error kind.
    """

    PERMISSION_DENIED = 4
    NOT_FOUND = 5


class UnitSuffix(StrEnum):
    """Unit name suffixes.
    """

    SERVICE = '.service'
    TIMER = '.timer'


class ServicePropertyNames(StrEnum):
    """Properties read by ``systemctl show`` for a service.
    """

    ACTIVE_STATE = 'ActiveState'
    SUB_STATE = 'SubState'
    MAIN_PID = 'MainPID'
    ACTIVE_ENTER_TIMESTAMP = 'ActiveEnterTimestamp'


class TimerPropertyNames(StrEnum):
    """Properties read by ``systemctl show`` for a timer.
    """

    ID = 'Id'
    LOAD_STATE = 'LoadState'
    UNIT_FILE_STATE = 'UnitFileState'
    ACTIVE_STATE = 'ActiveState'
    NEXT_ELAPSE_REALTIME_USEC = 'NextElapseUSecRealtime'
    LAST_TRIGGER_USEC = 'LastTriggerUSec'
    TIMERS_CALENDAR = 'TimersCalendar'


class JournalFields(StrEnum):
    """Field names in ``journalctl --output=json`` records.
    """

    MESSAGE = 'MESSAGE'
    PRIORITY = 'PRIORITY'
    REALTIME_TIMESTAMP = '__REALTIME_TIMESTAMP'
    INVOCATION_ID = 'INVOCATION_ID'
    EXIT_STATUS = 'EXIT_STATUS'
    SYSTEMD_UNIT = '_SYSTEMD_UNIT'


class LogMarkers(StrEnum):
    """Line prefixes written by timer wrapper scripts into log files.
    """

    START = '[START]'
    END = '[END]'


class ControlPlaneConstants:
    """Fixed arguments passed to the control plane.
    """

    SERVICE_PROPERTIES: Final[str] = ','.join(ServicePropertyNames)
    TIMER_PROPERTIES: Final[str] = ','.join(TimerPropertyNames)
    HISTORY_WINDOW: Final[str] = '7 days ago'
    DEFAULT_PRIORITY: Final[int] = 6
    USEC_PER_SECOND: Final[int] = 1_000_000
    LATEST_LOG_NAME: Final[str] = 'latest.log'
    LOG_FILE_SUFFIX: Final[str] = '.log'
    LOG_FILE_TIME_FORMAT: Final[str] = '%Y-%m-%d_%H%M%S'
