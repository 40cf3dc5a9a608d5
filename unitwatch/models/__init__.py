from unitwatch.models.executions import (
    ExecutionDetail,
    ExecutionRecord,
    status_from_end_marker,
)
from unitwatch.models.timers import AvailableTimer, TimerDescriptor
from unitwatch.models.units import (
    CommandOutcome,
    LogRecord,
    UnitOperationResult,
    UnitStatus,
    UnitSummary,
)
from unitwatch.models.watch import (
    WatchedServiceStatus,
    WatchedTimerStatus,
    WatchSettings,
)

__all__ = [
    'AvailableTimer',
    'CommandOutcome',
    'ExecutionDetail',
    'ExecutionRecord',
    'LogRecord',
    'TimerDescriptor',
    'UnitOperationResult',
    'UnitStatus',
    'UnitSummary',
    'WatchSettings',
    'WatchedServiceStatus',
    'WatchedTimerStatus',
    'status_from_end_marker',
]
