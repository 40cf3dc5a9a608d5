from unitwatch.control.executor import (
    CommandExecutor,
    ScriptedCommandExecutor,
    SystemCommandExecutor,
)
from unitwatch.control.types import (
    ExecutionStatus,
    HistorySource,
    IdentifierKind,
    TriggerType,
    UnitAction,
)
from unitwatch.control.validation import (
    timer_to_service,
    validate_identifier,
    validate_service_name,
    validate_timer_name,
)

__all__ = [
    'CommandExecutor',
    'ExecutionStatus',
    'HistorySource',
    'IdentifierKind',
    'ScriptedCommandExecutor',
    'SystemCommandExecutor',
    'TriggerType',
    'UnitAction',
    'timer_to_service',
    'validate_identifier',
    'validate_service_name',
    'validate_timer_name',
]
