from datetime import datetime

from pydantic import Field, model_validator

from unitwatch.control.types import ExecutionStatus, TriggerType
from unitwatch.utils import BaseModel


class ExecutionRecord(BaseModel):
    """One invocation of a timer's service.

    Args:
        invocation_id: Correlation id shared by all lines of the run
        start_time: Timestamp of the first line of the run
        end_time: Timestamp of the end marker, absent while running
        duration_seconds: Whole seconds between start and end
        status: Lifecycle status inferred from the end marker
        exit_code: Exit status reported by the end marker
        trigger: Whether the run was scheduled or started manually
    """
    model_config = {'frozen': True}

    invocation_id: str = Field(..., min_length=1)
    start_time: datetime = Field(...)
    end_time: datetime | None = Field(None)
    duration_seconds: int | None = Field(None, ge=0)
    status: ExecutionStatus = Field(...)
    exit_code: int | None = Field(None)
    trigger: TriggerType = Field(TriggerType.SCHEDULED)

    @model_validator(mode='after')
    def validate_running_has_no_end(self) -> 'ExecutionRecord':
        if self.status == ExecutionStatus.RUNNING and \
                self.duration_seconds is not None:
            raise ValueError('A running execution cannot have a duration')
        return self


class ExecutionDetail(ExecutionRecord):
    """An invocation together with its full output.

    Args:
        output: Output lines of the run
    """
    model_config = {'frozen': True}

    output: list[str] = Field(default_factory=list)


def status_from_end_marker(
    has_end_marker: bool,
    exit_code: int | None,
) -> ExecutionStatus:
    """Infer the status of an invocation.

    Without an end marker the run is still going. With one, a missing or
    zero exit code is a success.
    """
    if not has_end_marker:
        return ExecutionStatus.RUNNING
    if exit_code is None or exit_code == 0:
        return ExecutionStatus.SUCCESS
    return ExecutionStatus.FAILED
