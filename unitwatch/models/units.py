from datetime import UTC, datetime

from pydantic import Field, computed_field, field_validator

from unitwatch.control.types import UnitAction
from unitwatch.utils import BaseModel


class CommandOutcome(BaseModel):
    """Result of one external process invocation.

    Args:
        exit_code: Process exit code (-1 when killed by a signal)
        stdout: Captured standard output
        stderr: Captured standard error
    """
    model_config = {'frozen': True}

    exit_code: int = Field(...)
    stdout: str = Field('')
    stderr: str = Field('')

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class UnitSummary(BaseModel):
    """One row of ``systemctl list-units``.

    Args:
        name: Unit name
        description: Unit description
        load_state: Load state
        active_state: Active state
        sub_state: Sub state
    """
    model_config = {'frozen': True}

    name: str = Field(..., min_length=1)
    description: str = Field('')
    load_state: str = Field(...)
    active_state: str = Field(...)
    sub_state: str = Field(...)


class UnitStatus(BaseModel):
    """Detailed status of a single unit.

    Args:
        name: Unit name
        active_state: Active state
        sub_state: Sub state
        main_pid: Main process id, if the unit has one
        active_enter_time: When the unit last entered the active state
    """
    model_config = {'frozen': True}

    name: str = Field(..., min_length=1)
    active_state: str = Field(...)
    sub_state: str = Field(...)
    main_pid: int | None = Field(None, gt=0)
    active_enter_time: datetime | None = Field(None)

    @field_validator('active_enter_time')
    @classmethod
    def ensure_timezone(cls, v: datetime | None) -> datetime | None:
        # Naive values are local wall-clock time.
        if v is not None and v.tzinfo is None:
            return v.astimezone()
        return v

    @computed_field
    @property
    def uptime_seconds(self) -> int:
        """Seconds since the unit became active, floored at zero.
        """
        if self.active_enter_time is None:
            return 0

        elapsed = datetime.now(UTC) - self.active_enter_time
        return max(0, int(elapsed.total_seconds()))


class LogRecord(BaseModel):
    """One normalized journal line.

    Args:
        timestamp: When the line was logged
        message: Log message
        priority: Syslog priority, 0 (emerg) to 7 (debug)
    """
    model_config = {'frozen': True}

    timestamp: datetime = Field(...)
    message: str = Field('')
    priority: int = Field(6, ge=0, le=7)


class UnitOperationResult(BaseModel):
    """Result of a successful unit action.

    Args:
        unit: Unit the action was applied to
        action: Action performed
        message: Human-readable outcome
    """
    model_config = {'frozen': True}

    unit: str = Field(..., min_length=1)
    action: UnitAction = Field(...)
    message: str = Field('', max_length=1000)
