from pydantic import Field

from unitwatch.control.types import ExecutionStatus
from unitwatch.utils import BaseModel


class WatchSettings(BaseModel):
    """Units the user wants summarized.

    Args:
        watched_services: Service unit names
        watched_timers: Timer unit names
    """
    model_config = {'frozen': True}

    watched_services: list[str] = Field(default_factory=list)
    watched_timers: list[str] = Field(default_factory=list)


class WatchedServiceStatus(BaseModel):
    """Status row for a watched service.

    Args:
        name: Service unit name
        status: Simplified status (running, failed, inactive or unknown)
        active_state: Active state reported by systemctl
        sub_state: Sub state reported by systemctl
        uptime_seconds: Seconds since the service became active
    """
    model_config = {'frozen': True}

    name: str = Field(..., min_length=1)
    status: str = Field(...)
    active_state: str = Field(...)
    sub_state: str = Field(...)
    uptime_seconds: int = Field(0, ge=0)


class WatchedTimerStatus(BaseModel):
    """Status row for a watched timer.

    Args:
        name: Timer unit name
        service: Service unit the timer activates
        enabled: Whether the timer is enabled and active
        schedule: Raw schedule
        schedule_human: Human-readable schedule
        next_run: Next scheduled elapse
        last_run: Last trigger time
        last_result: Status of the most recent execution
    """
    model_config = {'frozen': True}

    name: str = Field(..., min_length=1)
    service: str = Field(...)
    enabled: bool = Field(False)
    schedule: str = Field('')
    schedule_human: str = Field('')
    next_run: str | None = Field(None)
    last_run: str | None = Field(None)
    last_result: ExecutionStatus | None = Field(None)
