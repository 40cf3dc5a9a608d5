from pydantic import Field

from unitwatch.utils import BaseModel


class TimerDescriptor(BaseModel):
    """Information about a systemd timer.

    Args:
        name: Timer unit name
        enabled: Whether the timer is enabled and active
        schedule: Raw OnCalendar expressions, comma separated
        schedule_human: Human-readable schedule
        next_run: Next scheduled elapse, as reported by systemctl
        last_trigger: Last trigger time, as reported by systemctl
        service: Service unit the timer activates
    """
    model_config = {'frozen': True}

    name: str = Field(..., min_length=1)
    enabled: bool = Field(True)
    schedule: str = Field('')
    schedule_human: str = Field('')
    next_run: str | None = Field(None)
    last_trigger: str | None = Field(None)
    service: str = Field(...)


class AvailableTimer(BaseModel):
    """A timer that can be added to the watch-list.

    Args:
        name: Timer unit name
        description: Short description of what the timer activates
    """
    model_config = {'frozen': True}

    name: str = Field(..., min_length=1)
    description: str = Field('')
