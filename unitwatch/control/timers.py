from collections import deque
from pathlib import Path

from unitwatch.config import Settings
from unitwatch.control.base import SystemctlClient
from unitwatch.control.executor import CommandExecutor
from unitwatch.control.journal import JournalClient
from unitwatch.control.log_files import LogFileReader
from unitwatch.control.parsers import (
    parse_timer_list,
    parse_timer_properties,
)
from unitwatch.control.types import (
    ControlPlaneConstants,
    HistorySource,
    UnitAction,
    UnitSuffix,
)
from unitwatch.control.validation import (
    timer_to_service,
    validate_identifier,
    validate_timer_name,
)
from unitwatch.models.executions import ExecutionDetail, ExecutionRecord
from unitwatch.models.timers import TimerDescriptor
from unitwatch.models.units import UnitOperationResult


class SystemdTimerManager(SystemctlClient):
    """Unified manager for systemd timer operations.

    This is the main interface for timers: listing, inspection, manual
    runs, enable/disable and execution history of the activated service.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        settings: Settings | None = None,
    ) -> None:
        """Initialize with an executor and optional settings.
        """
        self._settings = settings or Settings()
        super().__init__(executor, self._settings.systemctl_path)
        self._journal = JournalClient(
            executor,
            self._settings.journalctl_path,
        )
        self._log_files = LogFileReader(self._settings.log_base_dir)

    async def list_timers(self) -> list[TimerDescriptor]:
        """List all timers known to systemd.

        Returns:
            One descriptor per timer, schedules left empty
        """
        output = await self._systemctl([
            'list-timers',
            '--all',
            '--no-pager',
            '--plain',
        ])
        timers = parse_timer_list(output)
        self._logger.debug('Listed %d timers', len(timers))
        return timers

    async def get_timer(self, name: str) -> TimerDescriptor:
        """Get one timer with its schedule.

        Args:
            name: Timer unit name

        Raises:
            InvalidIdentifierError: If the name is rejected
            UnitNotFoundError: If systemd does not know the timer
        """
        validate_timer_name(name)
        output = await self._systemctl([
            'show',
            name,
            f'--property={ControlPlaneConstants.TIMER_PROPERTIES}',
        ])
        return parse_timer_properties(name, output)

    async def run_timer(self, name: str) -> UnitOperationResult:
        """Start the timer's service now without waiting for it.
        """
        validate_timer_name(name)
        service = timer_to_service(name)
        await self._systemctl([UnitAction.START, '--no-block', service])
        self._logger.info('Triggered %s via %s', service, name)
        return UnitOperationResult(
            unit=name,
            action=UnitAction.RUN,
            message=f'Triggered {service}',
        )

    async def enable_timer(self, name: str) -> UnitOperationResult:
        """Enable the timer and start it.
        """
        validate_timer_name(name)
        return await self._enable(name)

    async def disable_timer(self, name: str) -> UnitOperationResult:
        """Stop the timer and disable it.
        """
        validate_timer_name(name)
        return await self._disable(name)

    async def get_execution_history(
        self,
        name: str,
        limit: int = 20,
    ) -> list[ExecutionRecord]:
        """Recent runs of the timer's service, newest first.

        Args:
            name: Timer unit name, or the service name directly
            limit: Maximum number of runs returned
        """
        service = self._service_for(name)

        if self._settings.history_source == HistorySource.LOG_FILES:
            return await self._log_files.get_execution_history(service, limit)
        return await self._journal.get_execution_history(service, limit)

    async def get_execution_detail(
        self,
        name: str,
        invocation_id: str,
    ) -> ExecutionDetail:
        """One run of the timer's service with its output.

        When the service writes an aggregated log file, its tail replaces
        the output captured in the journal.
        """
        service = self._service_for(name)
        validate_identifier(invocation_id)

        if self._settings.history_source == HistorySource.LOG_FILES:
            return await self._log_files.get_execution_detail(
                service,
                invocation_id,
            )

        detail = await self._journal.get_execution_detail(
            service,
            invocation_id,
        )

        tail = self._read_service_log_tail(service)
        if tail:
            return detail.model_copy(update={'output': tail})
        return detail

    def _service_for(self, name: str) -> str:
        validate_timer_name(name)
        if name.endswith(UnitSuffix.TIMER):
            return timer_to_service(name)
        return name

    def _read_service_log_tail(self, service: str) -> list[str]:
        base_name = service.removesuffix(UnitSuffix.SERVICE)
        path = Path(self._settings.service_log_dir) / (
            f'{base_name}{ControlPlaneConstants.LOG_FILE_SUFFIX}'
        )
        if not path.is_file():
            return []

        try:
            with path.open(encoding='utf-8', errors='replace') as log_file:
                lines = deque(
                    (line.rstrip('\n') for line in log_file),
                    maxlen=self._settings.detail_tail_lines,
                )
        except OSError as e:
            self._logger.warning('Cannot read %s: %s', path, e)
            return []

        self._logger.debug('Using %d lines from %s', len(lines), path)
        return list(lines)
