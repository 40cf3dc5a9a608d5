from unitwatch.config import Settings
from unitwatch.control.base import SystemctlClient
from unitwatch.control.executor import CommandExecutor, command_key
from unitwatch.control.journal import map_journal_failure
from unitwatch.control.parsers import (
    parse_log_records,
    parse_unit_list,
    parse_unit_status,
)
from unitwatch.control.types import ControlPlaneConstants, UnitAction
from unitwatch.control.validation import validate_service_name
from unitwatch.models.units import (
    LogRecord,
    UnitOperationResult,
    UnitStatus,
    UnitSummary,
)

_EMPTY_JOURNAL_MARKERS = ('No journal files were found', 'No entries')


class SystemdServiceManager(SystemctlClient):
    """Lists, inspects and controls systemd services.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        settings: Settings | None = None,
    ) -> None:
        """Initialize with an executor and optional settings.
        """
        settings = settings or Settings()
        super().__init__(executor, settings.systemctl_path)
        self._journalctl = settings.journalctl_path

    async def list_services(self) -> list[UnitSummary]:
        """List all service units, loaded or not.
        """
        output = await self._systemctl([
            'list-units',
            '--type=service',
            '--all',
            '--no-pager',
            '--plain',
            '--no-legend',
        ])
        services = parse_unit_list(output)
        self._logger.debug('Listed %d services', len(services))
        return services

    async def get_service_status(self, name: str) -> UnitStatus:
        """Get the current status of one service.

        Raises:
            InvalidIdentifierError: If the name is rejected
            OutputParseError: If systemctl output lacks required properties
        """
        validate_service_name(name)
        output = await self._systemctl([
            'show',
            name,
            f'--property={ControlPlaneConstants.SERVICE_PROPERTIES}',
        ])
        return parse_unit_status(name, output)

    async def start_service(self, name: str) -> UnitOperationResult:
        validate_service_name(name)
        return await self._control(name, UnitAction.START)

    async def stop_service(self, name: str) -> UnitOperationResult:
        validate_service_name(name)
        return await self._control(name, UnitAction.STOP)

    async def restart_service(self, name: str) -> UnitOperationResult:
        validate_service_name(name)
        return await self._control(name, UnitAction.RESTART)

    async def enable_service(self, name: str) -> UnitOperationResult:
        """Enable the service and start it.
        """
        validate_service_name(name)
        return await self._enable(name)

    async def disable_service(self, name: str) -> UnitOperationResult:
        """Stop the service and disable it.
        """
        validate_service_name(name)
        return await self._disable(name)

    async def get_logs(self, name: str, lines: int = 100) -> list[LogRecord]:
        """Get the most recent journal lines of a service.

        An empty journal yields an empty list rather than an error.
        """
        validate_service_name(name)
        args = [
            '-u', name,
            '-n', str(lines),
            '--no-pager',
            '--output=json',
        ]
        outcome = await self._executor.execute(self._journalctl, args)

        if not outcome.succeeded:
            if any(
                marker in outcome.stderr for marker in _EMPTY_JOURNAL_MARKERS
            ):
                return []
            command = command_key(self._journalctl, args)
            self._logger.error('journalctl failed: %s', command)
            raise map_journal_failure(command, outcome)

        return parse_log_records(outcome.stdout)
