import logging
from collections.abc import Sequence

from unitwatch.control.executor import CommandExecutor, command_key
from unitwatch.control.types import SystemctlExitCode, UnitAction
from unitwatch.errors import (
    CommandFailedError,
    PermissionDeniedError,
    UnitControlError,
    UnitNotFoundError,
)
from unitwatch.models.units import CommandOutcome, UnitOperationResult


def map_systemctl_failure(
    command: str,
    outcome: CommandOutcome,
) -> UnitControlError:
    """Classify a non-zero systemctl exit.
    """
    match outcome.exit_code:
        case SystemctlExitCode.PERMISSION_DENIED:
            return PermissionDeniedError(outcome.stderr.strip() or command)
        case SystemctlExitCode.NOT_FOUND:
            return UnitNotFoundError(outcome.stderr.strip() or command)
        case _:
            return CommandFailedError(
                command,
                outcome.exit_code,
                outcome.stderr,
            )


class SystemctlClient:
    """Common plumbing for clients that drive systemctl.

    Every call goes validate, execute, map exit code. Identifiers must be
    validated by the caller before reaching ``_systemctl``.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        systemctl_path: str = 'systemctl',
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._executor = executor
        self._systemctl_path = systemctl_path

    async def _systemctl_outcome(self, args: Sequence[str]) -> CommandOutcome:
        """Run systemctl and return the outcome without checking it.
        """
        return await self._executor.execute(self._systemctl_path, args)

    async def _systemctl(self, args: Sequence[str]) -> str:
        """Run systemctl and return stdout.

        Raises:
            PermissionDeniedError: On exit code 4
            UnitNotFoundError: On exit code 5
            CommandFailedError: On any other non-zero exit code
        """
        outcome = await self._systemctl_outcome(args)
        if not outcome.succeeded:
            command = command_key(self._systemctl_path, args)
            self._logger.error(
                'Command failed with exit code %d: %s',
                outcome.exit_code,
                command,
            )
            raise map_systemctl_failure(command, outcome)
        return outcome.stdout

    async def _control(
        self,
        unit: str,
        action: UnitAction,
    ) -> UnitOperationResult:
        """Run a single ``systemctl <action> <unit>``.
        """
        await self._systemctl([action, unit])
        self._logger.info('%s: %s', action, unit)
        return UnitOperationResult(
            unit=unit,
            action=action,
            message=f'{unit} {_PAST_TENSE[action]} successfully',
        )

    async def _enable(self, unit: str) -> UnitOperationResult:
        """Enable then start. Not transactional.

        If start fails the unit stays enabled and the start error is raised.
        """
        await self._systemctl([UnitAction.ENABLE, unit])
        await self._systemctl([UnitAction.START, unit])
        self._logger.info('Enabled and started: %s', unit)
        return UnitOperationResult(
            unit=unit,
            action=UnitAction.ENABLE,
            message=f'{unit} enabled and started successfully',
        )

    async def _disable(self, unit: str) -> UnitOperationResult:
        """Stop then disable. Not transactional.

        If disable fails the unit stays stopped and the disable error is
        raised.
        """
        await self._systemctl([UnitAction.STOP, unit])
        await self._systemctl([UnitAction.DISABLE, unit])
        self._logger.info('Stopped and disabled: %s', unit)
        return UnitOperationResult(
            unit=unit,
            action=UnitAction.DISABLE,
            message=f'{unit} stopped and disabled successfully',
        )


_PAST_TENSE = {
    UnitAction.START: 'started',
    UnitAction.STOP: 'stopped',
    UnitAction.RESTART: 'restarted',
    UnitAction.ENABLE: 'enabled',
    UnitAction.DISABLE: 'disabled',
    UnitAction.RUN: 'triggered',
}
