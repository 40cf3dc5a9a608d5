import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Final, Self

from unitwatch.errors import (
    CommandIoError,
    CommandTimeoutError,
    ScriptedResponseMissingError,
)
from unitwatch.models.units import CommandOutcome

DEFAULT_TIMEOUT: Final[float] = 10.0


def command_key(program: str, args: Sequence[str]) -> str:
    """Render a command as ``program arg1 arg2`` for lookup and messages.
    """
    return ' '.join([program, *args])


class CommandExecutor(ABC):
    """Abstract interface for running control-plane commands.
    """

    @abstractmethod
    async def execute(
        self,
        program: str,
        args: Sequence[str],
    ) -> CommandOutcome:
        """Run ``program`` with a discrete argument vector.

        Raises:
            CommandTimeoutError: If the command did not finish in time
            CommandIoError: If the command could not be spawned
        """


class SystemCommandExecutor(CommandExecutor):
    """Runs real processes through asyncio, never through a shell.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize with a per-command timeout in seconds.
        """
        self._logger = logging.getLogger(__name__)
        self._timeout = timeout

    async def execute(
        self,
        program: str,
        args: Sequence[str],
    ) -> CommandOutcome:
        """Spawn the command and wait for it up to the timeout.

        On timeout the child is abandoned, not killed.
        """
        command = command_key(program, args)
        self._logger.debug('Executing: %s', command)

        try:
            process = await asyncio.create_subprocess_exec(
                program,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandIoError(
                f"Failed to spawn command '{command}': {e}"
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self._timeout,
            )
        except TimeoutError as e:
            self._logger.warning(
                'Command timed out after %.1fs: %s',
                self._timeout,
                command,
            )
            raise CommandTimeoutError(
                f"Command '{command}' timed out after {self._timeout}s"
            ) from e
        except OSError as e:
            raise CommandIoError(
                f"Failed to wait for command '{command}': {e}"
            ) from e

        exit_code = process.returncode
        if exit_code is None or exit_code < 0:
            exit_code = -1

        return CommandOutcome(
            exit_code=exit_code,
            stdout=stdout.decode('utf-8', errors='replace'),
            stderr=stderr.decode('utf-8', errors='replace'),
        )


class ScriptedCommandExecutor(CommandExecutor):
    """Answers commands from a fixed table, for tests.

    Responses are keyed by ``program`` followed by the space-joined
    arguments.
    """

    def __init__(self) -> None:
        """Initialize with an empty response table.
        """
        self._responses: dict[str, CommandOutcome] = {}
        self._lock = threading.Lock()
        self.calls: list[str] = []

    def expect(
        self,
        program: str,
        args: Sequence[str],
        outcome: CommandOutcome,
    ) -> Self:
        """Register the outcome for one command.
        """
        with self._lock:
            self._responses[command_key(program, args)] = outcome
        return self

    def with_stdout(
        self,
        program: str,
        args: Sequence[str],
        stdout: str,
    ) -> Self:
        """Register a successful command with the given output.
        """
        return self.expect(
            program,
            args,
            CommandOutcome(exit_code=0, stdout=stdout, stderr=''),
        )

    def with_error(
        self,
        program: str,
        args: Sequence[str],
        exit_code: int,
        stderr: str,
    ) -> Self:
        """Register a failing command.
        """
        return self.expect(
            program,
            args,
            CommandOutcome(exit_code=exit_code, stdout='', stderr=stderr),
        )

    async def execute(
        self,
        program: str,
        args: Sequence[str],
    ) -> CommandOutcome:
        key = command_key(program, args)

        with self._lock:
            self.calls.append(key)
            outcome = self._responses.get(key)

        if outcome is None:
            raise ScriptedResponseMissingError(key)
        return outcome
