from enum import StrEnum
from typing import ClassVar


class ErrorKind(StrEnum):
    """Classification of control-plane failures reported to callers.
    """

    NOT_FOUND = 'not_found'
    PERMISSION_DENIED = 'permission_denied'
    INVALID_IDENTIFIER = 'invalid_identifier'
    PARSE_ERROR = 'parse_error'
    TIMEOUT = 'timeout'
    COMMAND_FAILED = 'command_failed'
    IO_ERROR = 'io_error'
    OTHER = 'other'


class UnitControlError(Exception):
    """Base class for every failure raised by unitwatch.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.OTHER

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnitNotFoundError(UnitControlError):
    """Unit, timer or invocation does not exist.
    """

    kind = ErrorKind.NOT_FOUND

    def __str__(self) -> str:
        return f'Unit not found: {self.message}'


class PermissionDeniedError(UnitControlError):
    """The control plane refused the action for lack of privileges.
    """

    kind = ErrorKind.PERMISSION_DENIED

    def __str__(self) -> str:
        return f'Permission denied: {self.message}'


class InvalidIdentifierError(UnitControlError, ValueError):
    """An identifier was rejected before reaching the control plane.
    """

    kind = ErrorKind.INVALID_IDENTIFIER

    def __str__(self) -> str:
        return f'Invalid identifier: {self.message}'


class OutputParseError(UnitControlError):
    """Control-plane output did not have the expected shape.
    """

    kind = ErrorKind.PARSE_ERROR

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(reason)
        self.source = source

    def __str__(self) -> str:
        return f'Failed to parse {self.source}: {self.message}'


class ScheduleParseError(OutputParseError):
    """A schedule or time span expression could not be interpreted.
    """

    def __init__(self, reason: str) -> None:
        super().__init__('schedule', reason)


class CommandTimeoutError(UnitControlError):
    """An external command did not finish within the configured timeout.
    """

    kind = ErrorKind.TIMEOUT

    def __str__(self) -> str:
        return f'Operation timed out: {self.message}'


class CommandFailedError(UnitControlError):
    """An external command exited non-zero for an unclassified reason.
    """

    kind = ErrorKind.COMMAND_FAILED

    def __init__(self, command: str, exit_code: int, stderr: str) -> None:
        super().__init__(stderr.strip())
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr

    def __str__(self) -> str:
        return (
            f"Command '{self.command}' failed with exit code "
            f'{self.exit_code}: {self.message}'
        )


class CommandIoError(UnitControlError):
    """An external command could not be spawned or communicated with.
    """

    kind = ErrorKind.IO_ERROR

    def __str__(self) -> str:
        return f'I/O error: {self.message}'


class ScriptedResponseMissingError(UnitControlError):
    """The scripted executor has no answer for a command.
    """

    kind = ErrorKind.OTHER

    def __str__(self) -> str:
        return f'No scripted response for command: {self.message}'


__all__ = [
    'CommandFailedError',
    'CommandIoError',
    'CommandTimeoutError',
    'ErrorKind',
    'InvalidIdentifierError',
    'OutputParseError',
    'PermissionDeniedError',
    'ScheduleParseError',
    'ScriptedResponseMissingError',
    'UnitControlError',
    'UnitNotFoundError',
]
