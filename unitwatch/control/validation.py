import re

from unitwatch.control.types import IdentifierKind, UnitSuffix
from unitwatch.errors import InvalidIdentifierError

SERVICE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9@._-]+$')
FORBIDDEN_CHARACTERS = frozenset('/\\|&;`$\n\r')


def validate_identifier(
    value: str,
    kind: IdentifierKind = IdentifierKind.GENERIC,
) -> None:
    """Reject identifiers that could escape a process argument.

    Every identifier that ends up in a control-plane argument vector must
    pass through here first. Rules are checked in order and the first
    failure wins.

    Args:
        value: Caller-supplied identifier
        kind: Rule set to apply

    Raises:
        InvalidIdentifierError: If the identifier is rejected
    """
    if not value:
        raise InvalidIdentifierError('identifier cannot be empty')

    if any(char.isspace() for char in value):
        raise InvalidIdentifierError(
            f'identifier cannot contain whitespace: {value!r}'
        )

    if kind == IdentifierKind.SERVICE:
        if not SERVICE_NAME_PATTERN.match(value):
            raise InvalidIdentifierError(
                f'service name contains invalid characters: {value!r}'
            )
    elif FORBIDDEN_CHARACTERS.intersection(value):
        raise InvalidIdentifierError(
            f'identifier contains invalid characters: {value!r}'
        )

    if kind == IdentifierKind.TIMER and not value.endswith(
        (UnitSuffix.TIMER, UnitSuffix.SERVICE)
    ):
        raise InvalidIdentifierError(
            f'timer name must end with .timer or .service: {value!r}'
        )


def validate_service_name(name: str) -> None:
    """Validate a service unit name.
    """
    validate_identifier(name, IdentifierKind.SERVICE)


def validate_timer_name(name: str) -> None:
    """Validate a timer (or its service) unit name.
    """
    validate_identifier(name, IdentifierKind.TIMER)


def timer_to_service(timer_name: str) -> str:
    """Map ``foo.timer`` to the service it activates, ``foo.service``.

    Raises:
        InvalidIdentifierError: If the name does not end with .timer
    """
    base_name = timer_name.removesuffix(UnitSuffix.TIMER)
    if base_name == timer_name:
        raise InvalidIdentifierError(
            f'timer name must end with .timer: {timer_name!r}'
        )
    return f'{base_name}{UnitSuffix.SERVICE}'
