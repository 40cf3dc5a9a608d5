import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import Field, ValidationError

from unitwatch.control.executor import CommandExecutor, command_key
from unitwatch.control.parsers import journal_message
from unitwatch.control.types import (
    ControlPlaneConstants,
    JournalFields,
    TriggerType,
)
from unitwatch.control.validation import validate_identifier
from unitwatch.errors import (
    CommandFailedError,
    UnitNotFoundError,
)
from unitwatch.models.executions import (
    ExecutionDetail,
    ExecutionRecord,
    status_from_end_marker,
)
from unitwatch.models.units import CommandOutcome
from unitwatch.time.converters import StandardTimeConverter
from unitwatch.utils import BaseModel

_SCHEDULED_KEYWORDS = ('timer', 'scheduled')
_MANUAL_KEYWORDS = ('manual', 'systemctl start')
_NOT_FOUND_MARKERS = ('not found', 'does not exist')


class JournalEntry(BaseModel):
    """The fields of a journal record used for history.

    Args:
        invocation_id: Correlation id of the run
        realtime_timestamp: Microseconds since the epoch, as printed
        message: Log message
        exit_status: Exit status, present on the line that ends a run
    """
    model_config = {'frozen': True, 'populate_by_name': True}

    invocation_id: str = Field(
        ...,
        alias=JournalFields.INVOCATION_ID,
        min_length=1,
    )
    realtime_timestamp: str = Field(
        ...,
        alias=JournalFields.REALTIME_TIMESTAMP,
        pattern=r'^\d+$',
    )
    message: str = Field('')
    exit_status: str | None = Field(None, alias=JournalFields.EXIT_STATUS)

    @property
    def timestamp_usec(self) -> int:
        return int(self.realtime_timestamp)


def parse_journal_entries(output: str) -> list[JournalEntry]:
    """Parse ``journalctl -o json`` output leniently.

    Lines that are not JSON objects, and records without an invocation id
    or timestamp, are skipped.
    """
    logger = logging.getLogger(__name__)
    entries = []

    for number, line in enumerate(output.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue

        try:
            raw = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning('Skipping malformed journal line %d: %s', number, e)
            continue

        if not isinstance(raw, dict):
            logger.warning('Skipping non-object journal line %d', number)
            continue

        entry = _entry_from_raw(raw)
        if entry is not None:
            entries.append(entry)

    return entries


def _entry_from_raw(raw: dict[str, Any]) -> JournalEntry | None:
    exit_status = raw.get(JournalFields.EXIT_STATUS)
    try:
        return JournalEntry(
            invocation_id=raw.get(JournalFields.INVOCATION_ID),
            realtime_timestamp=raw.get(JournalFields.REALTIME_TIMESTAMP),
            message=journal_message(raw),
            exit_status=None if exit_status is None else str(exit_status),
        )
    except ValidationError:
        return None


def classify_trigger(messages: Sequence[str]) -> TriggerType:
    """Guess whether a run was scheduled or started by hand.

    The first message mentioning either kind decides.
    """
    for message in messages:
        folded = message.casefold()
        if any(keyword in folded for keyword in _SCHEDULED_KEYWORDS):
            return TriggerType.SCHEDULED
        if any(keyword in folded for keyword in _MANUAL_KEYWORDS):
            return TriggerType.MANUAL
    return TriggerType.SCHEDULED


class ExecutionHistoryAggregator:
    """Groups journal entries into invocations.
    """

    def __init__(self) -> None:
        self._time_converter = StandardTimeConverter()

    def group(
        self,
        entries: Sequence[JournalEntry],
    ) -> dict[str, list[JournalEntry]]:
        """Group entries by invocation id, keeping stream order.
        """
        groups: dict[str, list[JournalEntry]] = {}
        for entry in entries:
            groups.setdefault(entry.invocation_id, []).append(entry)
        return groups

    def aggregate(
        self,
        entries: Sequence[JournalEntry],
        limit: int,
    ) -> list[ExecutionRecord]:
        """Build execution records, newest first, at most ``limit``.
        """
        groups = sorted(
            self.group(entries).values(),
            key=lambda group: group[0].timestamp_usec,
            reverse=True,
        )
        return [self.build_record(group) for group in groups[:limit]]

    def build_record(self, group: Sequence[JournalEntry]) -> ExecutionRecord:
        return ExecutionRecord(**self._record_fields(group))

    def build_detail(self, group: Sequence[JournalEntry]) -> ExecutionDetail:
        return ExecutionDetail(
            **self._record_fields(group),
            output=[entry.message for entry in group],
        )

    def _record_fields(self, group: Sequence[JournalEntry]) -> dict[str, Any]:
        first, last = group[0], group[-1]
        has_end_marker = any(entry.exit_status is not None for entry in group)
        exit_code = self._exit_code(group)

        start_usec = first.timestamp_usec
        end_usec = last.timestamp_usec if has_end_marker else None

        duration = None
        if end_usec is not None and end_usec > start_usec:
            duration = (
                (end_usec - start_usec)
                // ControlPlaneConstants.USEC_PER_SECOND
            )

        return {
            'invocation_id': first.invocation_id,
            'start_time': self._time_converter.convert_realtime_to_datetime(
                start_usec,
            ),
            'end_time': (
                self._time_converter.convert_realtime_to_datetime(end_usec)
                if end_usec is not None else None
            ),
            'duration_seconds': duration,
            'status': status_from_end_marker(has_end_marker, exit_code),
            'exit_code': exit_code,
            'trigger': classify_trigger([entry.message for entry in group]),
        }

    def _exit_code(self, group: Sequence[JournalEntry]) -> int | None:
        for entry in reversed(group):
            if entry.exit_status is None:
                continue
            try:
                return int(entry.exit_status)
            except ValueError:
                return None
        return None


class JournalClient:
    """Execution history read from the systemd journal.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        journalctl_path: str = 'journalctl',
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._executor = executor
        self._journalctl = journalctl_path
        self._aggregator = ExecutionHistoryAggregator()

    async def get_execution_history(
        self,
        service: str,
        limit: int,
    ) -> list[ExecutionRecord]:
        """Invocations of ``service`` over the last week, newest first.
        """
        validate_identifier(service)
        output = await self._run([
            '-u', service,
            '--since', ControlPlaneConstants.HISTORY_WINDOW,
            '-o', 'json',
            '--no-pager',
        ])
        entries = parse_journal_entries(output)
        self._logger.debug(
            'Read %d journal entries for %s',
            len(entries),
            service,
        )
        return self._aggregator.aggregate(entries, limit)

    async def get_execution_detail(
        self,
        service: str,
        invocation_id: str,
    ) -> ExecutionDetail:
        """One invocation of ``service`` with its messages.

        Raises:
            UnitNotFoundError: If the journal has no such invocation
        """
        validate_identifier(service)
        validate_identifier(invocation_id)
        output = await self._run([
            '-u', service,
            f'{JournalFields.INVOCATION_ID}={invocation_id}',
            '-o', 'json',
            '--no-pager',
        ])

        group = [
            entry for entry in parse_journal_entries(output)
            if entry.invocation_id == invocation_id
        ]
        if not group:
            raise UnitNotFoundError(
                f'execution {invocation_id} of {service}'
            )
        return self._aggregator.build_detail(group)

    async def _run(self, args: list[str]) -> str:
        outcome = await self._executor.execute(self._journalctl, args)
        if not outcome.succeeded:
            command = command_key(self._journalctl, args)
            self._logger.error('journalctl failed: %s', command)
            raise map_journal_failure(command, outcome)
        return outcome.stdout


def map_journal_failure(
    command: str,
    outcome: CommandOutcome,
) -> UnitNotFoundError | CommandFailedError:
    """Classify a non-zero journalctl exit.
    """
    folded = outcome.stderr.casefold()
    if any(marker in folded for marker in _NOT_FOUND_MARKERS):
        return UnitNotFoundError(outcome.stderr.strip())
    return CommandFailedError(command, outcome.exit_code, outcome.stderr)
