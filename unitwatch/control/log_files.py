import itertools
import logging
import re
from datetime import datetime
from pathlib import Path

from unitwatch.control.types import (
    ControlPlaneConstants,
    LogMarkers,
    UnitSuffix,
)
from unitwatch.control.validation import validate_identifier
from unitwatch.errors import (
    CommandIoError,
    OutputParseError,
    UnitNotFoundError,
)
from unitwatch.models.executions import (
    ExecutionDetail,
    ExecutionRecord,
    status_from_end_marker,
)

_EXIT_CODE = re.compile(r'\bexit_code=(-?\d+)')
_DURATION = re.compile(r'\bduration=(\d+)s')


class LogFileReader:
    """Execution history reconstructed from per-invocation log files.

    Timer wrapper scripts write one file per run into
    ``<base_dir>/<service>/YYYY-MM-DD_HHMMSS.log``, opened with a
    ``[START]`` line and closed with
    ``[END] <timestamp> exit_code=<n> duration=<n>s``.
    """

    def __init__(self, base_dir: Path) -> None:
        """Initialize with the directory holding one folder per service.
        """
        self._logger = logging.getLogger(__name__)
        self._base_dir = base_dir

    def service_dir(self, service: str) -> Path:
        validate_identifier(service)
        return self._base_dir / service.removesuffix(UnitSuffix.SERVICE)

    async def get_execution_history(
        self,
        service: str,
        limit: int,
    ) -> list[ExecutionRecord]:
        """Runs of ``service`` found on disk, newest first.
        """
        directory = self.service_dir(service)
        if not directory.is_dir():
            self._logger.debug(
                'No log directory for %s: %s',
                service,
                directory,
            )
            return []

        log_files = sorted(
            (
                path for path in directory.iterdir()
                if path.is_file()
                and path.suffix == ControlPlaneConstants.LOG_FILE_SUFFIX
                and path.name != ControlPlaneConstants.LATEST_LOG_NAME
            ),
            key=lambda path: path.name,
            reverse=True,
        )

        records = []
        for path in log_files:
            if len(records) >= limit:
                break

            start_time = self._parse_start_time(path.stem)
            if start_time is None:
                self._logger.warning('Skipping unrecognized log file: %s', path)
                continue

            try:
                lines = self._read_lines(path)
            except CommandIoError as e:
                self._logger.warning('Skipping unreadable log file: %s', e)
                continue

            records.append(ExecutionRecord(
                invocation_id=path.stem,
                start_time=start_time,
                **self._end_fields(lines),
            ))

        return records

    async def get_execution_detail(
        self,
        service: str,
        invocation_id: str,
    ) -> ExecutionDetail:
        """One run with its output, markers removed.

        Raises:
            UnitNotFoundError: If there is no log file for the run
            OutputParseError: If the log file is empty
        """
        validate_identifier(invocation_id)
        path = (
            self.service_dir(service)
            / f'{invocation_id}{ControlPlaneConstants.LOG_FILE_SUFFIX}'
        )
        if not path.is_file():
            raise UnitNotFoundError(f'execution {invocation_id} of {service}')

        lines = self._read_lines(path)
        if not lines:
            raise OutputParseError(str(path), 'Log file is empty')

        start_time = self._parse_start_time(invocation_id)
        if start_time is None:
            raise OutputParseError(
                str(path),
                f'Unrecognized execution timestamp: {invocation_id}',
            )

        output = [
            line for line in lines
            if not line.startswith((LogMarkers.START, LogMarkers.END))
        ]

        return ExecutionDetail(
            invocation_id=invocation_id,
            start_time=start_time,
            output=output,
            **self._end_fields(lines),
        )

    def _read_lines(self, path: Path) -> list[str]:
        try:
            return path.read_text(encoding='utf-8', errors='replace') \
                .splitlines()
        except OSError as e:
            raise CommandIoError(f'Failed to read {path}: {e}') from e

    def _parse_start_time(self, stem: str) -> datetime | None:
        try:
            parsed = datetime.strptime(
                stem,
                ControlPlaneConstants.LOG_FILE_TIME_FORMAT,
            )
        except ValueError:
            return None
        return parsed.astimezone()

    def _end_fields(self, lines: list[str]) -> dict:
        """Metadata from the trailing ``[END]`` line, if the run finished.

        The end time is everything between the marker and the first
        ``key=value`` field; fields may come in any order.
        """
        last = next((line for line in reversed(lines) if line.strip()), '')
        if not last.startswith(LogMarkers.END):
            return {'status': status_from_end_marker(False, None)}

        fields = last.removeprefix(LogMarkers.END).split()
        exit_code = _int_field(_EXIT_CODE, last)
        duration = _int_field(_DURATION, last)

        time_text = ' '.join(itertools.takewhile(
            lambda token: '=' not in token,
            fields,
        ))
        try:
            end_time = datetime.fromisoformat(time_text)
        except ValueError:
            end_time = None
        if end_time is not None and end_time.tzinfo is None:
            end_time = end_time.astimezone()

        return {
            'end_time': end_time,
            'duration_seconds': duration,
            'exit_code': exit_code,
            'status': status_from_end_marker(True, exit_code),
        }


def _int_field(pattern: re.Pattern[str], line: str) -> int | None:
    match = pattern.search(line)
    return int(match.group(1)) if match else None
