import json
from collections.abc import Sequence
from datetime import datetime

import click

from unitwatch.models.units import UnitOperationResult
from unitwatch.time.converters import StandardTimeConverter
from unitwatch.utils import BaseModel

_time_converter = StandardTimeConverter()


def format_relative_time(value: datetime | str | None) -> str:
    """Format a point in time relative to now for table display.
    """
    if value is None:
        return 'N/A'

    if isinstance(value, str):
        dt = _time_converter.parse_systemd_timestamp(value)
        if dt is None:
            return value
    else:
        dt = value

    now = datetime.now(dt.tzinfo)
    diff = dt - now

    if diff.total_seconds() < 0:
        # Past time
        diff = now - dt
        if diff.total_seconds() < 3600:
            return f'{int(diff.total_seconds() / 60)}m ago'
        elif diff.total_seconds() < 86400:
            return f'{int(diff.total_seconds() / 3600)}h ago'
        elif diff.total_seconds() < 604800:
            days = int(diff.total_seconds() / 86400)
            return f'{days}d ago'
        else:
            return dt.strftime('%Y-%m-%d')
    else:
        if diff.total_seconds() < 3600:
            return f'in {int(diff.total_seconds() / 60)}m'
        elif diff.total_seconds() < 86400:
            hours = int(diff.total_seconds() / 3600)
            minutes = int((diff.total_seconds() % 3600) / 60)
            return f'in {hours}h {minutes}m'
        else:
            return dt.strftime('%Y-%m-%d %H:%M')


def format_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    empty_message: str,
) -> str:
    """Format rows into a left-aligned table; the last column is not padded.
    """
    if not rows:
        return empty_message

    widths = [
        max(len(header), *(len(row[index]) for row in rows))
        for index, header in enumerate(headers)
    ]

    def render(cells: Sequence[str]) -> str:
        padded = [
            f'{cell:<{width}}'
            for cell, width in zip(cells[:-1], widths[:-1])
        ]
        return ' '.join([*padded, cells[-1]])

    header = render(headers)
    lines = [header, '-' * len(header)]
    lines.extend(render(row) for row in rows)

    return '\n'.join(lines)


def echo_json(data: BaseModel | Sequence[BaseModel]) -> None:
    """Print one model or a list of models as JSON.
    """
    if isinstance(data, BaseModel):
        click.echo(data.model_dump_json(indent=2))
        return

    click.echo(json.dumps(
        [item.model_dump(mode='json') for item in data],
        indent=2,
    ))


def echo_operation_result(
    result: UnitOperationResult,
    as_json: bool,
) -> None:
    if as_json:
        echo_json(result)
    else:
        click.echo(result.message)
