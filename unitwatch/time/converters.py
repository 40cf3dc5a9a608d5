from datetime import UTC, datetime

from unitwatch.control.types import ControlPlaneConstants

_SYSTEMD_TIME_FORMAT = '%a %Y-%m-%d %H:%M:%S'
_UTC_NAMES = frozenset({'UTC', 'GMT', 'Z'})


class StandardTimeConverter:
    """Conversions between control-plane time formats and datetimes.
    """

    def convert_realtime_to_datetime(self, realtime_usec: int) -> datetime:
        """Convert realtime microseconds to an aware UTC datetime.
        """
        seconds, micros = divmod(
            realtime_usec,
            ControlPlaneConstants.USEC_PER_SECOND,
        )
        return datetime.fromtimestamp(seconds, tz=UTC).replace(
            microsecond=micros,
        )

    def parse_realtime_text(self, value: str) -> datetime | None:
        """Parse a decimal microsecond timestamp, ``None`` if it is not one.
        """
        value = value.strip()
        if not value.isdigit():
            return None
        try:
            return self.convert_realtime_to_datetime(int(value))
        except (OverflowError, OSError, ValueError):
            return None

    def parse_systemd_timestamp(self, value: str) -> datetime | None:
        """Parse a timestamp as printed by ``systemctl show``.

        Accepts ISO 8601, ``Wed 2024-01-10 10:00:00 UTC`` and raw
        microseconds since the epoch. Returns ``None`` for anything else.
        """
        value = value.strip()
        if not value or value == 'n/a':
            return None

        if value.isdigit():
            return self.parse_realtime_text(value)

        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            parsed = self._parse_weekday_form(value)

        if parsed is not None and parsed.tzinfo is None:
            parsed = parsed.astimezone()
        return parsed

    def _parse_weekday_form(self, value: str) -> datetime | None:
        """Parse ``Wed 2024-01-10 10:00:00 [TZ]``.

        A zone other than UTC is taken as local time since the abbreviation
        alone is ambiguous.
        """
        parts = value.split()
        if len(parts) not in (3, 4):
            return None

        try:
            parsed = datetime.strptime(
                ' '.join(parts[:3]),
                _SYSTEMD_TIME_FORMAT,
            )
        except ValueError:
            return None

        if len(parts) == 4 and parts[3].upper() in _UTC_NAMES:
            return parsed.replace(tzinfo=UTC)
        return parsed

    def format_realtime_text(self, value: str) -> str:
        """Render a microsecond timestamp as ISO text, passing others through.
        """
        parsed = self.parse_realtime_text(value)
        return parsed.isoformat() if parsed is not None else value
