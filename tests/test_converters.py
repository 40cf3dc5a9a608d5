from datetime import UTC, datetime

from unitwatch.time.converters import StandardTimeConverter

converter = StandardTimeConverter()


def test_convert_realtime_to_datetime():
    assert converter.convert_realtime_to_datetime(1768482000123456) == \
        datetime(2026, 1, 15, 13, 0, 0, 123456, tzinfo=UTC)


def test_parse_realtime_text():
    assert converter.parse_realtime_text('1768482000000000') == \
        datetime(2026, 1, 15, 13, tzinfo=UTC)
    assert converter.parse_realtime_text('n/a') is None
    assert converter.parse_realtime_text('') is None


def test_parse_systemd_timestamp_forms():
    expected = datetime(2024, 1, 10, 10, tzinfo=UTC)

    assert converter.parse_systemd_timestamp(
        'Wed 2024-01-10 10:00:00 UTC',
    ) == expected
    assert converter.parse_systemd_timestamp(
        '2024-01-10T10:00:00+00:00',
    ) == expected
    assert converter.parse_systemd_timestamp('1704880800000000') == expected


def test_parse_systemd_timestamp_local_zone_is_aware():
    parsed = converter.parse_systemd_timestamp('Wed 2024-01-10 10:00:00 CET')

    assert parsed is not None
    assert parsed.tzinfo is not None
    assert parsed.replace(tzinfo=None) == datetime(2024, 1, 10, 10)


def test_parse_systemd_timestamp_empty_values():
    assert converter.parse_systemd_timestamp('') is None
    assert converter.parse_systemd_timestamp('n/a') is None
    assert converter.parse_systemd_timestamp('soon') is None


def test_format_realtime_text():
    assert converter.format_realtime_text('1768482000000000') == \
        '2026-01-15T13:00:00+00:00'
    assert converter.format_realtime_text('Thu 2026-01-15 14:00:00 CET') == \
        'Thu 2026-01-15 14:00:00 CET'
