"""Tests for GPS time conversions"""

from datetime import datetime

import pytest

from pyspp.core.time import GPS_EPOCH, gps_seconds, gps_week_second, gpst2datetime, tow_diff


def test_gps_epoch():
    assert gps_week_second(GPS_EPOCH) == (0, 0.0)
    assert GPS_EPOCH == datetime(1980, 1, 6)


def test_known_epoch():
    # 2019-01-01 is a Tuesday of GPS week 2034
    assert gps_week_second(datetime(2019, 1, 1)) == (2034, 172800.0)


def test_fractional_seconds():
    week, tow = gps_week_second(datetime(2019, 1, 1, 0, 0, 15, 500000))
    assert week == 2034
    assert tow == pytest.approx(172815.5)


def test_round_trip():
    t = datetime(2020, 6, 13, 23, 59, 30)
    assert gpst2datetime(*gps_week_second(t)) == t


def test_gps_seconds():
    assert gps_seconds(datetime(2019, 1, 1)) == 2034 * 604800 + 172800.0


@pytest.mark.parametrize("t1, t2, expected", [
    (100.0, 50.0, 50.0),
    (50.0, 100.0, -50.0),
    (10.0, 604790.0, 20.0),
    (604790.0, 10.0, -20.0),
])
def test_tow_diff(t1, t2, expected):
    assert tow_diff(t1, t2) == pytest.approx(expected)
