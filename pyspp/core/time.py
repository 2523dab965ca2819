# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""GPS Time Conversions

Observation epochs in RINEX files are written in GPS time as calendar
fields. The solver works in GPS seconds of week, so this module converts
between the two. Leap seconds are never applied.
"""

from datetime import datetime, timedelta

from .constants import GPST0, HALF_WEEK, WEEK_SECONDS

GPS_EPOCH = datetime(*GPST0)


def gps_week_second(dt: datetime) -> tuple[int, float]:
    """Convert a GPS-time calendar epoch to GPS week and seconds of week.

    Parameters
    ----------
    dt : datetime
        Naive datetime expressed in GPS time

    Returns
    -------
    tuple[int, float]
        GPS week number and time of week in seconds [0, 604800)

    Examples
    --------
    >>> gps_week_second(datetime(1980, 1, 13))
    (1, 0.0)
    """
    delta = dt - GPS_EPOCH
    week = delta.days // 7
    tow = (delta.days % 7) * 86400 + delta.seconds + delta.microseconds * 1e-6
    return week, tow


def gpst2datetime(week: int, tow: float) -> datetime:
    """Convert GPS week and time of week to a calendar epoch."""
    return GPS_EPOCH + timedelta(weeks=week, seconds=tow)


def gps_seconds(dt: datetime) -> float:
    """Continuous GPS seconds since the GPS epoch"""
    week, tow = gps_week_second(dt)
    return week * WEEK_SECONDS + tow


def tow_diff(t1: float, t2: float) -> float:
    """Difference of two times of week, folded into [-302400, 302400]"""
    dt = t1 - t2
    if dt > HALF_WEEK:
        dt -= WEEK_SECONDS
    elif dt < -HALF_WEEK:
        dt += WEEK_SECONDS
    return dt
