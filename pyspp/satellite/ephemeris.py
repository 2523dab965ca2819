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

"""Ephemeris selection and satellite position computation.

The position estimator only needs two things from navigation data:

- ``find_close_record(time, sat)`` returning the broadcast record nearest to
  an epoch, or None when the feed has a gap
- a record exposing its clock polynomial, clock reference time, Earth
  rotation rate and ``compute_satellite_position(tow)``

``BroadcastEphemeris`` provides the record side for GPS Keplerian ephemerides
decoded by cssrlib; orbit propagation itself is delegated to
``cssrlib.ephemeris.eph2pos``.
"""

import logging
import math
from datetime import datetime
from typing import Iterable, Optional, Protocol, Union

import numpy as np

import cssrlib.ephemeris
from cssrlib.gnss import gpst2time, sat2id, time2gpst

from ..core.constants import MAXDTOE, OMGE, WEEK_SECONDS
from ..core.data_structures import SatelliteId, SatelliteSystem
from ..core.time import gps_seconds

logger = logging.getLogger(__name__)


class EphemerisRecord(Protocol):
    """Interface of one navigation record as used by the position estimator"""

    clock_coefficients: tuple
    clock_reference_time: float
    earth_rotation_rate: float

    def compute_satellite_position(self, tow: float) -> np.ndarray:
        ...


class EphemerisProvider(Protocol):
    """Anything that can look up the navigation record closest to an epoch"""

    def find_close_record(self, time: datetime, sat: SatelliteId) -> Optional[EphemerisRecord]:
        ...


def _to_gtime(tow: float, reference_seconds: float):
    """Place a time of week in the GPS week closest to a reference time"""
    ref_week = math.floor(reference_seconds / WEEK_SECONDS)
    ref_tow = reference_seconds - ref_week * WEEK_SECONDS
    week = int(ref_week)
    delta = tow - ref_tow
    half_week = WEEK_SECONDS / 2.0
    if delta > half_week:
        week -= 1
    elif delta < -half_week:
        week += 1
    return gpst2time(week, tow)


def _gtime_seconds(t) -> float:
    week, tow = time2gpst(t)
    return week * WEEK_SECONDS + tow


class BroadcastEphemeris:
    """GPS broadcast ephemeris record backed by a cssrlib ``Eph``.

    Parameters
    ----------
    eph : cssrlib.gnss.Eph
        Decoded broadcast ephemeris
    """

    def __init__(self, eph):
        self.eph = eph
        self.sat = SatelliteId.parse(sat2id(eph.sat))
        self.toe = _gtime_seconds(eph.toe)
        self.toc = _gtime_seconds(eph.toc)

    @property
    def clock_coefficients(self) -> tuple:
        """Clock polynomial (af0, af1, af2) in s, s/s, s/s^2"""
        return (self.eph.af0, self.eph.af1, self.eph.af2)

    @property
    def clock_reference_time(self) -> float:
        """Clock reference time (toc) as GPS seconds of week"""
        return self.toc % WEEK_SECONDS

    @property
    def earth_rotation_rate(self) -> float:
        """Rate used for the transit-time Earth rotation correction.

        Deliberately the WGS84 Earth rotation rate ``OMGE`` and not the
        record's own rate of right ascension ``OMGd``: the correction rotates
        the satellite with the Earth during signal transit, which is a
        property of the Earth frame, not of the orbit.
        """
        return OMGE

    @property
    def healthy(self) -> bool:
        return getattr(self.eph, 'svh', 0) == 0

    def compute_satellite_position(self, tow: float) -> np.ndarray:
        """ECEF satellite position (m) at a GPS time of week"""
        t = _to_gtime(tow, self.toe)
        rs, _dts = cssrlib.ephemeris.eph2pos(t, self.eph)
        return np.asarray(rs, dtype=float)

    def __repr__(self):
        return f"BroadcastEphemeris({self.sat}, toe={self.toe:.0f})"


class NavigationData:
    """Broadcast ephemeris records indexed by satellite.

    Records must expose ``sat`` (SatelliteId) and ``toe`` (continuous GPS
    seconds); unhealthy records (``healthy`` False) are never selected.

    Parameters
    ----------
    records : iterable
        Ephemeris records
    max_age : float
        Largest |t - toe| (s) for a record to count as close
    """

    def __init__(self, records: Iterable = (), max_age: float = MAXDTOE):
        self.max_age = max_age
        self._records: dict[SatelliteId, list] = {}
        for record in records:
            self.add(record)

    @classmethod
    def from_cssrlib(cls, nav, max_age: float = MAXDTOE) -> 'NavigationData':
        """Build from a cssrlib ``Nav``, keeping GPS records only"""
        records = []
        for eph in nav.eph:
            record = BroadcastEphemeris(eph)
            if record.sat.system is not SatelliteSystem.GPS:
                continue
            records.append(record)
        logger.debug(f"Loaded {len(records)} GPS ephemerides out of {len(nav.eph)}")
        return cls(records, max_age=max_age)

    def add(self, record) -> None:
        self._records.setdefault(record.sat, []).append(record)

    def __len__(self):
        return sum(len(v) for v in self._records.values())

    @property
    def satellites(self) -> list:
        return sorted(self._records, key=lambda s: (s.system.value, s.prn))

    def find_close_record(self, time: Union[datetime, float], sat: SatelliteId):
        """Select the record of ``sat`` whose toe is closest to ``time``

        Parameters
        ----------
        time : datetime or float
            Epoch in GPS time, or continuous GPS seconds
        sat : SatelliteId
            Satellite of interest

        Returns
        -------
        record or None
            Closest healthy record within ``max_age``, None otherwise
        """
        t = gps_seconds(time) if isinstance(time, datetime) else float(time)

        best = None
        min_dt = float('inf')
        for record in self._records.get(sat, ()):
            if not getattr(record, 'healthy', True):
                continue
            dt = abs(t - record.toe)
            if dt > self.max_age:
                continue
            if dt < min_dt:
                min_dt = dt
                best = record

        return best
