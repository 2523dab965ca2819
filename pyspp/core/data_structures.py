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

"""Core data structures for GNSS observation processing"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, Optional

import numpy as np
import pandas as pd

from .constants import SOLQ_NONE, SOLQ_SINGLE
from .time import gps_week_second


class SatelliteSystem(Enum):
    """Satellite constellations, valued by their RINEX system letter"""
    GPS = 'G'
    GLONASS = 'R'
    GALILEO = 'E'
    BEIDOU = 'C'
    QZSS = 'J'
    SBAS = 'S'
    IRNSS = 'I'
    UNKNOWN = '?'

    @classmethod
    def from_char(cls, c: str) -> 'SatelliteSystem':
        """Map a RINEX system letter to a system, UNKNOWN when unrecognised"""
        # Only an explicit letter names a system; blank is not GPS
        if not c.strip():
            return cls.UNKNOWN
        try:
            return cls(c.upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class SatelliteId:
    """Satellite identifier as a constellation tag plus PRN number.

    Attributes
    ----------
    system : SatelliteSystem
        Constellation the satellite belongs to
    prn : int
        PRN / slot number within the constellation
    """
    system: SatelliteSystem
    prn: int

    @classmethod
    def parse(cls, text: str) -> 'SatelliteId':
        """Parse a three character RINEX satellite identifier such as ``G05``.

        An unparsable number yields PRN 0 rather than an error.
        """
        text = text.rstrip('\n')
        system = SatelliteSystem.from_char(text[:1])
        try:
            prn = int(text[1:3])
        except ValueError:
            prn = 0
        return cls(system, prn)

    def __str__(self):
        return f"{self.system.value}{self.prn:02d}"


@dataclass(frozen=True, eq=False)
class ObservationHeader:
    """Observation file header.

    Attributes
    ----------
    info_lines : tuple[str, ...]
        Raw header lines in file order, kept verbatim for traceability
    approx_position : np.ndarray
        Approximate receiver position (ECEF, m), zeros when the file has none
    """
    info_lines: tuple = ()
    approx_position: np.ndarray = field(default_factory=lambda: np.zeros(3))


@dataclass(frozen=True, eq=False)
class ObservationRecord:
    """Observations of all tracked satellites at one epoch.

    The per-satellite tuples are index aligned: entry ``i`` of ``c1``, ``p2``,
    ``l1`` and ``l2`` belongs to ``satellites[i]``.

    Attributes
    ----------
    time : datetime
        Receiver epoch in GPS time
    status_flag : int
        Epoch flag (0 = OK)
    num_sats : int
        Satellite count announced on the epoch line, before system filtering
    satellites : tuple[SatelliteId, ...]
        Satellites kept for this epoch
    c1 : tuple[float, ...]
        Code pseudorange on band 1 (m)
    p2 : tuple[float, ...]
        Code pseudorange on band 2 (m)
    l1 : tuple[float, ...]
        Carrier phase on band 1 (cycles)
    l2 : tuple[float, ...]
        Carrier phase on band 2 (cycles)
    """
    time: datetime
    status_flag: int = 0
    num_sats: int = 0
    satellites: tuple = ()
    c1: tuple = ()
    p2: tuple = ()
    l1: tuple = ()
    l2: tuple = ()

    def __post_init__(self):
        n = len(self.satellites)
        for name in ('c1', 'p2', 'l1', 'l2'):
            if len(getattr(self, name)) != n:
                raise ValueError(
                    f"{name} has {len(getattr(self, name))} entries, expected {n}")

    def __len__(self):
        return len(self.satellites)

    def gps_time(self) -> tuple[int, float]:
        """GPS week and seconds of week of the epoch"""
        return gps_week_second(self.time)


@dataclass(frozen=True, eq=False)
class ObservationData:
    """Header plus epochs of one observation file, in file order"""
    header: ObservationHeader = field(default_factory=ObservationHeader)
    records: tuple = ()

    def __len__(self):
        return len(self.records)

    def __iter__(self) -> Iterator[ObservationRecord]:
        return iter(self.records)

    def __getitem__(self, index) -> ObservationRecord:
        return self.records[index]

    def is_empty(self) -> bool:
        return not self.header.info_lines and not self.records

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten all epochs into one row per satellite observation.

        Returns
        -------
        pd.DataFrame
            Columns: epoch, time, sat, c1, p2, l1, l2
        """
        rows = []
        for epoch, record in enumerate(self.records):
            for i, sat in enumerate(record.satellites):
                rows.append({
                    'epoch': epoch,
                    'time': record.time,
                    'sat': str(sat),
                    'c1': record.c1[i],
                    'p2': record.p2[i],
                    'l1': record.l1[i],
                    'l2': record.l2[i],
                })
        return pd.DataFrame(rows, columns=['epoch', 'time', 'sat', 'c1', 'p2', 'l1', 'l2'])


class SolutionStatus(Enum):
    """Outcome of a single epoch position estimate"""
    SINGLE = SOLQ_SINGLE        # converged single point solution
    EPHEMERIS_GAP = -1          # no ephemeris near the epoch for a satellite
    NOT_CONVERGED = -2          # transit-time or position iteration hit its cap
    UNDERDETERMINED = -3        # fewer than four usable satellites or singular geometry


@dataclass
class Solution:
    """Single point positioning result for one epoch.

    Attributes
    ----------
    time : datetime
        Epoch of the solution (GPS time)
    status : SolutionStatus
        SINGLE on success, otherwise the failure kind
    rr : np.ndarray or None
        Receiver position in ECEF (m), None unless the estimate succeeded
    dtr : float
        Receiver clock bias (s)
    ns : int
        Number of satellites in the final least-squares system
    used_sats : list[SatelliteId]
        Satellites in the final least-squares system
    disposed : dict[SatelliteId, str]
        Satellites left out of the final system and why
    iterations : int
        Outer iterations performed
    message : str
        Human readable failure reason
    """
    time: Optional[datetime] = None
    status: SolutionStatus = SolutionStatus.UNDERDETERMINED
    rr: Optional[np.ndarray] = None
    dtr: float = 0.0
    ns: int = 0
    used_sats: list = field(default_factory=list)
    disposed: dict = field(default_factory=dict)
    iterations: int = 0
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.status is SolutionStatus.SINGLE and self.rr is not None

    @property
    def type(self) -> int:
        """RTKLIB style solution quality flag"""
        return SOLQ_SINGLE if self.ok else SOLQ_NONE

    def get_llh(self) -> Optional[np.ndarray]:
        """Geodetic position [lat (rad), lon (rad), height (m)], None on failure"""
        if not self.ok:
            return None
        from ..coordinate.transforms import ecef2llh
        return ecef2llh(self.rr)
