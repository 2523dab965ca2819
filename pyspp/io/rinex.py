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

"""RINEX readers.

Observation files are parsed here with fixed-column extraction: every field
sits at a fixed character offset regardless of surrounding whitespace.
Malformed fields fall back to zero and truncated files simply give fewer
epochs; the parser never raises for file content.

Navigation files are decoded by cssrlib and wrapped as ``NavigationData``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator

import numpy as np

from cssrlib.gnss import Nav
from cssrlib.rinex import rnxdec

from ..core.data_structures import (ObservationData, ObservationHeader, ObservationRecord,
                                    SatelliteId, SatelliteSystem)
from ..core.time import GPS_EPOCH
from ..satellite.ephemeris import NavigationData

logger = logging.getLogger(__name__)

END_OF_HEADER = "END OF HEADER"
APPROX_POSITION = "APPROX POSITION XYZ"

# (start, stop) slices of the satellite observation line
SAT_ID = (0, 3)
C1_FIELD = (3, 17)
P2_FIELD = (19, 33)
L1_FIELD = (51, 65)
L2_FIELD = (67, 81)


def _field(line: str, span: tuple[int, int]) -> str:
    return line[span[0]:span[1]]


def _to_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return 0.0


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def is_observation_file(path: str | Path) -> bool:
    """RINEX observation files end in 'o' or 'O' (e.g. ``.19o``, ``.rnx.o``)"""
    return str(path)[-1:].lower() == 'o'


def _parse_header(lines: Iterator[str]) -> ObservationHeader:
    info_lines = []
    approx_position = np.zeros(3)

    for line in lines:
        info_lines.append(line)
        label = line[60:]
        if label.startswith(END_OF_HEADER):
            break
        if label.startswith(APPROX_POSITION):
            approx_position = np.array([
                _to_float(line[1:14]),
                _to_float(line[15:28]),
                _to_float(line[29:42]),
            ])

    return ObservationHeader(info_lines=tuple(info_lines), approx_position=approx_position)


def _parse_epoch_time(line: str) -> datetime:
    year = _to_int(line[1:6])
    month = _to_int(line[6:9])
    day = _to_int(line[9:12])
    hour = _to_int(line[12:15])
    minute = _to_int(line[15:18])
    second = _to_float(line[18:29])

    whole = int(second)
    micro = int(round((second - whole) * 1e6))
    if micro >= 1000000:
        whole += 1
        micro -= 1000000
    try:
        return datetime(year, month, day, hour, minute, whole, micro)
    except ValueError:
        logger.debug(f"Invalid epoch time in line {line!r}, using GPS epoch")
        return GPS_EPOCH


def _parse_records(lines: Iterator[str], systems: frozenset) -> Iterator[ObservationRecord]:
    for line in lines:
        if not line.strip():
            break

        time = _parse_epoch_time(line)
        status_flag = _to_int(line[29:32])
        num_sats = _to_int(line[32:35])

        satellites, c1, p2, l1, l2 = [], [], [], [], []
        skipped = 0
        for _ in range(num_sats):
            sat_line = next(lines, None)
            if sat_line is None:
                break
            sat = SatelliteId.parse(_field(sat_line, SAT_ID))
            if sat.system not in systems:
                skipped += 1
                continue

            satellites.append(sat)
            c1.append(_to_float(_field(sat_line, C1_FIELD)))
            p2.append(_to_float(_field(sat_line, P2_FIELD)))
            l1.append(_to_float(_field(sat_line, L1_FIELD)))
            l2.append(_to_float(_field(sat_line, L2_FIELD)))

        if skipped:
            logger.debug(f"{time}: skipped {skipped} satellites of other systems")

        yield ObservationRecord(
            time=time,
            status_flag=status_flag,
            num_sats=num_sats,
            satellites=tuple(satellites),
            c1=tuple(c1),
            p2=tuple(p2),
            l1=tuple(l1),
            l2=tuple(l2),
        )


def read_obs(filename: str | Path,
             systems: Iterable[SatelliteSystem] = (SatelliteSystem.GPS,)) -> ObservationData:
    """Parse a RINEX observation file into header and epochs.

    Parameters
    ----------
    filename : str or Path
        Observation file; its name must end in 'o' or 'O'
    systems : iterable of SatelliteSystem
        Constellations to keep, GPS only by default

    Returns
    -------
    ObservationData
        Parsed data; empty when the file is not an observation file or
        cannot be opened
    """
    path = Path(filename)
    if not is_observation_file(filename):
        logger.warning(f"{path} is not a RINEX observation file")
        return ObservationData()

    try:
        fh = path.open("r", encoding="ascii", errors="replace")
    except OSError as exc:
        logger.warning(f"Cannot open observation file {path}: {exc}")
        return ObservationData()

    with fh:
        lines = (line.rstrip("\r\n") for line in fh)
        header = _parse_header(lines)
        records = tuple(_parse_records(lines, frozenset(systems)))

    logger.info(f"Read {len(records)} epochs from {path.name}")
    return ObservationData(header=header, records=records)


def read_nav(filename: str | Path) -> NavigationData:
    """Decode a RINEX navigation file with cssrlib into NavigationData."""

    nav = Nav()
    decoder = rnxdec()
    decoder.decode_nav(str(filename), nav, append=False)
    return NavigationData.from_cssrlib(nav)


class RinexObsReader:
    """Compatibility wrapper returning ObservationData."""

    def __init__(self, filename: str,
                 systems: Iterable[SatelliteSystem] = (SatelliteSystem.GPS,)):
        self.filename = Path(filename)
        self.systems = tuple(systems)

    def read(self) -> ObservationData:
        return read_obs(self.filename, self.systems)


class RinexNavReader:
    """Compatibility wrapper returning NavigationData."""

    def __init__(self, filename: str):
        self.filename = Path(filename)

    def read(self) -> NavigationData:
        return read_nav(self.filename)
