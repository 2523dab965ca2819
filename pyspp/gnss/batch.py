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

"""Epoch-by-epoch processing of a whole observation file"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Optional

import numpy as np
import pandas as pd

from ..coordinate.transforms import ecef2llh, ecef2neu
from ..core.constants import CLIGHT, R2D
from ..core.data_structures import ObservationData, Solution, SolutionStatus
from .spp import SppConfig, estimate_position

logger = logging.getLogger(__name__)


def process_observations(obs: ObservationData, nav, approx_pos: Optional[np.ndarray] = None,
                         config: Optional[SppConfig] = None, warm_start: bool = False,
                         workers: int = 1) -> list[Solution]:
    """
    Estimate a position for every epoch of an observation file

    Parameters:
    -----------
    obs : ObservationData
        Parsed observation file
    nav : EphemerisProvider
        Navigation data shared read-only by all epochs
    approx_pos : np.ndarray, optional
        A-priori ECEF position; defaults to the header approximate position
    config : SppConfig, optional
        Solver parameters
    warm_start : bool
        Start each epoch from the previous successful clock bias
    workers : int
        Number of worker threads; epochs are independent unless warm_start

    Returns:
    --------
    solutions : list[Solution]
        One solution per epoch, in file order
    """
    if warm_start and workers > 1:
        raise ValueError("warm_start chains epochs and cannot run in parallel")

    if approx_pos is None:
        approx_pos = obs.header.approx_position
    approx_pos = np.asarray(approx_pos, dtype=float)
    if not np.any(approx_pos):
        logger.warning("A-priori position is zero, elevation cutoff will be meaningless")

    if config is None:
        config = SppConfig()

    if workers > 1:
        solve = partial(estimate_position, nav=nav, approx_pos=approx_pos, config=config)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            solutions = list(executor.map(solve, obs.records))
    else:
        solutions = []
        clock_bias = 0.0
        for i, record in enumerate(obs.records):
            solution = estimate_position(record, nav, approx_pos, config,
                                         initial_clock_bias=clock_bias)
            if warm_start and solution.ok:
                clock_bias = solution.dtr
            solutions.append(solution)

            if (i + 1) % 100 == 0:
                logger.info(f"Processed {i + 1}/{len(obs)} epochs")

    counts = summarize(solutions)
    logger.info(f"Solved {counts[SolutionStatus.SINGLE.name]} of {counts['total']} epochs")
    return solutions


def summarize(solutions: list[Solution]) -> dict:
    """Count solutions per status name, plus ``total``"""
    counts = Counter(s.status.name for s in solutions)
    summary = {status.name: counts.get(status.name, 0) for status in SolutionStatus}
    summary['total'] = len(solutions)
    return summary


def solutions_to_dataframe(solutions: list[Solution],
                           reference: Optional[np.ndarray] = None) -> pd.DataFrame:
    """
    Tabulate solutions, one row per epoch

    Parameters:
    -----------
    solutions : list[Solution]
        Solutions in epoch order
    reference : np.ndarray, optional
        Reference ECEF position; adds n, e, u deviation columns (m)

    Returns:
    --------
    pd.DataFrame
        Columns time, status, x, y, z, lat, lon, height, clock_bias, ns
        (and n, e, u). Failed epochs carry NaN coordinates.
    """
    rows = []
    for sol in solutions:
        row = {
            'time': sol.time,
            'status': sol.status.name,
            'x': np.nan, 'y': np.nan, 'z': np.nan,
            'lat': np.nan, 'lon': np.nan, 'height': np.nan,
            'clock_bias': np.nan,
            'ns': sol.ns,
        }
        if sol.ok:
            llh = ecef2llh(sol.rr)
            row.update(x=sol.rr[0], y=sol.rr[1], z=sol.rr[2],
                       lat=llh[0] * R2D, lon=llh[1] * R2D, height=llh[2],
                       clock_bias=sol.dtr * CLIGHT)
        if reference is not None:
            neu = ecef2neu(sol.rr, reference) if sol.ok else np.full(3, np.nan)
            row.update(n=neu[0], e=neu[1], u=neu[2])
        rows.append(row)

    columns = ['time', 'status', 'x', 'y', 'z', 'lat', 'lon', 'height', 'clock_bias', 'ns']
    if reference is not None:
        columns += ['n', 'e', 'u']
    return pd.DataFrame(rows, columns=columns)
