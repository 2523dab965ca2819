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

"""Single Point Positioning (SPP) core implementation

Weighted iterative least squares on GPS code pseudoranges. Each outer pass
re-evaluates every satellite of the epoch against the current receiver
estimate: the emission time is found by a signal travel-time fixed point,
the satellite position is corrected for Earth rotation during transit, and
satellites with missing data, low elevation or gross residuals are disposed
of before the design matrix is built.

Unknowns are receiver X, Y, Z and the receiver clock bias. The residual is
formed without the receiver clock term, so the fourth component of each
solution is the full clock bias in meters rather than an increment.
"""

from dataclasses import dataclass, fields
from typing import Optional

import numpy as np
from numpy.linalg import norm

from ..coordinate.transforms import elevation
from ..core.constants import (
    BLUNDER_THRESHOLD, CLIGHT, D2R, ITER_TOL, MAXITR, MAXITR_TRANSIT, MIN_EL, MIN_SATS,
    MISSING_DATA_EPS, TRANSIT_TIME_SEED, TRANSIT_TOL
)
from ..core.data_structures import ObservationRecord, SatelliteId, Solution, SolutionStatus
from ..core.time import tow_diff
from ..logger import get_logger

logger = get_logger(__name__)

# Disposal reasons
DISPOSED_MISSING = "missing"
DISPOSED_ELEVATION = "elevation"
DISPOSED_BLUNDER = "blunder"


@dataclass
class SppConfig:
    """Single point positioning parameters"""
    max_iterations: int = MAXITR
    max_transit_iterations: int = MAXITR_TRANSIT
    convergence_tol: float = ITER_TOL          # position correction norm (m)
    transit_tol: float = TRANSIT_TOL           # emission time change (s)
    elevation_mask: float = MIN_EL * D2R       # rad, satellites at or below are disposed
    blunder_threshold: float = BLUNDER_THRESHOLD
    initial_transit_time: float = TRANSIT_TIME_SEED
    missing_data_eps: float = MISSING_DATA_EPS

    def __post_init__(self):
        if self.max_iterations < 1 or self.max_transit_iterations < 1:
            raise ValueError("iteration caps must be at least 1")

    @classmethod
    def from_dict(cls, config: dict) -> 'SppConfig':
        """Build from a dictionary, ``elevation_mask_deg`` is accepted in degrees"""
        config = dict(config)
        if 'elevation_mask_deg' in config:
            config['elevation_mask'] = config.pop('elevation_mask_deg') * D2R
        known = {f.name for f in fields(cls)}
        for key in sorted(set(config) - known):
            logger.warning(f"Ignoring unknown SPP option '{key}'")
        return cls(**{k: v for k, v in config.items() if k in known})


class EstimationError(Exception):
    """Epoch-level failure of the position estimate"""

    def __init__(self, status: SolutionStatus, message: str):
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class SatelliteContribution:
    """One satellite's part in a least-squares pass.

    Either ``disposed`` names why the satellite was left out, or ``row``,
    ``residual`` and ``weight`` hold its equation.
    """
    sat: SatelliteId
    row: Optional[np.ndarray] = None
    residual: float = 0.0
    weight: float = 0.0
    elevation: float = 0.0
    disposed: Optional[str] = None


def earth_rotation_correction(sat_pos: np.ndarray, angle: float) -> np.ndarray:
    """Rotate a satellite ECEF position about Z by the Earth rotation angle
    accumulated during signal transit."""
    c, s = np.cos(angle), np.sin(angle)
    R = np.array([
        [c, s, 0.0],
        [-s, c, 0.0],
        [0.0, 0.0, 1.0]
    ])
    return R @ sat_pos


def satellite_clock_correction(eph, t_emit: float) -> float:
    """Satellite clock offset (s) from the broadcast clock polynomial"""
    a0, a1, a2 = eph.clock_coefficients
    dt = tow_diff(t_emit, eph.clock_reference_time)
    return a0 + a1 * dt + a2 * dt**2


def solve_satellite_position(eph, tow: float, rec_pos: np.ndarray, clock_bias: float,
                             pseudorange: float, config: SppConfig) -> tuple[np.ndarray, float]:
    """Iterate signal travel time until the emission time settles.

    Parameters
    ----------
    eph : EphemerisRecord
        Navigation record of the satellite
    tow : float
        Receiver time of week (s)
    rec_pos : np.ndarray
        Current receiver ECEF estimate (m)
    clock_bias : float
        Current receiver clock bias (s)
    pseudorange : float
        Code pseudorange (m)
    config : SppConfig
        Iteration cap and tolerance

    Returns
    -------
    sat_pos : np.ndarray
        Earth-rotation corrected satellite ECEF position (m)
    t_emit : float
        Signal emission time of week (s)

    Raises
    ------
    EstimationError
        NOT_CONVERGED when the cap is reached
    """
    angle = eph.earth_rotation_rate * (pseudorange / CLIGHT)
    transit = config.initial_transit_time
    t_prev = None

    for _ in range(config.max_transit_iterations):
        t_emit = tow - clock_bias - transit
        sat_pos = earth_rotation_correction(eph.compute_satellite_position(t_emit), angle)

        if t_prev is not None and abs(t_emit - t_prev) <= config.transit_tol:
            return sat_pos, t_emit

        t_prev = t_emit
        transit = norm(sat_pos - rec_pos) / CLIGHT

    raise EstimationError(SolutionStatus.NOT_CONVERGED,
                          f"signal travel time did not converge in "
                          f"{config.max_transit_iterations} iterations")


def evaluate_satellite(sat: SatelliteId, pseudorange: float, nav, record: ObservationRecord,
                       tow: float, rec_pos: np.ndarray, clock_bias: float,
                       approx_pos: np.ndarray, config: SppConfig) -> SatelliteContribution:
    """Build the least-squares equation of one satellite, or dispose of it.

    Raises
    ------
    EstimationError
        EPHEMERIS_GAP when no navigation record is close to the epoch,
        NOT_CONVERGED when the travel-time iteration fails
    """
    # NaN compares false, so it counts as missing too
    if not pseudorange > config.missing_data_eps:
        return SatelliteContribution(sat, disposed=DISPOSED_MISSING)

    eph = nav.find_close_record(record.time, sat)
    if eph is None:
        raise EstimationError(SolutionStatus.EPHEMERIS_GAP,
                              f"no ephemeris for {sat} near {record.time}")

    sat_pos, t_emit = solve_satellite_position(eph, tow, rec_pos, clock_bias, pseudorange, config)

    el = elevation(sat_pos, approx_pos)
    if el <= config.elevation_mask:
        return SatelliteContribution(sat, elevation=el, disposed=DISPOSED_ELEVATION)

    rho = norm(rec_pos - sat_pos)
    if abs(rho - pseudorange) > config.blunder_threshold:
        return SatelliteContribution(sat, elevation=el, disposed=DISPOSED_BLUNDER)

    row = np.append((rec_pos - sat_pos) / rho, 1.0)
    dts = satellite_clock_correction(eph, t_emit)

    return SatelliteContribution(
        sat,
        row=row,
        residual=pseudorange - rho + CLIGHT * dts,
        weight=np.sin(el)**2,
        elevation=el,
    )


def weighted_least_squares(H: np.ndarray, v: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Solve the weighted normal equations (H^T W H) dx = H^T W v

    Raises
    ------
    EstimationError
        UNDERDETERMINED when the normal matrix is singular
    """
    W = np.diag(w)
    N = H.T @ W @ H
    b = H.T @ W @ v
    try:
        dx = np.linalg.solve(N, b)
    except np.linalg.LinAlgError as exc:
        raise EstimationError(SolutionStatus.UNDERDETERMINED,
                              f"singular normal matrix: {exc}") from exc
    if not np.all(np.isfinite(dx)):
        raise EstimationError(SolutionStatus.UNDERDETERMINED, "ill-conditioned normal matrix")
    return dx


def _iterate(record: ObservationRecord, nav, tow: float, rec_pos: np.ndarray, clock_bias: float,
             approx_pos: np.ndarray, config: SppConfig):
    """One outer pass: returns the updated (position, clock bias), the
    position correction and the satellite contributions."""
    contributions = [
        evaluate_satellite(sat, record.c1[i], nav, record, tow, rec_pos, clock_bias,
                           approx_pos, config)
        for i, sat in enumerate(record.satellites)
    ]

    used = [c for c in contributions if c.disposed is None]
    if len(used) < MIN_SATS:
        raise EstimationError(SolutionStatus.UNDERDETERMINED,
                              f"only {len(used)} usable satellites of {len(contributions)}")

    H = np.array([c.row for c in used])
    v = np.array([c.residual for c in used])
    w = np.array([c.weight for c in used])

    dx = weighted_least_squares(H, v, w)

    return rec_pos + dx[:3], dx[3] / CLIGHT, dx[:3], contributions


def estimate_position(record: ObservationRecord, nav, approx_pos: np.ndarray,
                      config: Optional[SppConfig] = None,
                      initial_clock_bias: float = 0.0) -> Solution:
    """
    Estimate receiver position and clock bias for one epoch

    Parameters:
    -----------
    record : ObservationRecord
        Observations of one epoch
    nav : EphemerisProvider
        Navigation data offering ``find_close_record(time, sat)``
    approx_pos : np.ndarray
        A-priori receiver ECEF position (m); also the origin of the local
        frame used for the elevation cutoff
    config : SppConfig, optional
        Solver parameters
    initial_clock_bias : float, optional
        Receiver clock bias (s) to start from, e.g. the previous epoch's

    Returns:
    --------
    solution : Solution
        ``status`` SINGLE with ``rr`` and ``dtr`` on success; otherwise the
        failure kind with ``rr`` None. No exception escapes for data problems.
    """
    if config is None:
        config = SppConfig()

    approx_pos = np.asarray(approx_pos, dtype=float)
    rec_pos = approx_pos.copy()
    clock_bias = float(initial_clock_bias)
    _week, tow = record.gps_time()

    iteration = 0
    try:
        for iteration in range(1, config.max_iterations + 1):
            rec_pos, clock_bias, dx, contributions = _iterate(
                record, nav, tow, rec_pos, clock_bias, approx_pos, config)
            logger.trace(f"{record.time} iter {iteration}: |dx|={norm(dx):.3e} "
                         f"dtr={clock_bias * CLIGHT:.3f} m")

            if norm(dx) < config.convergence_tol:
                used = [c.sat for c in contributions if c.disposed is None]
                return Solution(
                    time=record.time,
                    status=SolutionStatus.SINGLE,
                    rr=rec_pos,
                    dtr=clock_bias,
                    ns=len(used),
                    used_sats=used,
                    disposed={c.sat: c.disposed for c in contributions if c.disposed},
                    iterations=iteration,
                )

        raise EstimationError(SolutionStatus.NOT_CONVERGED,
                              f"position did not converge in {config.max_iterations} iterations")

    except EstimationError as exc:
        logger.debug(f"{record.time}: {exc.status.name}: {exc}")
        return Solution(time=record.time, status=exc.status, iterations=iteration,
                        message=str(exc))
