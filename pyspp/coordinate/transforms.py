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

"""Coordinate transformations on the WGS84 ellipsoid

Positions are ECEF meters; geodetic coordinates are [lat (rad), lon (rad),
height (m)]. The local frame used by the elevation cutoff and the result
tables is North-East-Up about an ECEF origin.
"""


import numpy as np

from ..core.constants import FE_WGS84, RE_WGS84


def ecef2llh(xyz: np.ndarray) -> np.ndarray:
    """ECEF [x, y, z] (m) to geodetic [lat, lon, height].

    Latitude is refined by fixed-point iteration on the prime vertical
    radius; five passes reach sub-millimetre height accuracy.
    """
    x, y, z = xyz[0], xyz[1], xyz[2]

    lon = np.arctan2(y, x)

    p = np.sqrt(x**2 + y**2)
    e2 = FE_WGS84 * (2.0 - FE_WGS84)

    # Poles: the height update below divides by cos(lat)
    if p < 1e-9:
        lat = np.pi / 2 if z >= 0 else -np.pi / 2
        h = abs(z) - RE_WGS84 * (1.0 - FE_WGS84)
        return np.array([lat, lon, h])

    lat = np.arctan2(z, p * (1.0 - FE_WGS84))
    h = 0.0
    for _ in range(5):
        N = RE_WGS84 / np.sqrt(1.0 - e2 * np.sin(lat)**2)
        h = p / np.cos(lat) - N
        lat = np.arctan2(z, p * (1.0 - e2 * N / (N + h)))

    return np.array([lat, lon, h])


def llh2ecef(llh: np.ndarray) -> np.ndarray:
    """Geodetic [lat (rad), lon (rad), height (m)] to ECEF [x, y, z] (m)"""
    lat, lon, h = llh[0], llh[1], llh[2]

    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    sin_lon = np.sin(lon)
    cos_lon = np.cos(lon)

    e2 = FE_WGS84 * (2.0 - FE_WGS84)
    N = RE_WGS84 / np.sqrt(1.0 - e2 * sin_lat**2)

    x = (N + h) * cos_lat * cos_lon
    y = (N + h) * cos_lat * sin_lon
    z = (N * (1.0 - e2) + h) * sin_lat

    return np.array([x, y, z])


def ecef2enu_matrix(org_llh: np.ndarray) -> np.ndarray:
    """Rotation matrix from ECEF vectors to local ENU at the given origin"""
    lat, lon = org_llh[0], org_llh[1]
    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    sin_lon = np.sin(lon)
    cos_lon = np.cos(lon)

    return np.array([
        [-sin_lon, cos_lon, 0],
        [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
        [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat]
    ])


def ecef2enu(vec: np.ndarray, org_llh: np.ndarray) -> np.ndarray:
    """Rotate an ECEF difference vector into local East-North-Up

    Parameters
    ----------
    vec : np.ndarray
        ECEF vector (e.g. receiver to satellite) in meters
    org_llh : np.ndarray
        Origin geodetic coordinates [lat (rad), lon (rad), height (m)]

    Returns
    -------
    np.ndarray
        Local ENU components [e, n, u] in meters
    """
    return ecef2enu_matrix(org_llh) @ np.asarray(vec, dtype=float)


def ecef2neu(xyz: np.ndarray, org_xyz: np.ndarray) -> np.ndarray:
    """Convert an ECEF point to North-East-Up relative to an ECEF origin

    Parameters
    ----------
    xyz : np.ndarray
        ECEF point [x, y, z] in meters
    org_xyz : np.ndarray
        ECEF origin [x, y, z] in meters

    Returns
    -------
    np.ndarray
        Local [n, e, u] in meters
    """
    org_xyz = np.asarray(org_xyz, dtype=float)
    enu = ecef2enu(np.asarray(xyz, dtype=float) - org_xyz, ecef2llh(org_xyz))
    return np.array([enu[1], enu[0], enu[2]])


def elevation(sat_xyz: np.ndarray, org_xyz: np.ndarray) -> float:
    """Elevation angle (rad) of a satellite seen from an ECEF origin"""
    neu = ecef2neu(sat_xyz, org_xyz)
    return float(np.arcsin(neu[2] / np.linalg.norm(neu)))
