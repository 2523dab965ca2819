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

"""GNSS Constants and Positioning Parameters"""

import numpy as np

# Physical Constants
CLIGHT = 299792458.0  # speed of light (m/s)

# Time System Parameters
GPST0 = [1980, 1, 6, 0, 0, 0]  # GPS time reference epoch
WEEK_SECONDS = 604800.0        # seconds per GPS week
HALF_WEEK = 302400.0

# Earth Parameters (WGS84)
RE_WGS84 = 6378137.0           # earth semimajor axis (m)
FE_WGS84 = 1.0 / 298.257223563 # earth flattening
OMGE = 7.2921151467E-5         # earth angular velocity (rad/s)

# Unit conversions
R2D = 180.0 / np.pi            # radians to degrees
D2R = np.pi / 180.0            # degrees to radians

# Single point positioning defaults
MAXITR = 100                   # max position refinement iterations
MAXITR_TRANSIT = 100           # max signal travel-time iterations per satellite
ITER_TOL = 1E-8                # position correction norm tolerance (m)
TRANSIT_TOL = 1E-8             # emission time tolerance (s)
MIN_EL = 10.0                  # elevation cutoff (deg), satellites at or below are disposed
BLUNDER_THRESHOLD = 0.5E6      # |rho - P| above this is a gross outlier (m)
TRANSIT_TIME_SEED = 0.075      # initial signal travel time (s)
MISSING_DATA_EPS = 1E-6        # pseudoranges below this are "no measurement" (m)
MIN_SATS = 4                   # unknowns: x, y, z, receiver clock

# Ephemeris selection
MAXDTOE = 7200.0               # max |t - toe| for GPS broadcast ephemeris (s)

# Solution Status
SOLQ_NONE = 0       # no solution
SOLQ_SINGLE = 5     # single point positioning
