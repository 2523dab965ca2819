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

"""Core GNSS Processing Module.

Fundamental pieces shared by the parser and the solver:

- **Constants and Parameters**: physical constants, WGS84 parameters and the
  default thresholds of single point positioning
- **Data Structures**: satellite identifiers, observation epochs, observation
  files and positioning solutions
- **Time**: GPS week / seconds-of-week conversion of calendar epochs

Example Usage:
    >>> from pyspp.core import SatelliteId, gps_week_second
    >>> sat = SatelliteId.parse('G05')
    >>> str(sat)
    'G05'
"""

from .constants import *
from .data_structures import *
from .time import *
