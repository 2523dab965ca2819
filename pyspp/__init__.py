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

"""
PySPP - GPS Single Point Positioning for RINEX observation files

Post-processes recorded GNSS observations: fixed-column RINEX observation
parsing, broadcast ephemeris selection and weighted least-squares estimation
of receiver position and clock bias per epoch.
"""

__version__ = "1.0.0"
__author__ = "PySPP Development Team"
__title__ = "pyspp"
__description__ = "GPS single point positioning from RINEX observation files"

from .core import *
from .coordinate import *
