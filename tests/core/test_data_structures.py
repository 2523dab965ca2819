#!/usr/bin/env python3
"""Test suite for data structures"""

import unittest
from datetime import datetime

import numpy as np

from pyspp.core.constants import D2R, SOLQ_NONE, SOLQ_SINGLE
from pyspp.core.data_structures import (
    ObservationData, ObservationHeader, ObservationRecord, SatelliteId, SatelliteSystem,
    Solution, SolutionStatus
)
from pyspp.coordinate.transforms import llh2ecef


class TestSatelliteId(unittest.TestCase):

    def test_parse(self):
        sat = SatelliteId.parse("G05")
        self.assertEqual(sat.system, SatelliteSystem.GPS)
        self.assertEqual(sat.prn, 5)
        self.assertEqual(str(sat), "G05")

    def test_blank_system_is_unknown(self):
        self.assertEqual(SatelliteId.parse(" 12"), SatelliteId(SatelliteSystem.UNKNOWN, 12))
        self.assertEqual(SatelliteId.parse("").system, SatelliteSystem.UNKNOWN)

    def test_unknown_system(self):
        self.assertEqual(SatelliteId.parse("X01").system, SatelliteSystem.UNKNOWN)

    def test_bad_prn(self):
        self.assertEqual(SatelliteId.parse("G??").prn, 0)

    def test_hashable(self):
        sats = {SatelliteId.parse("G05"), SatelliteId.parse("G05"), SatelliteId.parse("R05")}
        self.assertEqual(len(sats), 2)


class TestObservationRecord(unittest.TestCase):

    def test_aligned_fields(self):
        record = ObservationRecord(
            time=datetime(2019, 1, 1),
            num_sats=2,
            satellites=(SatelliteId.parse("G01"), SatelliteId.parse("G02")),
            c1=(2.0e7, 2.1e7), p2=(2.0e7, 2.1e7), l1=(0.0, 0.0), l2=(0.0, 0.0),
        )
        self.assertEqual(len(record), 2)
        self.assertEqual(record.gps_time(), (2034, 172800.0))

    def test_misaligned_fields_rejected(self):
        with self.assertRaises(ValueError):
            ObservationRecord(
                time=datetime(2019, 1, 1),
                satellites=(SatelliteId.parse("G01"),),
                c1=(2.0e7,), p2=(), l1=(0.0,), l2=(0.0,),
            )


class TestObservationData(unittest.TestCase):

    def test_empty(self):
        data = ObservationData()
        self.assertTrue(data.is_empty())
        self.assertEqual(len(data), 0)
        self.assertEqual(list(data), [])
        self.assertEqual(list(data.to_dataframe().columns),
                         ['epoch', 'time', 'sat', 'c1', 'p2', 'l1', 'l2'])

    def test_header_only_is_not_empty(self):
        data = ObservationData(header=ObservationHeader(info_lines=("x" * 60 + "END OF HEADER",)))
        self.assertFalse(data.is_empty())


class TestSolution(unittest.TestCase):

    def test_default_is_failure(self):
        sol = Solution()
        self.assertFalse(sol.ok)
        self.assertEqual(sol.type, SOLQ_NONE)
        self.assertIsNone(sol.get_llh())

    def test_single(self):
        llh = np.array([35.0 * D2R, 139.0 * D2R, 50.0])
        sol = Solution(time=datetime(2019, 1, 1), status=SolutionStatus.SINGLE,
                       rr=llh2ecef(llh), ns=6)
        self.assertTrue(sol.ok)
        self.assertEqual(sol.type, SOLQ_SINGLE)
        np.testing.assert_allclose(sol.get_llh(), llh, atol=1e-8)

    def test_status_without_position_is_not_ok(self):
        self.assertFalse(Solution(status=SolutionStatus.SINGLE).ok)


if __name__ == '__main__':
    unittest.main()
