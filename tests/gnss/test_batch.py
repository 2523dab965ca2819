#!/usr/bin/env python3
"""Tests for whole-file processing and result tabulation"""

import tempfile
import unittest
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from pyspp.core.data_structures import ObservationData, ObservationHeader, SolutionStatus
from pyspp.gnss.batch import process_observations, solutions_to_dataframe, summarize
from pyspp.gnss.spp import estimate_position
from pyspp.plot import plot_neu

from synthetic import CLOCK_BIAS, EPOCH, RX_APPROX, RX_TRUE, make_record, scenario


def observation_data(n_epochs=3, failing=()):
    """Identical error-free epochs 30 s apart; indices in ``failing`` carry no satellites"""
    nav, template = scenario()
    records = []
    for i in range(n_epochs):
        time = EPOCH + timedelta(seconds=30 * i)
        if i in failing:
            records.append(make_record([], [], time=time))
        else:
            records.append(make_record(template.satellites, template.c1, time=time))
    header = ObservationHeader(info_lines=("END OF HEADER",), approx_position=RX_APPROX)
    return ObservationData(header=header, records=tuple(records)), nav


class TestProcessObservations(unittest.TestCase):

    def test_one_solution_per_epoch(self):
        obs, nav = observation_data(3, failing=(1,))
        solutions = process_observations(obs, nav)

        self.assertEqual(len(solutions), 3)
        self.assertEqual([s.status for s in solutions],
                         [SolutionStatus.SINGLE, SolutionStatus.UNDERDETERMINED,
                          SolutionStatus.SINGLE])
        self.assertEqual([s.time for s in solutions], [r.time for r in obs.records])
        np.testing.assert_allclose(solutions[2].rr, RX_TRUE, atol=1e-4)

    def test_uses_header_position(self):
        obs, nav = observation_data(1)
        with patch('pyspp.gnss.batch.estimate_position', wraps=estimate_position) as mock_est:
            process_observations(obs, nav)
        np.testing.assert_array_equal(mock_est.call_args[0][2], RX_APPROX)

    def test_zero_position_warns(self):
        obs = ObservationData(records=(make_record([], []),))
        with self.assertLogs('pyspp.gnss.batch', level='WARNING'):
            solutions = process_observations(obs, nav=None)
        self.assertEqual(solutions[0].status, SolutionStatus.UNDERDETERMINED)

    def test_cold_start_by_default(self):
        obs, nav = observation_data(3)
        with patch('pyspp.gnss.batch.estimate_position', wraps=estimate_position) as mock_est:
            process_observations(obs, nav)
        biases = [c.kwargs['initial_clock_bias'] for c in mock_est.call_args_list]
        self.assertEqual(biases, [0.0, 0.0, 0.0])

    def test_warm_start_carries_clock_bias(self):
        obs, nav = observation_data(4, failing=(2,))
        with patch('pyspp.gnss.batch.estimate_position', wraps=estimate_position) as mock_est:
            solutions = process_observations(obs, nav, warm_start=True)

        biases = [c.kwargs['initial_clock_bias'] for c in mock_est.call_args_list]
        self.assertEqual(biases[0], 0.0)
        # the failed epoch leaves the carried bias untouched
        self.assertEqual(biases[1], solutions[0].dtr)
        self.assertEqual(biases[2], solutions[1].dtr)
        self.assertEqual(biases[3], solutions[1].dtr)
        self.assertAlmostEqual(biases[3], CLOCK_BIAS, delta=1e-12)
        self.assertTrue(solutions[3].ok)

    def test_parallel_matches_sequential(self):
        obs, nav = observation_data(6, failing=(4,))
        sequential = process_observations(obs, nav)
        parallel = process_observations(obs, nav, workers=3)

        self.assertEqual([s.status for s in parallel], [s.status for s in sequential])
        for a, b in zip(parallel, sequential):
            self.assertEqual(a.time, b.time)
            if a.ok:
                np.testing.assert_array_equal(a.rr, b.rr)
                self.assertEqual(a.dtr, b.dtr)

    def test_parallel_warm_start_rejected(self):
        obs, nav = observation_data(2)
        with self.assertRaises(ValueError):
            process_observations(obs, nav, warm_start=True, workers=2)


class TestResults(unittest.TestCase):

    def setUp(self):
        obs, nav = observation_data(3, failing=(1,))
        self.solutions = process_observations(obs, nav)

    def test_summarize(self):
        summary = summarize(self.solutions)
        self.assertEqual(summary['SINGLE'], 2)
        self.assertEqual(summary['UNDERDETERMINED'], 1)
        self.assertEqual(summary['EPHEMERIS_GAP'], 0)
        self.assertEqual(summary['NOT_CONVERGED'], 0)
        self.assertEqual(summary['total'], 3)

    def test_dataframe(self):
        df = solutions_to_dataframe(self.solutions)

        self.assertEqual(list(df.columns), ['time', 'status', 'x', 'y', 'z', 'lat', 'lon',
                                            'height', 'clock_bias', 'ns'])
        self.assertEqual(list(df['status']), ['SINGLE', 'UNDERDETERMINED', 'SINGLE'])
        self.assertAlmostEqual(df['lat'][0], 35.0, places=7)
        self.assertAlmostEqual(df['lon'][0], 139.0, places=7)
        self.assertAlmostEqual(df['height'][0], 50.0, places=3)
        self.assertAlmostEqual(df['clock_bias'][0], CLOCK_BIAS * 299792458.0, places=3)
        self.assertTrue(df.loc[1, ['x', 'y', 'z', 'clock_bias']].isna().all())
        self.assertEqual(df['ns'][0], 6)

    def test_dataframe_with_reference(self):
        df = solutions_to_dataframe(self.solutions, reference=RX_TRUE)

        self.assertEqual(list(df.columns[-3:]), ['n', 'e', 'u'])
        np.testing.assert_allclose(df.loc[[0, 2], ['n', 'e', 'u']].to_numpy(), 0.0, atol=1e-4)
        self.assertTrue(df.loc[1, ['n', 'e', 'u']].isna().all())

    def test_plot_neu(self):
        df = solutions_to_dataframe(self.solutions, reference=RX_TRUE)
        with tempfile.TemporaryDirectory() as tmpdir:
            output = Path(tmpdir) / 'neu.png'
            fig = plot_neu(df, output=str(output))
            self.assertTrue(output.exists())
        self.assertEqual(len(fig.axes), 4)
        plt.close(fig)

    def test_plot_requires_reference(self):
        df = solutions_to_dataframe(self.solutions)
        with self.assertRaises(ValueError):
            plot_neu(df)


if __name__ == '__main__':
    unittest.main()
