#!/usr/bin/env python3
"""
Single Point Positioning over a RINEX observation file

Reads a RINEX observation file and a GPS navigation file, estimates the
receiver position of every epoch and writes the results as CSV.

    python run_spp.py --obs site0010.19o --nav brdc0010.19n --output spp.csv --plot spp.png
"""

import argparse
import sys
from pathlib import Path

import numpy as np

from pyspp.gnss import SppConfig, process_observations, solutions_to_dataframe, summarize
from pyspp.io.rinex import read_nav, read_obs
from pyspp.logger import setup_logger


def main(argv=None):
    parser = argparse.ArgumentParser(description='GPS single point positioning from RINEX files')
    parser.add_argument('--obs', required=True, help='RINEX observation file (*.??o)')
    parser.add_argument('--nav', required=True, help='RINEX navigation file')
    parser.add_argument('--output', default='spp_results.csv', help='CSV output file')
    parser.add_argument('--plot', help='Save an NEU deviation plot to this file')
    parser.add_argument('--elevation-mask', type=float, default=10.0,
                        help='Elevation cutoff in degrees')
    parser.add_argument('--warm-start', action='store_true',
                        help='Seed each epoch with the previous clock bias')
    parser.add_argument('--workers', type=int, default=1, help='Worker threads')
    parser.add_argument('--log-level', default='INFO', help='TRACE, DEBUG, INFO, ...')
    parser.add_argument('--log-file', help='Also log to this file')
    args = parser.parse_args(argv)

    logger = setup_logger('pyspp', args.log_level, args.log_file)

    for path in (args.obs, args.nav):
        if not Path(path).exists():
            logger.error(f"File not found: {path}")
            return 1

    obs = read_obs(args.obs)
    if not obs.records:
        logger.error(f"No epochs read from {args.obs}")
        return 1
    nav = read_nav(args.nav)
    logger.info(f"Loaded {len(obs)} epochs and {len(nav)} ephemerides")

    config = SppConfig.from_dict({'elevation_mask_deg': args.elevation_mask})
    solutions = process_observations(obs, nav, config=config,
                                     warm_start=args.warm_start, workers=args.workers)

    reference = obs.header.approx_position if np.any(obs.header.approx_position) else None
    df = solutions_to_dataframe(solutions, reference=reference)
    df.to_csv(args.output, index=False)
    logger.info(f"Wrote {len(df)} epochs to {args.output}")

    for status, count in summarize(solutions).items():
        logger.info(f"  {status}: {count}")

    if args.plot:
        if reference is None:
            logger.warning("No approximate position in the header, skipping the plot")
        else:
            from pyspp.plot import plot_neu
            plot_neu(df.dropna(subset=['n']), output=args.plot)
            logger.info(f"Saved plot to {args.plot}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
