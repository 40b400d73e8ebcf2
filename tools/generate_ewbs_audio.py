#!/usr/bin/env python3
"""
EWBS Station - Emergency Warning Broadcast System Decoder
Copyright (c) 2025 Timothy Kramer (KR8MER)

This file is part of EWBS Station.

EWBS Station is dual-licensed software:
- GNU Affero General Public License v3 (AGPL-3.0) for open-source use
- Commercial License for proprietary use

You should have received a copy of both licenses with this software.
For more information, see LICENSE and LICENSE-COMMERCIAL files.

IMPORTANT: This software cannot be rebranded or have attribution removed.
See NOTICE file for complete terms.
"""

from __future__ import annotations

"""Generate a reference EWBS start or end signal as a 16-bit mono WAV file."""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from ewbs_utils import get_location_code, load_ewbs_config
from ewbs_utils.ewbs_fsk import render_ewbs_signal, write_ewbs_wav


def main(argv=None) -> int:
    load_dotenv()
    config = load_ewbs_config()

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("output", type=Path, help="Destination WAV file")
    parser.add_argument(
        "--location",
        default="東京都",
        help="Region name from the area code table (default: 東京都)",
    )
    parser.add_argument("--end", action="store_true", help="Generate an end signal")
    parser.add_argument(
        "--category",
        type=int,
        choices=(1, 2),
        default=1,
        help="Start signal category (default: 1)",
    )
    parser.add_argument(
        "--date",
        default=None,
        help="Issue time in ISO format (default: now); hours 0-7 cannot be encoded",
    )
    parser.add_argument(
        "--sample-rate",
        type=int,
        default=config["sample_rate"],
        help="Output sample rate in Hz (default: EWBS_SAMPLE_RATE or 32000)",
    )
    parser.add_argument(
        "--log-level",
        default=config["log_level"],
        help="Logging level (default: EWBS_LOG_LEVEL or INFO)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))
    logger = logging.getLogger("ewbs-generate")

    location_code = get_location_code(args.location)
    if location_code is None:
        logger.error(f"Unknown location: {args.location}")
        return 1

    try:
        issued = datetime.fromisoformat(args.date) if args.date else datetime.now()
        samples = render_ewbs_signal(
            location_code,
            issued,
            start_signal=not args.end,
            category=args.category,
            sample_rate=args.sample_rate,
            amplitude=float(config["amplitude"]) * 32767,
        )
    except ValueError as exc:
        logger.error(f"Cannot generate signal: {exc}")
        return 1

    write_ewbs_wav(args.output, samples, args.sample_rate)
    logger.info(f"Wrote {len(samples)} samples at {args.sample_rate}Hz")
    print(f"Generated audio: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
