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

"""Decode EWBS (緊急警報放送) control signals from a mono PCM WAV recording."""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from ewbs_core.audio import AudioSourceError, EWBSMonitor, WAVSampleSource
from ewbs_core.audio.ewbs_monitor import AcquisitionSettings
from ewbs_utils import build_block_summary, load_ewbs_config


def main(argv=None) -> int:
    load_dotenv()
    config = load_ewbs_config()

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("file", type=Path, help="Mono PCM WAV file to decode")
    parser.add_argument(
        "--all",
        action="store_true",
        help="Keep scanning after the first decoded block",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument(
        "--show-bits",
        action="store_true",
        help="Include the received bit string in the text report",
    )
    parser.add_argument(
        "--log-level",
        default=config["log_level"],
        help="Logging level (default: EWBS_LOG_LEVEL or INFO)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))
    logger = logging.getLogger("ewbs-decode")

    if args.all:
        config["stop_after_first"] = False
    settings = AcquisitionSettings.from_config(config)

    try:
        with WAVSampleSource(args.file) as source:
            logger.info(
                f"Decoding {args.file}: {source.duration_seconds:.1f}s of "
                f"{source.bits_per_sample}-bit audio at {source.sample_rate}Hz"
            )
            monitor = EWBSMonitor(source, settings)
            blocks = monitor.run()
    except FileNotFoundError:
        logger.error(f"File not found: {args.file}")
        return 1
    except (AudioSourceError, ValueError) as exc:
        logger.error(f"Cannot decode {args.file}: {exc}")
        return 1

    if args.json:
        print(json.dumps([block.to_dict() for block in blocks], ensure_ascii=False, indent=2))
    else:
        if not blocks:
            print("No EWBS signal found.")
        for block in blocks:
            print(build_block_summary(block))
            if args.show_bits:
                print(f"Bits ({block.bit_count}): {block.bits}")

    return 0 if blocks else 2


if __name__ == "__main__":
    sys.exit(main())
