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

"""Protocol helpers for the Emergency Warning Broadcast System decoder."""

from .ewbs_codes import LOCATION_CODES, LOCATION_NAMES, get_location_code, get_location_name
from .ewbs_config import load_ewbs_config
from .ewbs_decode import (
    BlockCategory,
    ConfidenceLevel,
    DecodedBlock,
    EWBSBlockDecoder,
    build_block_summary,
    decode_ewbs_bits,
)
from .ewbs_tone_detection import goertzel_magnitude, is_silence, is_tone

__all__ = [
    "LOCATION_CODES",
    "LOCATION_NAMES",
    "get_location_code",
    "get_location_name",
    "load_ewbs_config",
    "BlockCategory",
    "ConfidenceLevel",
    "DecodedBlock",
    "EWBSBlockDecoder",
    "build_block_summary",
    "decode_ewbs_bits",
    "goertzel_magnitude",
    "is_silence",
    "is_tone",
]
