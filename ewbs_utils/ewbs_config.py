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

"""Runtime configuration for the EWBS decoder and the reference signal generator."""

import os
from typing import Dict

from .ewbs_fsk import EWBS_SAMPLE_RATE
from .ewbs_tone_detection import DEFAULT_SILENCE_THRESHOLD, DEFAULT_TONE_THRESHOLD


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or '').strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or '').strip().lower()
    if not raw:
        return default
    return raw in {'1', 'true', 'yes', 'on'}


def load_ewbs_config() -> Dict[str, object]:
    """Build a runtime configuration dictionary from ``EWBS_*`` environment variables."""

    config: Dict[str, object] = {
        'silence_threshold': _env_float('EWBS_SILENCE_THRESHOLD', DEFAULT_SILENCE_THRESHOLD),
        'tone_threshold': _env_float('EWBS_TONE_THRESHOLD', DEFAULT_TONE_THRESHOLD),
        'leading_silence_ms': _env_float('EWBS_LEADING_SILENCE_MS', 1800.0),
        'burst_end_silence_ms': _env_float('EWBS_BURST_END_SILENCE_MS', 800.0),
        'non_tone_abort_ms': _env_float('EWBS_NON_TONE_ABORT_MS', 5.0),
        'stop_after_first': _env_bool('EWBS_STOP_AFTER_FIRST', True),
        'sample_rate': int(_env_float('EWBS_SAMPLE_RATE', EWBS_SAMPLE_RATE)),
        'amplitude': _env_float('EWBS_AMPLITUDE', 0.5),
        'log_level': (os.getenv('EWBS_LOG_LEVEL') or 'INFO').strip().upper(),
    }

    return config


__all__ = ['load_ewbs_config']
