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

"""
EWBS Tone and Silence Detection

Block-level checks used by the acquisition loop before any sample is handed
to the demodulator:
- Goertzel magnitude at the two EWBS tone frequencies (640 Hz / 1024 Hz)
- RMS-based silence detection
"""

import math
from typing import Sequence, Union

import numpy as np

from .ewbs_fsk import EWBS_MARK_FREQ, EWBS_SPACE_FREQ

DEFAULT_SILENCE_THRESHOLD = 0.01
DEFAULT_TONE_THRESHOLD = 0.5

SampleBlock = Union[np.ndarray, Sequence[float]]


def goertzel_magnitude(samples: SampleBlock, target_freq: float, sample_rate: int) -> float:
    """
    Return the Goertzel magnitude of ``target_freq`` within ``samples``.

    The target is rounded to the nearest DFT bin for the block length. Phase
    information is not computed, only the amplitude of the bin.
    """
    n = len(samples)
    if n == 0:
        return 0.0

    k = int(0.5 + (n * target_freq) / sample_rate)
    omega = (2.0 * math.pi / n) * k
    coeff = 2.0 * math.cos(omega)

    q0 = 0.0
    q1 = 0.0
    q2 = 0.0

    for sample in samples:
        q0 = coeff * q1 - q2 + float(sample)
        q2 = q1
        q1 = q0

    power = q1 * q1 + q2 * q2 - q1 * q2 * coeff
    # Rounding can leave a tiny negative value for an all-zero block
    return math.sqrt(power) if power > 0.0 else 0.0


def rms_level(samples: SampleBlock) -> float:
    """Root-mean-square level of a block of normalised samples."""
    if len(samples) == 0:
        return 0.0
    data = np.asarray(samples, dtype=np.float64)
    return float(np.sqrt(np.mean(data * data)))


def is_silence(samples: SampleBlock, threshold: float = DEFAULT_SILENCE_THRESHOLD) -> bool:
    """True when the RMS energy of the block is below ``threshold``."""
    return rms_level(samples) < threshold


def is_tone(
    samples: SampleBlock,
    sample_rate: int,
    threshold: float = DEFAULT_TONE_THRESHOLD,
) -> bool:
    """True when either EWBS tone frequency is present above ``threshold``."""
    return (
        goertzel_magnitude(samples, EWBS_SPACE_FREQ, sample_rate) > threshold
        or goertzel_magnitude(samples, EWBS_MARK_FREQ, sample_rate) > threshold
    )


__all__ = [
    "DEFAULT_SILENCE_THRESHOLD",
    "DEFAULT_TONE_THRESHOLD",
    "goertzel_magnitude",
    "rms_level",
    "is_silence",
    "is_tone",
]
