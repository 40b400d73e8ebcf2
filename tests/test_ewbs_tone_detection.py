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

import numpy as np
import pytest

from ewbs_utils.ewbs_tone_detection import (
    goertzel_magnitude,
    is_silence,
    is_tone,
    rms_level,
)

SAMPLE_RATE = 32000


def _sine(freq: float, count: int, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(count) / SAMPLE_RATE
    return amplitude * np.sin(2 * np.pi * freq * t)


def test_goertzel_magnitude_on_exact_bin():
    # 500 samples: 640 Hz and 1024 Hz both fall on exact bins
    samples = _sine(640.0, 500)

    assert goertzel_magnitude(samples, 640.0, SAMPLE_RATE) == pytest.approx(0.5 * 500 / 2, rel=1e-6)
    assert goertzel_magnitude(samples, 1024.0, SAMPLE_RATE) == pytest.approx(0.0, abs=1e-6)


def test_goertzel_magnitude_of_empty_block():
    assert goertzel_magnitude([], 640.0, SAMPLE_RATE) == 0.0
    assert goertzel_magnitude(np.zeros(32), 640.0, SAMPLE_RATE) == 0.0


def test_rms_and_silence():
    assert rms_level(np.zeros(16)) == 0.0
    assert is_silence(np.zeros(16)) is True
    assert is_silence(np.full(16, 0.005)) is True
    assert is_silence(_sine(640.0, 16)) is False


def test_tone_detection_for_both_frequencies():
    assert is_tone(_sine(640.0, 500), SAMPLE_RATE) is True
    assert is_tone(_sine(1024.0, 500), SAMPLE_RATE) is True


def test_tone_detection_on_one_millisecond_blocks():
    assert is_tone(_sine(640.0, 32), SAMPLE_RATE) is True
    assert is_tone(_sine(1024.0, 32), SAMPLE_RATE) is True


def test_other_audio_is_not_a_tone():
    # 3200 Hz sits on its own bin, orthogonal to both EWBS bins
    other = _sine(3200.0, 500)
    assert is_silence(other) is False
    assert is_tone(other, SAMPLE_RATE) is False


def test_tone_threshold_is_respected():
    quiet = _sine(1024.0, 500, amplitude=0.001)
    assert is_tone(quiet, SAMPLE_RATE) is False
    assert is_tone(quiet, SAMPLE_RATE, threshold=0.1) is True


def test_goertzel_on_correlation_window_length():
    # N = sample_rate / 640 = 50 gives 640 Hz wide bins
    samples = _sine(640.0, 50)

    assert goertzel_magnitude(samples, 640.0, SAMPLE_RATE) == pytest.approx(0.5 * 50 / 2, rel=1e-6)
    assert goertzel_magnitude(samples, 1280.0, SAMPLE_RATE) == pytest.approx(0.0, abs=1e-6)


def test_neighbouring_frequencies_share_a_bin_on_short_windows():
    # 840 Hz rounds to the same bin as 640 Hz when N = 50
    samples = _sine(640.0, 50)

    assert goertzel_magnitude(samples, 840.0, SAMPLE_RATE) == pytest.approx(
        goertzel_magnitude(samples, 640.0, SAMPLE_RATE)
    )
