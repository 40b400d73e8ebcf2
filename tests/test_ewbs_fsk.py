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

import math
from datetime import datetime

import pytest

from ewbs_core.audio.sources import WAVSampleSource
from ewbs_utils.ewbs_codes import get_location_code
from ewbs_utils.ewbs_fsk import (
    EWBS_BLOCK_LENGTH,
    EWBS_FIXED_CODE_CATEGORY_2,
    EWBS_MARK_FREQ,
    EWBS_SPACE_FREQ,
    encode_ewbs_block_bits,
    encode_hour,
    generate_fsk_samples,
    generate_silence,
    normalize_bits,
    render_ewbs_signal,
    write_ewbs_wav,
)

TOKYO = get_location_code("東京都")
ISSUED = datetime(2023, 6, 15, 9, 30)


@pytest.mark.parametrize(
    "hour, raw",
    [(8, 0), (9, 1), (15, 7), (16, 24), (23, 31)],
)
def test_encode_hour_applies_time_code_offset(hour, raw):
    assert encode_hour(hour) == raw


@pytest.mark.parametrize("hour", [0, 7, 24, -1])
def test_encode_hour_rejects_unrepresentable_hours(hour):
    with pytest.raises(ValueError):
        encode_hour(hour)


def test_encode_block_layout():
    block = encode_ewbs_block_bits(TOKYO, 15, 6, 9, 3)

    assert len(block) == EWBS_BLOCK_LENGTH
    assert block[16:32] == "10" + TOKYO + "00"
    # Day 15 and month 6, least significant bit first
    assert block[48:64] == "010" + "11110" + "0" + "0110" + "100"


def test_encode_block_end_framing():
    block = encode_ewbs_block_bits(TOKYO, 1, 1, 8, 0, start_signal=False)

    assert block[16:18] == "01" and block[30:32] == "11"
    assert block[48:51] == "100" and block[61:64] == "111"
    assert block[80:83] == "101" and block[93:96] == "111"


def test_encode_block_validates_inputs():
    with pytest.raises(ValueError):
        encode_ewbs_block_bits("111111111111", 1, 1, 9, 0)
    with pytest.raises(ValueError):
        encode_ewbs_block_bits(TOKYO, 32, 1, 9, 0)
    with pytest.raises(ValueError):
        encode_ewbs_block_bits(TOKYO, 1, 13, 9, 0)
    with pytest.raises(ValueError):
        encode_ewbs_block_bits(TOKYO, 1, 1, 9, 10)
    with pytest.raises(ValueError):
        encode_ewbs_block_bits(TOKYO, 1, 1, 9, 0, fixed_code="0" * 16)


def test_normalize_bits_accepts_sequences():
    assert normalize_bits([1, 0, True, False]) == "1010"
    with pytest.raises(ValueError):
        normalize_bits([0, 2])
    with pytest.raises(ValueError):
        normalize_bits("01x")


def test_generate_fsk_samples_bit_timing():
    samples = generate_fsk_samples(
        "01" * 32,
        sample_rate=32000,
        bit_rate=64,
        mark_freq=EWBS_MARK_FREQ,
        space_freq=EWBS_SPACE_FREQ,
        amplitude=1000,
    )

    assert len(samples) == 32000
    assert max(abs(value) for value in samples) <= 1000


def test_generate_fsk_samples_is_phase_continuous():
    amplitude = 10000
    samples = generate_fsk_samples(
        "0110",
        sample_rate=32000,
        bit_rate=64,
        mark_freq=EWBS_MARK_FREQ,
        space_freq=EWBS_SPACE_FREQ,
        amplitude=amplitude,
    )

    # Largest possible step between neighbouring samples of the higher tone
    max_step = amplitude * 2 * math.pi * EWBS_MARK_FREQ / 32000 + 2
    steps = [abs(b - a) for a, b in zip(samples, samples[1:])]
    assert max(steps) <= max_step


def test_generate_silence_length():
    assert generate_silence(1530, 32000) == [0] * 48960


def test_render_start_signal_length():
    samples = render_ewbs_signal(TOKYO, ISSUED)

    # 3 s lead-in, preceding code plus ten blocks, 1 s tail
    expected = 96000 + (4 + 96 * 10) * 500 + 32000
    assert len(samples) == expected
    assert all(value == 0 for value in samples[:96000])
    assert any(value != 0 for value in samples[96000:96500])


def test_render_end_signal_length():
    samples = render_ewbs_signal(TOKYO, ISSUED, start_signal=False)

    gap = 48960
    expected = 96000 + (4 + 96) * 500 + 3 * (gap + 96 * 500) + gap + 32000
    assert len(samples) == expected


def test_render_rejects_category_two_end_signal():
    with pytest.raises(ValueError):
        render_ewbs_signal(TOKYO, ISSUED, start_signal=False, category=2)


def test_render_rejects_early_morning_hours():
    with pytest.raises(ValueError):
        render_ewbs_signal(TOKYO, datetime(2023, 6, 15, 3, 0))


def test_category_two_uses_category_two_fixed_code():
    block = encode_ewbs_block_bits(TOKYO, 1, 1, 9, 0, fixed_code=EWBS_FIXED_CODE_CATEGORY_2)
    assert block.startswith(EWBS_FIXED_CODE_CATEGORY_2)
    assert block.count(EWBS_FIXED_CODE_CATEGORY_2) == 3


def test_write_ewbs_wav_is_readable(temp_dir):
    samples = render_ewbs_signal(TOKYO, ISSUED, sample_rate=32000)
    path = temp_dir / "ewbs.wav"

    write_ewbs_wav(path, samples, 32000)

    with WAVSampleSource(path) as source:
        assert source.sample_rate == 32000
        assert source.bits_per_sample == 16
        assert source.sample_count == len(samples)
