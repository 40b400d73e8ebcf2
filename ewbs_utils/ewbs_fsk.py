"""Helpers for building EWBS AFSK bursts (protocol constants and the reference encoder)."""

from __future__ import annotations

import math
import wave
from array import array
from datetime import datetime
from typing import Iterable, List, Sequence, Union

from .ewbs_codes import LOCATION_CODE_LENGTH, LOCATION_CODES

EWBS_BIT_RATE = 64  # bits per second
EWBS_SPACE_FREQ = 640.0  # Hz, bit 0
EWBS_MARK_FREQ = 1024.0  # Hz, bit 1

EWBS_PRECEDING_CODE_START = "1100"
EWBS_PRECEDING_CODE_END = "0011"
EWBS_FIXED_CODE_CATEGORY_1 = "0000111001101101"
EWBS_FIXED_CODE_CATEGORY_2 = "1111000110010010"
EWBS_FIXED_CODES = (EWBS_FIXED_CODE_CATEGORY_1, EWBS_FIXED_CODE_CATEGORY_2)

EWBS_BLOCK_LENGTH = 96
EWBS_FIELD_LENGTH = 16

# Reference transmission layout used by the companion generator
EWBS_SAMPLE_RATE = 32000
EWBS_AMPLITUDE = 0.5 * 32767
EWBS_START_REPEATS = 9
EWBS_END_REPEATS = 3
EWBS_END_GAP_MS = 1530
EWBS_LEADING_SILENCE_MS = 3000
EWBS_TRAILING_SILENCE_MS = 1000

BitsLike = Union[str, Iterable[int], Iterable[bool]]


def validate_bits(bits: str) -> str:
    """Ensure ``bits`` only contains the characters '0' and '1'."""

    if not isinstance(bits, str):
        raise ValueError("Bit strings must be provided as text.")
    for char in bits:
        if char not in "01":
            raise ValueError("The bit string can only contain '0' and '1'.")
    return bits


def normalize_bits(bits: BitsLike) -> str:
    """Return ``bits`` as a '0'/'1' string, accepting text or integer sequences."""

    if isinstance(bits, str):
        return validate_bits(bits)

    chars: List[str] = []
    for bit in bits:
        if bit in (0, 1):
            chars.append("1" if bit else "0")
        else:
            raise ValueError(f"Invalid bit value: {bit!r}")
    return "".join(chars)


def _lsb_first(value: int, width: int) -> str:
    if not 0 <= value < (1 << width):
        raise ValueError(f"Value {value} does not fit into {width} bits")
    return format(value, f"0{width}b")[::-1]


def encode_hour(hour: int) -> int:
    """Apply the regulatory time-code offset (郵政省告示第405号 別表第4号).

    The decoder maps raw values >= 16 to ``raw - 8`` and smaller values to
    ``raw + 8``, so only hours 8-23 round-trip.
    """

    if not 0 <= hour <= 23:
        raise ValueError(f"Hour out of range: {hour}")
    if hour >= 16:
        return hour + 8
    if hour >= 8:
        return hour - 8
    raise ValueError(f"Hour {hour} cannot be represented by the EWBS time code")


def encode_ewbs_block_bits(
    location_code: str,
    day: int,
    month: int,
    hour: int,
    year_digit: int,
    *,
    start_signal: bool = True,
    fixed_code: str = EWBS_FIXED_CODE_CATEGORY_1,
) -> str:
    """Encode one 96-bit EWBS block (fixed code + location, date and time fields)."""

    validate_bits(location_code)
    if len(location_code) != LOCATION_CODE_LENGTH or location_code not in LOCATION_CODES:
        raise ValueError(f"Unknown location code: {location_code}")
    if fixed_code not in EWBS_FIXED_CODES:
        raise ValueError(f"Unknown fixed code: {fixed_code}")
    if not 0 <= day <= 31:
        raise ValueError(f"Day out of range: {day}")
    if not 0 <= month <= 12:
        raise ValueError(f"Month out of range: {month}")
    if not 0 <= year_digit <= 9:
        raise ValueError(f"Year digit out of range: {year_digit}")

    if start_signal:
        location_field = "10" + location_code + "00"
        day_month_field = "010" + _lsb_first(day, 5) + "0" + _lsb_first(month, 4) + "100"
        hour_year_field = "011" + _lsb_first(encode_hour(hour), 5) + "0" + _lsb_first(year_digit, 4) + "100"
    else:
        location_field = "01" + location_code + "11"
        day_month_field = "100" + _lsb_first(day, 5) + "0" + _lsb_first(month, 4) + "111"
        hour_year_field = "101" + _lsb_first(encode_hour(hour), 5) + "0" + _lsb_first(year_digit, 4) + "111"

    block = (
        fixed_code + location_field
        + fixed_code + day_month_field
        + fixed_code + hour_year_field
    )
    return block


def generate_fsk_samples(
    bits: BitsLike,
    sample_rate: int,
    bit_rate: float,
    mark_freq: float,
    space_freq: float,
    amplitude: float,
) -> List[int]:
    """Render NRZ AFSK samples while preserving the fractional bit timing."""

    samples: List[int] = []
    phase = 0.0
    delta = math.tau / sample_rate
    samples_per_bit = sample_rate / bit_rate
    carry = 0.0

    for char in normalize_bits(bits):
        freq = mark_freq if char == "1" else space_freq
        step = freq * delta
        total = samples_per_bit + carry
        sample_count = int(total)
        if sample_count <= 0:
            sample_count = 1
        carry = total - sample_count

        for _ in range(sample_count):
            samples.append(int(math.sin(phase) * amplitude))
            phase = (phase + step) % math.tau

    return samples


def generate_silence(duration_ms: float, sample_rate: int) -> List[int]:
    """Return ``duration_ms`` worth of digital silence."""

    return [0] * int(round(sample_rate * duration_ms / 1000.0))


def render_ewbs_signal(
    location_code: str,
    issued: datetime,
    *,
    start_signal: bool = True,
    category: int = 1,
    sample_rate: int = EWBS_SAMPLE_RATE,
    amplitude: float = EWBS_AMPLITUDE,
) -> List[int]:
    """Render a complete reference transmission as 16-bit PCM sample values.

    Start signals repeat the block ten times back to back; end signals send it
    four times with 1530 ms gaps. The whole transmission is wrapped in
    silence so that the receiver's gap detection arms.
    """

    if category not in (1, 2):
        raise ValueError(f"Unknown EWBS category: {category}")
    if category == 2 and not start_signal:
        raise ValueError("Category II end signals do not exist; use category 1.")

    fixed_code = EWBS_FIXED_CODE_CATEGORY_1 if category == 1 else EWBS_FIXED_CODE_CATEGORY_2
    preceding_code = EWBS_PRECEDING_CODE_START if start_signal else EWBS_PRECEDING_CODE_END

    block = encode_ewbs_block_bits(
        location_code,
        issued.day,
        issued.month,
        issued.hour,
        issued.year % 10,
        start_signal=start_signal,
        fixed_code=fixed_code,
    )

    def _tone(bits: str) -> List[int]:
        return generate_fsk_samples(
            bits,
            sample_rate=sample_rate,
            bit_rate=EWBS_BIT_RATE,
            mark_freq=EWBS_MARK_FREQ,
            space_freq=EWBS_SPACE_FREQ,
            amplitude=amplitude,
        )

    samples = generate_silence(EWBS_LEADING_SILENCE_MS, sample_rate)

    if start_signal:
        samples.extend(_tone(preceding_code + block * (1 + EWBS_START_REPEATS)))
    else:
        samples.extend(_tone(preceding_code + block))
        for _ in range(EWBS_END_REPEATS):
            samples.extend(generate_silence(EWBS_END_GAP_MS, sample_rate))
            samples.extend(_tone(block))
        samples.extend(generate_silence(EWBS_END_GAP_MS, sample_rate))

    samples.extend(generate_silence(EWBS_TRAILING_SILENCE_MS, sample_rate))
    return samples


def write_ewbs_wav(path: str, samples: Sequence[int], sample_rate: int = EWBS_SAMPLE_RATE) -> None:
    """Write mono 16-bit PCM samples to ``path``."""

    with wave.open(str(path), "wb") as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(array("h", samples).tobytes())


__all__ = [
    "EWBS_BIT_RATE",
    "EWBS_SPACE_FREQ",
    "EWBS_MARK_FREQ",
    "EWBS_PRECEDING_CODE_START",
    "EWBS_PRECEDING_CODE_END",
    "EWBS_FIXED_CODE_CATEGORY_1",
    "EWBS_FIXED_CODE_CATEGORY_2",
    "EWBS_FIXED_CODES",
    "EWBS_BLOCK_LENGTH",
    "EWBS_FIELD_LENGTH",
    "EWBS_SAMPLE_RATE",
    "EWBS_AMPLITUDE",
    "EWBS_START_REPEATS",
    "EWBS_END_REPEATS",
    "EWBS_END_GAP_MS",
    "EWBS_LEADING_SILENCE_MS",
    "EWBS_TRAILING_SILENCE_MS",
    "validate_bits",
    "normalize_bits",
    "encode_hour",
    "encode_ewbs_block_bits",
    "generate_fsk_samples",
    "generate_silence",
    "render_ewbs_signal",
    "write_ewbs_wav",
]
