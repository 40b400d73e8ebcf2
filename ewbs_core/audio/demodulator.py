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

"""
EWBS AFSK Demodulator

Per-sample binary FSK demodulation with bit clock recovery:
- dual-frequency I/Q correlation over a sliding window of N = sample_rate / 640
  samples (Sailer, "DSP Modems", 1995; the structure multimon-ng also uses)
- a first-order digital phase-locked loop with a 16-bit phase register that
  decides when the current discriminator output becomes a finished bit

Block-level silence and tone checks are exposed here as well so the
acquisition loop only talks to one object.
"""

import logging
import math
from typing import List, Optional

import numpy as np

from ewbs_utils.ewbs_fsk import EWBS_BIT_RATE, EWBS_MARK_FREQ, EWBS_SPACE_FREQ
from ewbs_utils.ewbs_tone_detection import (
    DEFAULT_SILENCE_THRESHOLD,
    DEFAULT_TONE_THRESHOLD,
    is_silence,
    is_tone,
)

from .ringbuffer import CorrelationWindow

logger = logging.getLogger(__name__)

PHASE_MAX = 0x10000  # 16-bit phase register


class PhaseLockedLoop:
    """
    Bit clock recovery without a clock channel.

    The phase advances by ``PHASE_MAX / samples_per_bit`` every sample. A bit
    is due once the phase reaches ``PHASE_MAX``. Every discriminator
    transition nudges the phase by half an increment towards the point where
    transitions land mid-cycle, which keeps sampling near the bit centres
    despite small rate differences between transmitter and recording.
    """

    def __init__(self, samples_per_bit: int):
        if samples_per_bit <= 0:
            raise ValueError("samples_per_bit must be positive")

        self.samples_per_bit = samples_per_bit
        self.increment = PHASE_MAX // samples_per_bit
        self.correction = self.increment // 2
        self.phase = 0
        self.corrections = 0

    def increment_phase(self) -> None:
        """Advance one sample. Call after every processed sample."""
        self.phase = (self.phase % PHASE_MAX) + self.increment

    def correct_phase(self) -> None:
        """Nudge the phase after a transition of the instantaneous bit."""
        if self.phase < PHASE_MAX // 2:
            self.phase += self.correction  # Transition came early
        else:
            self.phase -= self.correction  # Transition came late
        self.corrections += 1

    @property
    def can_use_bit(self) -> bool:
        """True when a full bit period has elapsed."""
        return self.phase >= PHASE_MAX

    def reset(self) -> None:
        self.phase = 0
        self.corrections = 0


class EWBSDemodulator:
    """
    Streaming EWBS demodulator.

    Usage:
        demodulator = EWBSDemodulator(sample_rate=32000)

        for block in blocks:
            if demodulator.is_tone(block):
                bits.extend(demodulator.process_block(block))

    The correlation window and PLL persist across calls, so the object
    should live as long as the recording being processed.
    """

    def __init__(self, sample_rate: int):
        """
        Initialize the demodulator.

        Args:
            sample_rate: Audio sample rate in Hz; must be a multiple of 640
        """
        if sample_rate <= 0 or sample_rate % int(EWBS_SPACE_FREQ) != 0:
            raise ValueError(
                f"Sample rate {sample_rate} Hz is not a multiple of {int(EWBS_SPACE_FREQ)} Hz"
            )

        self.sample_rate = sample_rate
        self.window_length = sample_rate // int(EWBS_SPACE_FREQ)
        self.samples_per_bit = sample_rate // EWBS_BIT_RATE

        # Rows: 640 Hz I/Q, 1024 Hz I/Q
        self._coefficients = self._generate_correlation_tables()

        self.window = CorrelationWindow(self.window_length)
        self.pll = PhaseLockedLoop(self.samples_per_bit)
        self.previous_bit = 0

        # Statistics
        self.samples_processed = 0
        self.bits_emitted = 0

        logger.info(
            f"Initialized EWBSDemodulator: sample_rate={sample_rate}Hz, "
            f"window={self.window_length} samples, {self.samples_per_bit} samples/bit"
        )

    def _generate_correlation_tables(self) -> np.ndarray:
        """Correlation tables for the space and mark frequencies."""
        tables = np.zeros((4, self.window_length), dtype=np.float64)

        for i in range(self.window_length):
            t = 2.0 * math.pi * i / self.sample_rate
            tables[0, i] = math.cos(EWBS_SPACE_FREQ * t)
            tables[1, i] = math.sin(EWBS_SPACE_FREQ * t)
            tables[2, i] = math.cos(EWBS_MARK_FREQ * t)
            tables[3, i] = math.sin(EWBS_MARK_FREQ * t)

        return tables

    def is_silence(self, samples, threshold: float = DEFAULT_SILENCE_THRESHOLD) -> bool:
        return is_silence(samples, threshold)

    def is_tone(self, samples, threshold: float = DEFAULT_TONE_THRESHOLD) -> bool:
        return is_tone(samples, self.sample_rate, threshold)

    def demodulate_sample(self, sample: float) -> float:
        """
        Push ``sample`` into the window and return the discriminator value.

        Negative values mean bit 0 (640 Hz dominates), anything else bit 1.
        The correlation is recomputed over the whole window every call.
        """
        self.window.push(sample)
        lo_i, lo_q, hi_i, hi_q = self._coefficients @ self.window.contents()
        return float(hi_i * hi_i + hi_q * hi_q - lo_i * lo_i - lo_q * lo_q)

    def process_sample(self, sample: float) -> Optional[int]:
        """Run one sample through discriminator and PLL; return a finished bit or None."""
        bit = 0 if self.demodulate_sample(sample) < 0 else 1

        if bit != self.previous_bit:
            self.pll.correct_phase()

        emitted = bit if self.pll.can_use_bit else None

        self.previous_bit = bit
        self.pll.increment_phase()
        self.samples_processed += 1

        if emitted is not None:
            self.bits_emitted += 1
        return emitted

    def process_block(self, samples) -> List[int]:
        """Demodulate every sample of ``samples`` and return the bits emitted."""
        bits: List[int] = []
        for sample in samples:
            bit = self.process_sample(float(sample))
            if bit is not None:
                bits.append(bit)
        return bits

    def reset(self) -> None:
        """Return window and PLL to their initial state."""
        self.window.clear()
        self.pll.reset()
        self.previous_bit = 0
        self.samples_processed = 0
        self.bits_emitted = 0
        logger.debug("EWBSDemodulator reset to initial state")


__all__ = ['PHASE_MAX', 'PhaseLockedLoop', 'EWBSDemodulator']
