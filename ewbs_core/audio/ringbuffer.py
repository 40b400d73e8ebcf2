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
Fixed-Length Circular Sample Window

Holds the most recent N samples for the correlation demodulator. The
length is fixed at construction; every push overwrites the oldest slot and
advances the write index, which never leaves this class.
"""

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class WindowStats:
    """Statistics for correlation window monitoring."""
    length: int
    total_pushed: int

    @property
    def is_primed(self) -> bool:
        """True once every slot holds a real sample."""
        return self.total_pushed >= self.length


class CorrelationWindow:
    """
    Circular buffer of the most recent ``length`` samples.

    Callers only ever push samples and read the contents back in temporal
    order (oldest first); wrap-around bookkeeping stays internal.
    """

    def __init__(self, length: int, dtype=np.float64):
        """
        Initialize the window.

        Args:
            length: Number of samples held (never changes afterwards)
            dtype: NumPy data type for samples (default: float64)
        """
        if length < 1:
            raise ValueError("Correlation window must hold at least one sample")

        self.length = int(length)
        self.dtype = dtype

        self._buffer = np.zeros(self.length, dtype=dtype)
        self._index = 0  # Slot that the next push overwrites
        self._total_pushed = 0

        # Pre-allocated output to avoid an allocation per sample
        self._ordered = np.zeros(self.length, dtype=dtype)

        logger.debug(f"Created CorrelationWindow: length={self.length} samples, dtype={dtype}")

    def __len__(self) -> int:
        return self.length

    def push(self, sample: float) -> None:
        """Insert ``sample``, overwriting the oldest slot."""
        self._buffer[self._index] = sample
        self._index = (self._index + 1) % self.length
        self._total_pushed += 1

    def contents(self) -> np.ndarray:
        """
        Return the window contents oldest first.

        The returned array is reused by the next call; copy it if it must
        outlive the following push.
        """
        if self._index == 0:
            # Window aligns with buffer start, no reordering needed
            self._ordered[:] = self._buffer
            return self._ordered

        # [index:] holds the older samples, [:index] the newer ones
        tail_len = self.length - self._index
        self._ordered[:tail_len] = self._buffer[self._index:]
        self._ordered[tail_len:] = self._buffer[:self._index]
        return self._ordered

    def clear(self) -> None:
        """Zero the window and restart the write index."""
        self._buffer.fill(0.0)
        self._index = 0
        self._total_pushed = 0

    def get_stats(self) -> WindowStats:
        return WindowStats(length=self.length, total_pushed=self._total_pushed)


__all__ = ['CorrelationWindow', 'WindowStats']
