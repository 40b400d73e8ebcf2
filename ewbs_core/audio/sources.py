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
Audio Sample Sources

Forward-only, lazily read sample sequences for the EWBS decoder. Only the
plain 44-byte RIFF/WAVE layout is accepted: one "fmt " sub-chunk followed
directly by the "data" sub-chunk, mono, uncompressed PCM.
"""

import io
import logging
import struct
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

import numpy as np

logger = logging.getLogger(__name__)

WAV_HEADER_SIZE = 44
_WAV_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")

# bytes per sample -> (numpy dtype, offset, scale)
_SAMPLE_FORMATS = {
    1: (np.dtype("u1"), 127.5, 256.0),
    2: (np.dtype("<i2"), 0.0, 32768.0),
    4: (np.dtype("<i4"), 0.0, 2147483648.0),
    8: (np.dtype("<i8"), 0.0, 9223372036854775808.0),
}


class AudioSourceError(RuntimeError):
    """Raised when samples cannot be provided by an audio source."""


class UnsupportedAudioFormat(AudioSourceError):
    """Raised when a file is not a mono PCM WAVE file with the plain header layout."""


class WAVSampleSource:
    """
    Lazy reader for mono PCM WAV files.

    Samples are normalised to roughly [-1.0, 1.0]. The source can step back
    by a single sample with ``backtrack()``; otherwise it only moves forward.
    An empty block from ``read_block()`` marks the end of the data.
    """

    def __init__(self, source: Union[str, Path, BinaryIO]):
        if isinstance(source, (str, Path)):
            self._handle: Optional[BinaryIO] = open(source, "rb")
            self._owns_handle = True
            self.name = str(source)
        else:
            self._handle = source
            self._owns_handle = False
            self.name = getattr(source, "name", "<stream>")

        try:
            self._parse_header()
        except Exception:
            self.close()
            raise

        self._bytes_per_sample = self.bits_per_sample // 8
        self._dtype, self._offset, self._scale = _SAMPLE_FORMATS[self._bytes_per_sample]

        # The data chunk may claim more than the file holds
        available_bytes = self._measure_available_bytes()
        self.sample_count = min(self.data_size, available_bytes) // self._bytes_per_sample
        self.samples_read = 0

        logger.info(
            f"Opened WAV source {self.name}: {self.sample_rate}Hz, "
            f"{self.bits_per_sample}-bit, {self.sample_count} samples"
        )

    def _parse_header(self) -> None:
        """Parse the fixed RIFF header; anything unexpected is fatal."""
        header = self._handle.read(WAV_HEADER_SIZE)
        if len(header) < WAV_HEADER_SIZE:
            raise UnsupportedAudioFormat("File is too short to contain a WAV header.")

        (
            chunk_id,
            self.chunk_size,
            wave_format,
            subchunk1_id,
            self.subchunk1_size,
            self.audio_format,
            self.channels,
            self.sample_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
            subchunk2_id,
            self.data_size,
        ) = _WAV_HEADER.unpack(header)

        if chunk_id != b"RIFF":
            raise UnsupportedAudioFormat('ChunkID field is not "RIFF".')
        if wave_format != b"WAVE":
            raise UnsupportedAudioFormat('Format field is not "WAVE".')
        if subchunk1_id != b"fmt ":
            raise UnsupportedAudioFormat('Subchunk1ID field is not "fmt ".')
        if subchunk2_id != b"data":
            raise UnsupportedAudioFormat('Subchunk2ID field is not "data".')
        if self.audio_format != 1:
            raise UnsupportedAudioFormat("Unsupported audio format. Only PCM is supported.")
        if self.channels != 1:
            raise UnsupportedAudioFormat("Unsupported number of audio channels. Only mono is supported.")
        if self.bits_per_sample % 8 or (self.bits_per_sample // 8) not in _SAMPLE_FORMATS:
            raise UnsupportedAudioFormat(f"Unsupported sample width: {self.bits_per_sample} bits.")
        if self.sample_rate <= 0:
            raise UnsupportedAudioFormat("Sample rate must be positive.")

    def _measure_available_bytes(self) -> int:
        try:
            current = self._handle.tell()
            end = self._handle.seek(0, io.SEEK_END)
            self._handle.seek(current, io.SEEK_SET)
        except (OSError, ValueError) as exc:
            raise AudioSourceError(f"Audio source is not seekable: {exc}") from exc
        return max(0, end - current)

    @property
    def samples_per_millisecond(self) -> int:
        return (self.sample_rate * self.channels) // 1000

    @property
    def samples_available(self) -> bool:
        return self._handle is not None and self.samples_read < self.sample_count

    @property
    def duration_seconds(self) -> float:
        return self.sample_count / float(self.sample_rate)

    def _normalise(self, raw: np.ndarray) -> np.ndarray:
        return (raw.astype(np.float64) - self._offset) / self._scale

    def read_block(self, count: int) -> np.ndarray:
        """Read up to ``count`` samples; an empty array means end of data."""
        if self._handle is None:
            raise AudioSourceError("Audio source is closed.")

        remaining = self.sample_count - self.samples_read
        count = max(0, min(int(count), remaining))
        if count == 0:
            return np.zeros(0, dtype=np.float64)

        payload = self._handle.read(count * self._bytes_per_sample)
        usable = len(payload) // self._bytes_per_sample
        if usable < count:
            # File shrank underneath us; stop at what actually arrived
            self.sample_count = self.samples_read + usable
            payload = payload[:usable * self._bytes_per_sample]

        self.samples_read += usable
        return self._normalise(np.frombuffer(payload, dtype=self._dtype))

    def read_sample(self) -> float:
        """Read a single sample. Reading past the end is a caller error."""
        if not self.samples_available:
            raise AudioSourceError("No more samples available for reading.")
        block = self.read_block(1)
        if len(block) == 0:
            raise AudioSourceError("No more samples available for reading.")
        return float(block[0])

    def backtrack(self) -> bool:
        """Step back by one sample. Returns False at the start of the data."""
        if self._handle is None or self.samples_read <= 0:
            return False

        self._handle.seek(-self._bytes_per_sample, io.SEEK_CUR)
        self.samples_read -= 1
        return True

    def __iter__(self) -> Iterator[float]:
        while self.samples_available:
            block = self.read_block(4096)
            if len(block) == 0:
                return
            for sample in block:
                yield float(sample)

    def close(self) -> None:
        if self._handle is not None and self._owns_handle:
            self._handle.close()
        self._handle = None

    def __enter__(self) -> "WAVSampleSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ArraySampleSource:
    """In-memory sample source with the same reading interface as ``WAVSampleSource``."""

    def __init__(self, samples, sample_rate: int):
        if sample_rate <= 0:
            raise ValueError("Sample rate must be positive.")
        self._samples = np.asarray(samples, dtype=np.float64)
        self.sample_rate = int(sample_rate)
        self.sample_count = len(self._samples)
        self.samples_read = 0
        self.name = "<memory>"

    @property
    def samples_per_millisecond(self) -> int:
        return self.sample_rate // 1000

    @property
    def samples_available(self) -> bool:
        return self.samples_read < self.sample_count

    def read_block(self, count: int) -> np.ndarray:
        start = self.samples_read
        end = min(self.sample_count, start + max(0, int(count)))
        self.samples_read = end
        return self._samples[start:end]

    def read_sample(self) -> float:
        if not self.samples_available:
            raise AudioSourceError("No more samples available for reading.")
        return float(self.read_block(1)[0])

    def backtrack(self) -> bool:
        if self.samples_read <= 0:
            return False
        self.samples_read -= 1
        return True


__all__ = [
    "WAV_HEADER_SIZE",
    "AudioSourceError",
    "UnsupportedAudioFormat",
    "WAVSampleSource",
    "ArraySampleSource",
]
