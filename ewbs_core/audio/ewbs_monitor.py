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
EWBS Acquisition Monitor

Drives a sample source through the demodulator and block decoder:

    SCANNING_SILENCE -> DEMODULATING -> DECODING -> DONE
                     <-------------/

A broadcast is preceded by a long silence gap, so demodulation only arms
after more than 1.8 s of silence. During demodulation, sustained silence
ends the burst and a few milliseconds of non-tone audio abandon it as line
noise, sending the machine back to the silence scan.
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Union

from ewbs_utils.ewbs_decode import ConfidenceLevel, DecodedBlock, EWBSBlockDecoder
from ewbs_utils.ewbs_tone_detection import DEFAULT_SILENCE_THRESHOLD, DEFAULT_TONE_THRESHOLD

from .demodulator import EWBSDemodulator
from .sources import WAVSampleSource

logger = logging.getLogger(__name__)


class AcquisitionState(str, Enum):
    SCANNING_SILENCE = "scanning_silence"
    DEMODULATING = "demodulating"
    DECODING = "decoding"
    DONE = "done"


@dataclass
class AcquisitionSettings:
    """Thresholds and policies for the acquisition state machine."""
    silence_threshold: float = DEFAULT_SILENCE_THRESHOLD
    tone_threshold: float = DEFAULT_TONE_THRESHOLD
    leading_silence_ms: float = 1800.0
    burst_end_silence_ms: float = 800.0
    non_tone_abort_ms: float = 5.0
    stop_after_first: bool = True

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, object]]) -> "AcquisitionSettings":
        """Build settings from a ``load_ewbs_config()`` style mapping; unknown keys are ignored."""
        settings = cls()
        if not config:
            return settings

        for item in fields(cls):
            value = config.get(item.name)
            if value is None:
                continue
            if item.type in (bool, "bool"):
                setattr(settings, item.name, bool(value))
            else:
                setattr(settings, item.name, float(value))
        return settings


class EWBSMonitor:
    """
    Acquisition state machine for one recording.

    Usage:
        with WAVSampleSource(path) as source:
            for block in EWBSMonitor(source).iter_blocks():
                print(build_block_summary(block))

    The demodulator (correlation window and PLL) lives as long as the
    monitor; the bitstream is rebuilt for every burst.
    """

    def __init__(
        self,
        source,
        settings: Optional[AcquisitionSettings] = None,
        demodulator: Optional[EWBSDemodulator] = None,
    ):
        self.source = source
        self.settings = settings or AcquisitionSettings()
        self.demodulator = demodulator or EWBSDemodulator(source.sample_rate)

        self.samples_per_ms = source.samples_per_millisecond
        if self.samples_per_ms < 2:
            raise ValueError(f"Sample rate {source.sample_rate} Hz is too low for EWBS decoding")

        self.state = AcquisitionState.SCANNING_SILENCE
        self._bits: List[int] = []
        self._silence_ms = 0.0
        self._non_tone_ms = 0.0
        self._last_block_was_tone = False

        # Statistics
        self.bursts_decoded = 0
        self.bursts_aborted = 0
        self.bursts_rejected = 0

        self._handlers: Dict[AcquisitionState, Callable[[], Optional[DecodedBlock]]] = {
            AcquisitionState.SCANNING_SILENCE: self._scan_for_silence,
            AcquisitionState.DEMODULATING: self._demodulate,
            AcquisitionState.DECODING: self._decode_bits,
        }

    def _transition(self, new_state: AcquisitionState, reason: str) -> None:
        logger.info(f"EWBS acquisition {self.state.value} -> {new_state.value}: {reason}")
        self.state = new_state

    def _block_ms(self, block) -> float:
        return len(block) / float(self.samples_per_ms)

    def iter_blocks(self) -> Iterator[DecodedBlock]:
        """Run the state machine, yielding every block that decodes to an EWBS signal."""
        while self.state is not AcquisitionState.DONE:
            result = self._handlers[self.state]()
            if result is not None:
                yield result

    def run(self) -> List[DecodedBlock]:
        return list(self.iter_blocks())

    def _scan_for_silence(self) -> None:
        """Wait for the leading silence gap followed by sound."""
        self._silence_ms = 0.0
        block_size = self.samples_per_ms // 2
        logger.debug("Scanning for silence")

        while True:
            block = self.source.read_block(block_size)
            if len(block) == 0:
                break

            if self.demodulator.is_silence(block, self.settings.silence_threshold):
                self._silence_ms += self._block_ms(block)
                continue

            if self._silence_ms > self.settings.leading_silence_ms:
                self._transition(
                    AcquisitionState.DEMODULATING,
                    f"found {self._silence_ms:,.0f}ms of silence",
                )
                return

            self._silence_ms = 0.0

        self._transition(AcquisitionState.DONE, "nothing left to scan")

    def _demodulate(self) -> None:
        """Collect bits from tone-positive blocks until the burst ends or is abandoned."""
        self._bits = []
        self._silence_ms = 0.0
        self._non_tone_ms = 0.0
        self._last_block_was_tone = False
        block_size = self.samples_per_ms

        while True:
            block = self.source.read_block(block_size)
            if len(block) == 0:
                break

            block_ms = self._block_ms(block)

            if self.demodulator.is_silence(block, self.settings.silence_threshold):
                if self._last_block_was_tone and self._bits:
                    # The clock samples the final bit just after its tone stops
                    self._bits.extend(self.demodulator.process_block(block))
                self._last_block_was_tone = False
                self._silence_ms += block_ms
                if self._silence_ms > self.settings.burst_end_silence_ms:
                    self._transition(
                        AcquisitionState.DECODING,
                        f"found {self._silence_ms:,.0f}ms of silence after "
                        f"{self.source.samples_read} samples",
                    )
                    return
                continue

            self._silence_ms = 0.0

            if not self.demodulator.is_tone(block, self.settings.tone_threshold):
                self._last_block_was_tone = False
                self._non_tone_ms += block_ms
                if self._non_tone_ms >= self.settings.non_tone_abort_ms:
                    logger.warning(
                        f"Found {self._non_tone_ms:,.0f}ms of non-tone audio after "
                        f"{self.source.samples_read} samples; abandoning {len(self._bits)} bits"
                    )
                    self.bursts_aborted += 1
                    self._bits = []
                    self._transition(AcquisitionState.SCANNING_SILENCE, "non-tone audio")
                    return
                continue

            self._non_tone_ms = 0.0
            self._bits.extend(self.demodulator.process_block(block))
            self._last_block_was_tone = True

        if self._bits:
            self._transition(AcquisitionState.DECODING, "end of audio")
        else:
            self._transition(AcquisitionState.DONE, "end of audio, no bits received")

    def _decode_bits(self) -> Optional[DecodedBlock]:
        """Hand the finished bitstream to the block decoder."""
        bits = self._bits
        self._bits = []
        logger.info(f"Decoding {len(bits)} received EWBS bit(s)")

        block = EWBSBlockDecoder(bits).decode()

        if block.confidence is ConfidenceLevel.NONE:
            self.bursts_rejected += 1
            logger.warning(f"No EWBS signal in {len(bits)} received bit(s)")
            self._transition(AcquisitionState.SCANNING_SILENCE, "burst did not decode")
            return None

        self.bursts_decoded += 1
        logger.info(
            f"Decoded EWBS block: confidence={block.confidence.name}, "
            f"category={block.category.value}, location={block.location}"
        )
        logger.debug(f"Burst bits: {block.bits}")

        if self.settings.stop_after_first:
            self._transition(AcquisitionState.DONE, "block decoded")
        else:
            self._transition(AcquisitionState.SCANNING_SILENCE, "block decoded, scanning for more")
        return block


def decode_ewbs_file(
    path: Union[str, Path],
    config: Optional[Mapping[str, object]] = None,
) -> List[DecodedBlock]:
    """Decode every reported EWBS block in a mono PCM WAV file."""
    settings = AcquisitionSettings.from_config(config)
    with WAVSampleSource(path) as source:
        monitor = EWBSMonitor(source, settings)
        return monitor.run()


__all__ = [
    'AcquisitionState',
    'AcquisitionSettings',
    'EWBSMonitor',
    'decode_ewbs_file',
]
