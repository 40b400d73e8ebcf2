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
Audio Pipeline for EWBS Station

Sample sources, the correlation window, the AFSK demodulator with PLL bit
clock recovery, and the acquisition state machine that ties them together.
"""

from .ringbuffer import CorrelationWindow
from .demodulator import EWBSDemodulator, PhaseLockedLoop
from .sources import ArraySampleSource, AudioSourceError, UnsupportedAudioFormat, WAVSampleSource
from .ewbs_monitor import AcquisitionSettings, AcquisitionState, EWBSMonitor, decode_ewbs_file

__all__ = [
    'CorrelationWindow',
    'EWBSDemodulator',
    'PhaseLockedLoop',
    'AudioSourceError',
    'UnsupportedAudioFormat',
    'WAVSampleSource',
    'ArraySampleSource',
    'AcquisitionSettings',
    'AcquisitionState',
    'EWBSMonitor',
    'decode_ewbs_file',
]
