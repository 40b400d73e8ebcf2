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

"""Pytest configuration and shared fixtures for EWBS Station tests.

This module provides common fixtures, test utilities, and configuration
that can be used across all test modules.
"""
import struct
import sys
import tempfile
from pathlib import Path
from typing import Generator, Sequence

import pytest

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# ============================================================================
# Helpers
# ============================================================================

_SAMPLE_PACKING = {8: "B", 16: "h", 32: "i", 64: "q"}


def build_wav_bytes(
    samples: Sequence[int],
    sample_rate: int = 32000,
    bits_per_sample: int = 16,
    channels: int = 1,
    audio_format: int = 1,
    data_id: bytes = b"data",
    data_size: int = None,
) -> bytes:
    """Assemble a 44-byte header WAV image around raw integer samples."""
    packing = _SAMPLE_PACKING.get(bits_per_sample, "h")
    payload = struct.pack(f"<{len(samples)}{packing}", *samples) if samples else b""
    if data_size is None:
        data_size = len(payload)

    block_align = channels * bits_per_sample // 8
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        audio_format,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bits_per_sample,
        data_id,
        data_size,
    )
    return header + payload


# ============================================================================
# Function-level fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test use.

    The directory is automatically cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def wav_file(temp_dir: Path):
    """Return a helper that writes a WAV file into ``temp_dir`` and returns its path."""

    def _write(samples: Sequence[int], name: str = "sample.wav", **kwargs) -> Path:
        path = temp_dir / name
        path.write_bytes(build_wav_bytes(samples, **kwargs))
        return path

    return _write


@pytest.fixture
def clean_ewbs_env(monkeypatch) -> None:
    """Remove every ``EWBS_*`` variable so configuration falls back to defaults."""
    for name in (
        "EWBS_SILENCE_THRESHOLD",
        "EWBS_TONE_THRESHOLD",
        "EWBS_LEADING_SILENCE_MS",
        "EWBS_BURST_END_SILENCE_MS",
        "EWBS_NON_TONE_ABORT_MS",
        "EWBS_STOP_AFTER_FIRST",
        "EWBS_SAMPLE_RATE",
        "EWBS_AMPLITUDE",
        "EWBS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


# ============================================================================
# Test data fixtures
# ============================================================================

@pytest.fixture
def sample_wav_header() -> bytes:
    """Provide a minimal valid WAV file header.

    This creates an empty 32000 Hz, mono, 16-bit PCM file header.
    """
    return bytes([
        0x52, 0x49, 0x46, 0x46,  # "RIFF"
        0x24, 0x00, 0x00, 0x00,  # File size - 8
        0x57, 0x41, 0x56, 0x45,  # "WAVE"
        0x66, 0x6D, 0x74, 0x20,  # "fmt "
        0x10, 0x00, 0x00, 0x00,  # Subchunk size
        0x01, 0x00,              # Audio format (PCM)
        0x01, 0x00,              # Channels (mono)
        0x00, 0x7D, 0x00, 0x00,  # Sample rate (32000)
        0x00, 0xFA, 0x00, 0x00,  # Byte rate
        0x02, 0x00,              # Block align
        0x10, 0x00,              # Bits per sample
        0x64, 0x61, 0x74, 0x61,  # "data"
        0x00, 0x00, 0x00, 0x00,  # Data size
    ])


# ============================================================================
# Test markers and utilities
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings."""
    # Register custom markers
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (audio through the full decoder)"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 1 second"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Add 'unit' marker to tests without any marker
        if not any(item.iter_markers()):
            item.add_marker(pytest.mark.unit)
