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

"""Decode EWBS blocks from the raw bit string of one transmission burst.

EWBS carries no error correction; a block is simply repeated. Instead of
expecting one clean block, the decoder splits the whole burst on the fixed
code and recovers each field from whichever 16-bit segment first yields a
plausible value, then grades how much it managed to recover.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Mapping, Optional

from .ewbs_codes import LOCATION_CODES
from .ewbs_fsk import (
    EWBS_FIELD_LENGTH,
    EWBS_FIXED_CODE_CATEGORY_1,
    EWBS_FIXED_CODE_CATEGORY_2,
    EWBS_PRECEDING_CODE_END,
    EWBS_PRECEDING_CODE_START,
    BitsLike,
    normalize_bits,
)

logger = logging.getLogger(__name__)


class ConfidenceLevel(IntEnum):
    """How much of a block the decoder could recover (higher is better)."""

    NONE = 0  # No fixed code; not an EWBS block
    POOR = 1  # Fixed code only
    WEAK = 2  # Some fields recovered
    MEDIUM = 3  # All fields recovered, signal type inferred from the fields
    STRONG = 4  # All fields recovered and the preceding code was intact


class BlockCategory(str, Enum):
    NONE = "none"
    CATEGORY_1_START = "category1_start"
    CATEGORY_2_START = "category2_start"
    END = "end"
    UNKNOWN = "unknown"

    @property
    def is_start(self) -> bool:
        return self in (BlockCategory.CATEGORY_1_START, BlockCategory.CATEGORY_2_START)


CATEGORY_LABELS = {
    BlockCategory.NONE: "None",
    BlockCategory.CATEGORY_1_START: "Category I start signal (第1種開始信号)",
    BlockCategory.CATEGORY_2_START: "Category II start signal (第2種開始信号)",
    BlockCategory.END: "End signal (終了信号)",
    BlockCategory.UNKNOWN: "Unknown",
}

# (prefix, suffix) framing of each field kind
_LOCATION_FRAMING = {"start": ("10", "00"), "end": ("01", "11")}
_DAY_MONTH_FRAMING = {"start": ("010", "100"), "end": ("100", "111")}
_HOUR_YEAR_FRAMING = {"start": ("011", "100"), "end": ("101", "111")}


@dataclass
class DecodedBlock:
    """Structured result of decoding one burst."""

    bits: str
    fixed_code: Optional[str] = None
    category: BlockCategory = BlockCategory.NONE
    confidence: ConfidenceLevel = ConfidenceLevel.NONE
    type_determined: bool = False
    location: Optional[str] = None
    location_code: Optional[str] = None
    day: int = 0
    month: int = 0
    hour: int = 0
    year: int = 0
    recovered: Dict[str, bool] = field(default_factory=dict)

    @property
    def bit_count(self) -> int:
        return len(self.bits)

    @property
    def is_signal(self) -> bool:
        return self.confidence > ConfidenceLevel.NONE

    def to_dict(self) -> Dict[str, object]:
        return {
            "bits": self.bits,
            "bit_count": self.bit_count,
            "fixed_code": self.fixed_code,
            "category": self.category.value,
            "confidence": self.confidence.name.lower(),
            "type_determined": self.type_determined,
            "location": self.location,
            "location_code": self.location_code,
            "day": self.day,
            "month": self.month,
            "hour": self.hour,
            "year": self.year,
            "recovered": dict(self.recovered),
        }


def _reverse_to_int(bits: str) -> int:
    # Numeric fields are sent least-significant bit first
    return int(bits[::-1], 2)


def _matches(part: str, framing: tuple) -> bool:
    prefix, suffix = framing
    return part.startswith(prefix) and part.endswith(suffix)


class EWBSBlockDecoder:
    """
    Interprets the demodulated bits of one EWBS burst.

    Usage:
        block = EWBSBlockDecoder(bits).decode()
        if block.confidence >= ConfidenceLevel.MEDIUM:
            ...

    Anything below MEDIUM should be read as "something happened somewhere".
    """

    def __init__(self, bits: BitsLike, locations: Mapping[str, str] = LOCATION_CODES):
        self.bits = normalize_bits(bits)
        self.locations = locations
        self._reset()

    def _reset(self) -> None:
        self.fixed_code: Optional[str] = None
        self.category = BlockCategory.NONE
        self.location: Optional[str] = None
        self.location_code: Optional[str] = None
        self.day = 0
        self.month = 0
        self.hour = 0
        self.year = 0

    def decode(self) -> DecodedBlock:
        """Decode the bits and return the recovered block with its confidence."""
        self._reset()

        got_type = self.determine_type()
        got_fixed_code = self.check_fixed_code()

        if not got_fixed_code:
            logger.debug(f"No fixed code in {len(self.bits)} bits; not an EWBS block")
            return self._result(ConfidenceLevel.NONE, got_type, {})

        got_location = got_day_month = got_hour_year = False

        for part in self.split_fields():
            if not got_hour_year and self.decode_hour_year(part):
                got_hour_year = True
            if not got_day_month and self.decode_day_month(part):
                got_day_month = True
            if not got_location and self.decode_location(part):
                got_location = True

            if got_hour_year and got_day_month and got_location:
                break

        all_fields = got_location and got_day_month and got_hour_year
        any_field = got_location or got_day_month or got_hour_year

        if got_type and all_fields:
            confidence = ConfidenceLevel.STRONG
        elif all_fields:
            confidence = ConfidenceLevel.MEDIUM
        elif any_field:
            confidence = ConfidenceLevel.WEAK
        else:
            confidence = ConfidenceLevel.POOR

        recovered = {
            "location": got_location,
            "day_month": got_day_month,
            "hour_year": got_hour_year,
        }
        logger.debug(
            f"Decoded {len(self.bits)} bits: confidence={confidence.name}, "
            f"category={self.category.value}, recovered={recovered}"
        )
        return self._result(confidence, got_type, recovered)

    def _result(
        self,
        confidence: ConfidenceLevel,
        type_determined: bool,
        recovered: Dict[str, bool],
    ) -> DecodedBlock:
        return DecodedBlock(
            bits=self.bits,
            fixed_code=self.fixed_code,
            category=self.category,
            confidence=confidence,
            type_determined=type_determined,
            location=self.location,
            location_code=self.location_code,
            day=self.day,
            month=self.month,
            hour=self.hour,
            year=self.year,
            recovered=recovered,
        )

    def determine_type(self) -> bool:
        """Classify the burst from its preceding code."""
        if self.bits.startswith(EWBS_PRECEDING_CODE_START):
            self.category = BlockCategory.CATEGORY_1_START
            return True

        if self.bits.startswith(EWBS_PRECEDING_CODE_END):
            self.category = BlockCategory.END
            return True

        self.category = BlockCategory.UNKNOWN
        return False

    def check_fixed_code(self) -> bool:
        """Locate either fixed code; the Category II code forces a Category II start."""
        if EWBS_FIXED_CODE_CATEGORY_1 in self.bits:
            self.fixed_code = EWBS_FIXED_CODE_CATEGORY_1
            return True

        if EWBS_FIXED_CODE_CATEGORY_2 in self.bits:
            self.fixed_code = EWBS_FIXED_CODE_CATEGORY_2
            self.category = BlockCategory.CATEGORY_2_START
            return True

        return False

    def split_fields(self) -> List[str]:
        """Return the 16-bit segments between occurrences of the fixed code."""
        if not self.fixed_code:
            return []
        return [
            part for part in self.bits.split(self.fixed_code)
            if len(part) == EWBS_FIELD_LENGTH
        ]

    def _framing_key(self, part: str, framing: Mapping[str, tuple]) -> Optional[str]:
        """Pick the framing to check, inferring the category if it is still unknown."""
        if self.category is BlockCategory.UNKNOWN:
            if _matches(part, framing["start"]):
                self.category = BlockCategory.CATEGORY_1_START
            elif _matches(part, framing["end"]):
                self.category = BlockCategory.END
            else:
                return None

        if self.category.is_start:
            return "start"
        if self.category is BlockCategory.END:
            return "end"
        return None

    def decode_day_month(self, part: str) -> bool:
        key = self._framing_key(part, _DAY_MONTH_FRAMING)
        if key is None or not _matches(part, _DAY_MONTH_FRAMING[key]):
            return False

        if part[8] != "0":
            return False

        day = _reverse_to_int(part[3:8])
        month = _reverse_to_int(part[9:13])

        if day > 31 or month > 12:
            self.day = 0
            self.month = 0
            return False

        self.day = day
        self.month = month
        return True

    def decode_hour_year(self, part: str) -> bool:
        key = self._framing_key(part, _HOUR_YEAR_FRAMING)
        if key is None or not _matches(part, _HOUR_YEAR_FRAMING[key]):
            return False

        if part[8] != "0":
            return False

        hour = _reverse_to_int(part[3:8])
        # 郵政省告示第405号 別表第4号 時符号
        if hour >= 16:
            hour -= 8
        else:
            hour += 8

        if hour > 23:
            self.hour = 0
            self.year = 0
            return False

        self.hour = hour
        self.year = _reverse_to_int(part[9:13])
        return True

    def decode_location(self, part: str) -> bool:
        if self.category is BlockCategory.UNKNOWN:
            # Only commit the guess once the code itself checks out
            if _matches(part, _LOCATION_FRAMING["start"]):
                guessed = BlockCategory.CATEGORY_1_START
            elif _matches(part, _LOCATION_FRAMING["end"]):
                guessed = BlockCategory.END
            else:
                return False
        else:
            guessed = self.category

        code = part[2:14]
        name = self.locations.get(code)
        if name is None:
            return False

        self.location = name
        self.location_code = code
        self.category = guessed
        return True


def decode_ewbs_bits(bits: BitsLike) -> DecodedBlock:
    """Decode the raw bits of one burst."""
    return EWBSBlockDecoder(bits).decode()


def build_block_summary(block: DecodedBlock) -> str:
    """Human-readable report of a decoded block."""
    lines = [
        "Decoded EWBS Data:",
        "-" * 47,
        f"Fixed Code: {block.fixed_code or 'N/A'}",
        f"Confidence: {block.confidence.name.title()}",
        f"Category:   {CATEGORY_LABELS.get(block.category, block.category.value)}",
        f"Location:   {block.location or 'N/A'}",
        f"Day:        {block.day}",
        f"Month:      {block.month}",
        f"Year:       {block.year}",
        f"Hour:       {block.hour}",
        "-" * 47,
    ]
    return "\n".join(lines)


__all__ = [
    "ConfidenceLevel",
    "BlockCategory",
    "CATEGORY_LABELS",
    "DecodedBlock",
    "EWBSBlockDecoder",
    "decode_ewbs_bits",
    "build_block_summary",
]
