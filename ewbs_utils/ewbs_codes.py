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

"""Area codes (地域符号) carried in the EWBS location field.

The table follows ARIB STD-B10 part 2 annex D (table D-2). Codes are the
12-bit strings exactly as they appear on the wire; the map is built once at
import time and exposed read-only.
"""

from types import MappingProxyType
from typing import Mapping, Optional

_LOCATION_ENTRIES = (
    ("101001011010", "静岡県"),
    ("100101100110", "愛知県"),
    ("001011011100", "三重県"),
    ("110011100100", "滋賀県"),
    ("010110011010", "京都府"),
    ("110010110010", "大阪府"),
    ("011001110100", "兵庫県"),
    ("101010010011", "奈良県"),
    ("001110010110", "和歌山県"),
    ("110100100011", "鳥取県"),
    ("001100011011", "島根県"),
    ("001010110101", "岡山県"),
    ("101100110001", "広島県"),
    ("101110011000", "山口県"),
    ("111001100010", "徳島県"),
    ("100110110100", "香川県"),
    ("000110011101", "愛媛県"),
    ("001011100011", "高知県"),
    ("011000101101", "福岡県"),
    ("100101011001", "佐賀県"),
    ("101000101011", "長崎県"),
    ("100010100111", "熊本県"),
    ("110010001101", "大分県"),
    ("110100011100", "宮崎県"),
    ("110101000101", "鹿児島県"),
    ("001101110010", "沖縄県"),
    ("001101001101", "地域共通"),
    ("010110100101", "関東広域圏"),
    ("011100101010", "中京広域圏"),
    ("100011010101", "近畿広域圏"),
    ("011010011001", "鳥取・島根圏"),
    ("010101010011", "岡山・香川圏"),
    ("000101101011", "北海道"),
    ("010001100111", "青森県"),
    ("010111010100", "岩手県"),
    ("011101011000", "宮城県"),
    ("101011000110", "秋田県"),
    ("111001001100", "山形県"),
    ("000110101110", "福島県"),
    ("110001101001", "茨城県"),
    ("111000111000", "栃木県"),
    ("100110001011", "群馬県"),
    ("011001001011", "埼玉県"),
    ("000111000111", "千葉県"),
    ("101010101100", "東京都"),
    ("010101101100", "神奈川県"),
    ("010011001110", "新潟県"),
    ("010100111001", "富山県"),
    ("011010100110", "石川県"),
    ("100100101101", "福井県"),
    ("110101001010", "山梨県"),
    ("100111010010", "長野県"),
    ("101001100101", "岐阜県"),
)

LOCATION_CODE_LENGTH = 12

LOCATION_CODES: Mapping[str, str] = MappingProxyType(dict(_LOCATION_ENTRIES))
LOCATION_NAMES: Mapping[str, str] = MappingProxyType(
    {name: code for code, name in _LOCATION_ENTRIES}
)


def _normalize_code(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    cleaned = ''.join(ch for ch in str(value) if ch in '01')
    if len(cleaned) != LOCATION_CODE_LENGTH:
        return None
    return cleaned


def get_location_name(code: Optional[str]) -> Optional[str]:
    """Return the region name for a 12-bit area code."""

    normalized = _normalize_code(code)
    if not normalized:
        return None
    return LOCATION_CODES.get(normalized)


def get_location_code(name: Optional[str]) -> Optional[str]:
    """Return the 12-bit area code for a region name."""

    if not name:
        return None
    return LOCATION_NAMES.get(name.strip())


__all__ = [
    "LOCATION_CODE_LENGTH",
    "LOCATION_CODES",
    "LOCATION_NAMES",
    "get_location_name",
    "get_location_code",
]
