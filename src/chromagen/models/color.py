"""
ChromaGen Studio - Color Domain Model

Canonical color representation for key colors, scene object colors and
canvas fills. All color parsing flows through this class.
"""

import re
from typing import List, Tuple, Optional


_HEX_RE = re.compile(r'^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$')
_SHORT_HEX_RE = re.compile(r'^#?([0-9a-fA-F])([0-9a-fA-F])([0-9a-fA-F])$')


class Color:
    """Color representation with uint8 RGB storage.

    Internal storage: _r, _g, _b (uint8 0-255).
    Values are clamped on construction.
    """

    def __init__(self, r: int, g: int, b: int):
        """Direct construction from RGB uint8 values (0-255)."""
        self._r = max(0, min(255, int(r)))
        self._g = max(0, min(255, int(g)))
        self._b = max(0, min(255, int(b)))

    @property
    def r(self) -> int:
        """Red component (0-255) - READ ONLY"""
        return self._r

    @property
    def g(self) -> int:
        """Green component (0-255) - READ ONLY"""
        return self._g

    @property
    def b(self) -> int:
        """Blue component (0-255) - READ ONLY"""
        return self._b

    # ========================================
    # Output Methods
    # ========================================

    def to_float3(self) -> List[float]:
        """Convert to normalized float RGB [0-1] for OpenGL materials."""
        return [self._r / 255.0, self._g / 255.0, self._b / 255.0]

    def to_hex(self) -> str:
        """Convert to lowercase hex color string: #rrggbb."""
        return f"#{self._r:02x}{self._g:02x}{self._b:02x}"

    def to_tuple(self) -> Tuple[int, int, int]:
        return (self._r, self._g, self._b)

    # ========================================
    # Static Factory Methods
    # ========================================

    @staticmethod
    def _parse_hex(hex_string) -> Optional[Tuple[int, int, int]]:
        if not isinstance(hex_string, str):
            return None
        hex_string = hex_string.strip()
        match = _HEX_RE.match(hex_string)
        if match:
            return tuple(int(part, 16) for part in match.groups())
        match = _SHORT_HEX_RE.match(hex_string)
        if match:
            return tuple(int(part * 2, 16) for part in match.groups())
        return None

    @staticmethod
    def from_hex(hex_string: str) -> Optional['Color']:
        """Create Color from hex string: #RRGGBB, RRGGBB or #RGB.

        Returns:
            Color object if parse succeeds, None otherwise
        """
        parsed = Color._parse_hex(hex_string)
        if parsed is None:
            return None
        return Color(*parsed)

    @staticmethod
    def from_hex_or(hex_string: str, fallback: str) -> 'Color':
        """Parse hex, falling back to another hex string when invalid."""
        color = Color.from_hex(hex_string)
        if color is None:
            color = Color.from_hex(fallback)
        return color

    @staticmethod
    def coerce(value) -> 'Color':
        """Accept a Color, hex string or (r, g, b) sequence."""
        if isinstance(value, Color):
            return Color(value.r, value.g, value.b)
        if isinstance(value, str):
            color = Color.from_hex(value)
            if color is None:
                raise ValueError(f"Invalid hex color: {value!r}")
            return color
        r, g, b = value
        return Color(r, g, b)

    # ========================================
    # Equality and Hashing
    # ========================================

    def __eq__(self, other) -> bool:
        if not isinstance(other, Color):
            return False
        return self._r == other._r and self._g == other._g and self._b == other._b

    def __hash__(self) -> int:
        return hash((self._r, self._g, self._b))

    def __deepcopy__(self, memo):
        return Color(self._r, self._g, self._b)

    def __repr__(self) -> str:
        return f"Color({self._r}, {self._g}, {self._b})"

    def __str__(self) -> str:
        return self.to_hex()
