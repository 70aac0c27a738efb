"""Chroma key settings model."""
from dataclasses import dataclass, field

from chromagen.constants import (
    DEFAULT_KEY_COLOR, DEFAULT_SIMILARITY, DEFAULT_SMOOTHNESS, DEFAULT_SPILL,
)
from chromagen.models.color import Color


def _default_key_color() -> Color:
    return Color.from_hex(DEFAULT_KEY_COLOR)


@dataclass
class ChromaKeySettings:
    """Key color plus threshold controls.

    similarity and smoothness are expected in [0, 1]; the segmentation
    engine clamps them again before use. spill is carried for the UI but
    no spill suppression is applied to RGB.
    """
    color: Color = field(default_factory=_default_key_color)
    similarity: float = DEFAULT_SIMILARITY
    smoothness: float = DEFAULT_SMOOTHNESS
    spill: float = DEFAULT_SPILL

    def __post_init__(self):
        self.color = Color.coerce(self.color)

    def copy(self) -> 'ChromaKeySettings':
        return ChromaKeySettings(Color.coerce(self.color), self.similarity, self.smoothness, self.spill)

    def to_dict(self) -> dict:
        return {
            'color': self.color.to_hex(),
            'similarity': self.similarity,
            'smoothness': self.smoothness,
            'spill': self.spill,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ChromaKeySettings':
        """Build from a dict; an unparseable color falls back to the default key green."""
        return cls(
            color=Color.from_hex_or(data.get('color', DEFAULT_KEY_COLOR), DEFAULT_KEY_COLOR),
            similarity=float(data.get('similarity', DEFAULT_SIMILARITY)),
            smoothness=float(data.get('smoothness', DEFAULT_SMOOTHNESS)),
            spill=float(data.get('spill', DEFAULT_SPILL)),
        )
