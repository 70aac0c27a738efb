"""Canvas (export / preview target) settings and generation settings."""
from dataclasses import dataclass
from typing import Optional

from chromagen.constants import (
    DEFAULT_CANVAS, CANVAS_PRESETS,
    ASPECT_RATIOS, IMAGE_SIZES, DEFAULT_ASPECT_RATIO, DEFAULT_IMAGE_SIZE,
)


@dataclass(frozen=True)
class CanvasSettings:
    """Target resolution of the composite, either a named preset or custom."""
    width: int = DEFAULT_CANVAS['width']
    height: int = DEFAULT_CANVAS['height']
    name: str = DEFAULT_CANVAS['name']

    def __post_init__(self):
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise ValueError(f"Canvas size must be positive, got {self.width}x{self.height}")
        object.__setattr__(self, 'width', int(self.width))
        object.__setattr__(self, 'height', int(self.height))

    @property
    def aspect(self) -> float:
        return self.width / self.height

    @property
    def size(self):
        return (self.width, self.height)

    def to_dict(self) -> dict:
        return {'width': self.width, 'height': self.height, 'name': self.name}

    @classmethod
    def from_dict(cls, data: dict) -> 'CanvasSettings':
        return cls(int(data['width']), int(data['height']), data.get('name', 'Custom'))

    @classmethod
    def custom(cls, width: int, height: int) -> 'CanvasSettings':
        return cls(width, height, f"Custom ({int(width)}x{int(height)})")

    @classmethod
    def presets(cls):
        return [cls.from_dict(p) for p in CANVAS_PRESETS]

    @classmethod
    def preset(cls, name: str) -> Optional['CanvasSettings']:
        """Look up a preset by name (case-insensitive). Returns None if unknown."""
        for preset in CANVAS_PRESETS:
            if preset['name'].lower() == name.lower():
                return cls.from_dict(preset)
        return None


@dataclass
class GenerationSettings:
    """Hints handed to an injected image / video generator."""
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    image_size: str = DEFAULT_IMAGE_SIZE

    def __post_init__(self):
        if self.aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(f"Unsupported aspect ratio {self.aspect_ratio!r}; expected one of {ASPECT_RATIOS}")
        if self.image_size not in IMAGE_SIZES:
            raise ValueError(f"Unsupported image size {self.image_size!r}; expected one of {IMAGE_SIZES}")
