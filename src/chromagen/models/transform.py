"""Transform data structures for layer placement and 3D object state."""
from dataclasses import dataclass, asdict, fields, replace

from chromagen.constants import DEFAULT_TRANSFORM


@dataclass
class Vec3:
    """3D vector for scene object position / rotation (degrees) / scale."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __iter__(self):
        return iter((self.x, self.y, self.z))

    @staticmethod
    def coerce(value) -> 'Vec3':
        """Accept a Vec3, a mapping with x/y/z keys, or a 3-sequence."""
        if isinstance(value, Vec3):
            return Vec3(value.x, value.y, value.z)
        if isinstance(value, dict):
            return Vec3(float(value.get('x', 0.0)), float(value.get('y', 0.0)), float(value.get('z', 0.0)))
        x, y, z = value
        return Vec3(float(x), float(y), float(z))


@dataclass
class Transform:
    """Layer transform state.

    Used for both the foreground subject and the background layer:
    - x, y: displacement in canvas pixels
    - scale: uniform scale (> 0)
    - rotate: clockwise degrees
    - perspective_x / perspective_y: pseudo-3D tilt in degrees (preview only)
    - skew_x / skew_y: shear in degrees
    - origin_x / origin_y: anchor as percent (0-100) of the content box
    - opacity / visible: compositing parameters, not part of the matrix
    """
    x: float = DEFAULT_TRANSFORM['x']
    y: float = DEFAULT_TRANSFORM['y']
    scale: float = DEFAULT_TRANSFORM['scale']
    rotate: float = DEFAULT_TRANSFORM['rotate']
    perspective_x: float = DEFAULT_TRANSFORM['perspective_x']
    perspective_y: float = DEFAULT_TRANSFORM['perspective_y']
    skew_x: float = DEFAULT_TRANSFORM['skew_x']
    skew_y: float = DEFAULT_TRANSFORM['skew_y']
    origin_x: float = DEFAULT_TRANSFORM['origin_x']
    origin_y: float = DEFAULT_TRANSFORM['origin_y']
    opacity: float = DEFAULT_TRANSFORM['opacity']
    visible: bool = DEFAULT_TRANSFORM['visible']

    @classmethod
    def field_names(cls):
        return [f.name for f in fields(cls)]

    def copy(self) -> 'Transform':
        return replace(self)

    def with_changes(self, **changes) -> 'Transform':
        """Return a copy with the given fields replaced.

        Raises:
            ValueError: if a field name is unknown
        """
        unknown = set(changes) - set(self.field_names())
        if unknown:
            raise ValueError(f"Unknown transform field(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def is_identity(self) -> bool:
        """True when drawing with this transform leaves content unchanged."""
        return self.with_changes(origin_x=DEFAULT_TRANSFORM['origin_x'],
                                 origin_y=DEFAULT_TRANSFORM['origin_y']) == Transform()

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Transform':
        """Build from a dict, ignoring unknown keys and keeping defaults for missing ones."""
        known = {name: data[name] for name in cls.field_names() if name in data}
        return cls(**known)
