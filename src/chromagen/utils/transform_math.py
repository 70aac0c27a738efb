"""
ChromaGen Studio - Transform Math Utilities

This module provides the matrix math behind layer placement: building the
layer matrix from a Transform, the preview-only perspective tilt, mapping
and hit-testing points, and the fit calculations used by the compositor and
the preview.

Matrices are numpy 3x3 arrays in the column-vector convention
(p' = M @ [x, y, 1]) in screen coordinates (y grows downward, positive
rotation is clockwise). Content is always drawn at (0, 0)-(w, h) and the
matrix carries it to canvas space. Use to_qtransform() to hand a matrix to
QPainter.

These pure math functions have no UI dependencies apart from the QTransform
conversion.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from chromagen.constants import (
    DEFAULT_TRANSFORM, SCALE_MIN, ANGLE_LIMIT, PERSPECTIVE_DEPTH,
    FOREGROUND_MAX_WIDTH, PREVIEW_PADDING, PREVIEW_MAX_SCALE,
)
from chromagen.models.transform import Transform

# Minimum homogeneous w allowed at the content corners of a homography
W_EPSILON = 1e-6

_ANGLE_FIELDS = ('rotate', 'skew_x', 'skew_y', 'perspective_x', 'perspective_y')
_CLAMPED_ANGLES = ('skew_x', 'skew_y', 'perspective_x', 'perspective_y')


# ======================================================================
# SANITIZING
# ======================================================================

def _finite_or(value, default):
    try:
        value = float(value)
    except (TypeError, ValueError):
        return float(default)
    return value if math.isfinite(value) else float(default)


def sanitize(transform: Transform) -> Transform:
    """Return a copy that is safe to turn into a matrix

    - non-finite numbers fall back to their defaults
    - scale is floored at SCALE_MIN
    - skew and tilt are clamped to +/- ANGLE_LIMIT degrees
    - opacity is clamped to [0, 1]

    Args:
        transform: Transform to clean

    Returns:
        New Transform instance
    """
    values = {}
    for name in ('x', 'y', 'scale', 'origin_x', 'origin_y', 'opacity') + _ANGLE_FIELDS:
        values[name] = _finite_or(getattr(transform, name), DEFAULT_TRANSFORM[name])

    values['scale'] = max(values['scale'], SCALE_MIN)
    for name in _CLAMPED_ANGLES:
        values[name] = max(-ANGLE_LIMIT, min(ANGLE_LIMIT, values[name]))
    values['opacity'] = max(0.0, min(1.0, values['opacity']))

    return transform.with_changes(**values)


def anchor_point(transform: Transform, content_w: float, content_h: float) -> Tuple[float, float]:
    """Anchor (transform origin) in content pixels"""
    return content_w * transform.origin_x / 100.0, content_h * transform.origin_y / 100.0


# ======================================================================
# MATRIX CONSTRUCTION
# ======================================================================

def translation(tx: float, ty: float) -> np.ndarray:
    m = np.identity(3)
    m[0, 2] = tx
    m[1, 2] = ty
    return m


def rotation(degrees: float) -> np.ndarray:
    """Clockwise rotation on screen (y down)"""
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def scaling(factor: float) -> np.ndarray:
    return np.diag([factor, factor, 1.0])


def shear(skew_x_degrees: float, skew_y_degrees: float) -> np.ndarray:
    """Shear [[1, tan(skewX)], [tan(skewY), 1]]"""
    return np.array([
        [1.0, math.tan(math.radians(skew_x_degrees)), 0.0],
        [math.tan(math.radians(skew_y_degrees)), 1.0, 0.0],
        [0.0, 0.0, 1.0],
    ])


def to_matrix(transform: Transform, content_w: float, content_h: float) -> np.ndarray:
    """Build the affine layer matrix

    Composition, outer to inner:
    translate(x, y) . translate(anchor) . rotate . scale . shear . translate(-anchor)

    Args:
        transform: Layer transform (sanitized internally)
        content_w: Width of the content box in canvas pixels
        content_h: Height of the content box in canvas pixels

    Returns:
        3x3 numpy matrix mapping content coordinates to canvas coordinates
    """
    t = sanitize(transform)
    ax, ay = anchor_point(t, content_w, content_h)
    return (
        translation(t.x, t.y)
        @ translation(ax, ay)
        @ rotation(t.rotate)
        @ scaling(t.scale)
        @ shear(t.skew_x, t.skew_y)
        @ translation(-ax, -ay)
    )


def _embed_4x4(m3: np.ndarray) -> np.ndarray:
    """Lift a 2D affine matrix into 3D, leaving z untouched"""
    m4 = np.identity(4)
    m4[np.ix_([0, 1, 3], [0, 1, 3])] = m3
    return m4


def _rotate_x_4x4(degrees: float) -> np.ndarray:
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    m = np.identity(4)
    m[1, 1], m[1, 2] = c, -s
    m[2, 1], m[2, 2] = s, c
    return m


def _rotate_y_4x4(degrees: float) -> np.ndarray:
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    m = np.identity(4)
    m[0, 0], m[0, 2] = c, s
    m[2, 0], m[2, 2] = -s, c
    return m


def _perspective_4x4(depth: float) -> np.ndarray:
    m = np.identity(4)
    m[3, 2] = -1.0 / depth
    return m


def to_projective(transform: Transform, content_w: float, content_h: float,
                  depth: float = PERSPECTIVE_DEPTH) -> np.ndarray:
    """Build the preview matrix including the pseudo-3D tilt

    The tilt is rotateX(perspective_x) then rotateY(perspective_y) around the
    anchor, viewed through perspective(depth), appended after the affine
    part. The 4x4 result is reduced to a 3x3 homography for the z = 0 plane.

    Falls back to to_matrix() when there is no tilt, or when any content
    corner would end up at or behind the viewer (w <= 0).

    Returns:
        3x3 numpy homography mapping content coordinates to canvas coordinates
    """
    t = sanitize(transform)
    affine = to_matrix(t, content_w, content_h)
    if t.perspective_x == 0.0 and t.perspective_y == 0.0:
        return affine

    ax, ay = anchor_point(t, content_w, content_h)
    core = (
        translation(t.x, t.y)
        @ translation(ax, ay)
        @ rotation(t.rotate)
        @ scaling(t.scale)
        @ shear(t.skew_x, t.skew_y)
    )
    m4 = (
        _embed_4x4(core)
        @ _perspective_4x4(depth)
        @ _rotate_x_4x4(t.perspective_x)
        @ _rotate_y_4x4(t.perspective_y)
        @ _embed_4x4(translation(-ax, -ay))
    )
    homography = m4[np.ix_([0, 1, 3], [0, 1, 3])]

    for cx, cy in _corner_coords(content_w, content_h):
        w = homography[2, 0] * cx + homography[2, 1] * cy + homography[2, 2]
        if not math.isfinite(w) or w <= W_EPSILON:
            return affine
    if not np.all(np.isfinite(homography)):
        return affine
    # Normalize so the QTransform sees m33 = 1 for the common case
    return homography / homography[2, 2]


def to_qtransform(matrix: np.ndarray):
    """Convert a column-vector 3x3 matrix to a QTransform (row-vector convention)"""
    from PyQt5.QtGui import QTransform
    return QTransform(*[float(v) for v in np.asarray(matrix).T.flatten()])


# ======================================================================
# POINT MAPPING / HIT TESTING
# ======================================================================

def _corner_coords(content_w: float, content_h: float) -> List[Tuple[float, float]]:
    return [(0.0, 0.0), (content_w, 0.0), (content_w, content_h), (0.0, content_h)]


def map_point(matrix: np.ndarray, x: float, y: float) -> Tuple[float, float]:
    """Map a point through a 3x3 matrix (with perspective divide)"""
    px, py, pw = matrix @ np.array([x, y, 1.0])
    if abs(pw) < W_EPSILON:
        return float('nan'), float('nan')
    return float(px / pw), float(py / pw)


def content_corners(matrix: np.ndarray, content_w: float, content_h: float) -> List[Tuple[float, float]]:
    """Canvas positions of the content box corners (TL, TR, BR, BL)"""
    return [map_point(matrix, cx, cy) for cx, cy in _corner_coords(content_w, content_h)]


def invert(matrix: np.ndarray) -> Optional[np.ndarray]:
    """Inverse matrix, or None if singular"""
    try:
        inv = np.linalg.inv(matrix)
    except np.linalg.LinAlgError:
        return None
    if not np.all(np.isfinite(inv)):
        return None
    return inv


def contains_point(matrix: np.ndarray, content_w: float, content_h: float,
                   x: float, y: float) -> bool:
    """Check whether a canvas point lands inside the transformed content box

    Args:
        matrix: Layer matrix (content -> canvas)
        content_w: Content box width
        content_h: Content box height
        x: Canvas X coordinate
        y: Canvas Y coordinate

    Returns:
        True if the point maps back inside (0, 0)-(w, h)
    """
    inv = invert(matrix)
    if inv is None:
        return False
    lx, ly = map_point(inv, x, y)
    if not (math.isfinite(lx) and math.isfinite(ly)):
        return False
    return 0.0 <= lx <= content_w and 0.0 <= ly <= content_h


# ======================================================================
# FIT CALCULATIONS
# ======================================================================

@dataclass(frozen=True)
class FitRect:
    """Placement of a source image inside a target rectangle"""
    x: float
    y: float
    width: float
    height: float

    @property
    def crop_x(self) -> float:
        """Source overflow cropped on the left edge (target pixels)"""
        return max(0.0, -self.x)

    @property
    def crop_y(self) -> float:
        return max(0.0, -self.y)


def cover_fit(src_w: float, src_h: float, target_w: float, target_h: float) -> FitRect:
    """Scale a source to cover the target completely, centered

    If the source is wider than the target (relative to height) it is fit to
    height and centered horizontally, otherwise fit to width and centered
    vertically.

    Args:
        src_w: Source width
        src_h: Source height
        target_w: Target width
        target_h: Target height

    Returns:
        FitRect in target pixels (x / y are <= 0 for the overflowing axis)
    """
    if target_w <= 0 or target_h <= 0:
        return FitRect(0.0, 0.0, max(float(target_w), 0.0), max(float(target_h), 0.0))
    if src_w <= 0 or src_h <= 0:
        return FitRect(0.0, 0.0, float(target_w), float(target_h))

    src_aspect = src_w / src_h
    target_aspect = target_w / target_h

    if src_aspect > target_aspect:
        draw_h = float(target_h)
        draw_w = target_h * src_aspect
        return FitRect((target_w - draw_w) / 2.0, 0.0, draw_w, draw_h)

    draw_w = float(target_w)
    draw_h = target_w / src_aspect
    return FitRect(0.0, (target_h - draw_h) / 2.0, draw_w, draw_h)


def capped_size(width: float, height: float, max_width: float = FOREGROUND_MAX_WIDTH) -> Tuple[float, float]:
    """Intrinsic size capped to max_width, aspect preserved"""
    if width <= 0 or height <= 0:
        return 0.0, 0.0
    if width > max_width:
        return float(max_width), height * max_width / width
    return float(width), float(height)


def preview_view_scale(container_w: float, container_h: float,
                       canvas_w: float, canvas_h: float,
                       padding: float = PREVIEW_PADDING,
                       max_scale: float = PREVIEW_MAX_SCALE) -> float:
    """Zoom that fits the canvas into the preview container

    min((container_w - padding) / canvas_w, (container_h - padding) / canvas_h, max_scale),
    floored at SCALE_MIN so pointer deltas can always be divided by it.
    """
    if canvas_w <= 0 or canvas_h <= 0:
        return 1.0
    scale_w = (container_w - padding) / canvas_w
    scale_h = (container_h - padding) / canvas_h
    return max(min(scale_w, scale_h, max_scale), SCALE_MIN)


def pointer_delta_to_canvas(dx: float, dy: float, view_scale: float) -> Tuple[float, float]:
    """Convert a pointer movement in preview pixels to canvas pixels"""
    view_scale = max(view_scale, SCALE_MIN)
    return dx / view_scale, dy / view_scale
