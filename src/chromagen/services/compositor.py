"""
ChromaGen Studio - Compositor

Flattens the layer stack (background, 3D scene, foreground) into one RGBA
raster at any target resolution using QPainter.

Layer math is always expressed in canvas pixels; the target size only adds a
final uniform scale, so preview and export produce the same picture at
different resolutions. Preview additionally turns on the perspective tilt
and the drag highlight.

Rasters may be given as decoded arrays, encoded sources (bytes, paths, data
URIs) or zero-argument loaders. They are resolved in layer order right before
each layer is drawn; a layer that fails to decode is skipped and reported,
the rest of the frame still renders.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable, List, Optional, Sequence

import numpy as np
from PIL import Image, ImageFilter
from PyQt5.QtCore import Qt, QPointF, QRectF
from PyQt5.QtGui import QColor, QImage, QPainter, QPen, QTransform

from chromagen.constants import (
    EMPTY_CANVAS_COLOR, SHADOW_COLOR, SHADOW_ALPHA, SHADOW_BLUR,
    SHADOW_OFFSET_X, SHADOW_OFFSET_Y, HIGHLIGHT_COLOR, HIGHLIGHT_WIDTH, DRAG_OPACITY,
)
from chromagen.models.canvas import CanvasSettings
from chromagen.models.transform import Transform
from chromagen.services.image_io import DecodeFailure, decode_image, array_to_qimage, qimage_to_array
from chromagen.utils import transform_math

logger = logging.getLogger(__name__)


class LayerRole(IntEnum):
    """Layer roles; the value is the fixed paint order"""
    BACKGROUND = 0
    SCENE = 1
    FOREGROUND = 2


class FitMode(Enum):
    COVER = 'cover'  # fill the canvas, crop overflow, centered
    INTRINSIC = 'intrinsic'  # natural size capped at FOREGROUND_MAX_WIDTH, at the canvas origin
    STRETCH = 'stretch'  # exactly the canvas bounds


_ROLE_FIT = {
    LayerRole.BACKGROUND: FitMode.COVER,
    LayerRole.SCENE: FitMode.STRETCH,
    LayerRole.FOREGROUND: FitMode.INTRINSIC,
}


@dataclass
class Layer:
    """One entry of the layer stack.

    raster may be an RGBA array, anything decode_image() accepts, a
    zero-argument callable returning one of those, or None (layer skipped).
    """
    role: LayerRole
    raster: object = None
    transform: Transform = field(default_factory=Transform)

    @property
    def fit(self) -> FitMode:
        return _ROLE_FIT[self.role]

    def resolve(self) -> Optional[np.ndarray]:
        """Decode the raster now.

        Raises:
            DecodeFailure: if the source (or loader result) cannot be decoded
            Anything the loader itself raises is passed through
        """
        source = self.raster() if callable(self.raster) else self.raster
        if source is None:
            return None
        return decode_image(source)


@dataclass
class SkippedLayer:
    role: LayerRole
    reason: str


@dataclass
class RenderResult:
    """Flattened frame plus a report of what was drawn"""
    image: np.ndarray
    drawn: List[LayerRole] = field(default_factory=list)
    skipped: List[SkippedLayer] = field(default_factory=list)

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def ok(self) -> bool:
        """True when no layer had to be skipped because of a failure"""
        return not self.skipped


def make_shadow(alpha: np.ndarray, blur: float) -> np.ndarray:
    """Drop shadow raster from a coverage mask

    Args:
        alpha: HxW uint8 coverage of the shadow caster
        blur: Blur length in target pixels (Gaussian sigma = blur / 2)

    Returns:
        HxWx4 uint8 RGBA array in SHADOW_COLOR
    """
    mask = Image.fromarray(np.round(alpha.astype(np.float32) * SHADOW_ALPHA).astype(np.uint8))
    if blur > 0:
        mask = mask.filter(ImageFilter.GaussianBlur(radius=blur / 2.0))
    shadow = np.zeros(alpha.shape + (4,), dtype=np.uint8)
    shadow[..., :3] = SHADOW_COLOR
    shadow[..., 3] = np.asarray(mask, dtype=np.uint8)
    return shadow


class Compositor:
    """Renders the ordered layer stack for one canvas"""

    def __init__(self, canvas: CanvasSettings = None, shadow_enabled: bool = True):
        self.canvas = canvas or CanvasSettings()
        self.shadow_enabled = shadow_enabled

    # ========================================
    # Entry points
    # ========================================

    def render_preview(self, layers: Sequence[Layer], view_scale: float, highlight: bool = False) -> RenderResult:
        """Render at canvas size x view_scale with perspective tilt (and optional drag highlight)"""
        view_scale = max(float(view_scale), 0.01)
        return self.render(layers,
                           self.canvas.width * view_scale,
                           self.canvas.height * view_scale,
                           perspective=True,
                           highlight=highlight)

    def render_export(self, layers: Sequence[Layer]) -> RenderResult:
        """Render at the canvas resolution, affine only, no overlays"""
        return self.render(layers, self.canvas.width, self.canvas.height)

    def render(self, layers: Sequence[Layer], target_w: float, target_h: float,
               perspective: bool = False, highlight: bool = False) -> RenderResult:
        """Flatten layers into a target_w x target_h RGBA array

        Args:
            layers: Layers in any order; they are painted background, scene, foreground
            target_w: Output width in pixels
            target_h: Output height in pixels
            perspective: Apply the pseudo-3D tilt (preview)
            highlight: Draw the drag highlight around the foreground (preview)

        Returns:
            RenderResult
        """
        width = max(1, int(round(target_w)))
        height = max(1, int(round(target_h)))

        image = QImage(width, height, QImage.Format_ARGB32_Premultiplied)
        image.fill(Qt.transparent)
        base = QTransform.fromScale(width / self.canvas.width, height / self.canvas.height)
        result = RenderResult(image=np.zeros((0, 0, 4), dtype=np.uint8))

        ordered = sorted(layers, key=lambda layer: int(layer.role))

        painter = QPainter(image)
        try:
            painter.setRenderHint(QPainter.Antialiasing)
            painter.setRenderHint(QPainter.SmoothPixmapTransform)

            background_drawn = False
            for layer in ordered:
                if layer.role is LayerRole.BACKGROUND:
                    background_drawn |= self._render_layer(painter, layer, base, (width, height), perspective, highlight, result)

            if not background_drawn:
                painter.resetTransform()
                painter.setOpacity(1.0)
                painter.fillRect(QRectF(0, 0, width, height), QColor(EMPTY_CANVAS_COLOR))

            for layer in ordered:
                if layer.role is not LayerRole.BACKGROUND:
                    self._render_layer(painter, layer, base, (width, height), perspective, highlight, result)
        finally:
            painter.end()

        result.image = qimage_to_array(image)
        logger.debug("Rendered %dx%d (drawn=%s, skipped=%d)",
                     width, height, [role.name for role in result.drawn], len(result.skipped))
        return result

    # ========================================
    # Per layer
    # ========================================

    def _render_layer(self, painter, layer, base, target_size, perspective, highlight, result) -> bool:
        if not layer.transform.visible:
            logger.debug("Layer %s hidden", layer.role.name)
            return False

        try:
            raster = layer.resolve()
        except (DecodeFailure, RuntimeError, OSError, ValueError) as e:
            # Loaders may also fail while producing the raster (e.g. the GL scene)
            logger.warning("Skipping %s layer: %s", layer.role.name, e)
            result.skipped.append(SkippedLayer(layer.role, str(e)))
            return False

        if raster is None or raster.shape[0] == 0 or raster.shape[1] == 0:
            logger.debug("Layer %s has no raster", layer.role.name)
            return False

        transform = transform_math.sanitize(layer.transform)
        src_h, src_w = raster.shape[:2]
        dest, source = self._placement(layer.fit, src_w, src_h)
        if dest.width() <= 0 or dest.height() <= 0:
            return False

        if layer.role is LayerRole.SCENE:
            matrix = np.identity(3)
        elif perspective:
            matrix = transform_math.to_projective(transform, dest.width(), dest.height())
        else:
            matrix = transform_math.to_matrix(transform, dest.width(), dest.height())
        world = transform_math.to_qtransform(matrix) * base

        is_dragged = highlight and layer.role is LayerRole.FOREGROUND
        opacity = transform.opacity * (DRAG_OPACITY if is_dragged else 1.0)
        qimage = array_to_qimage(raster)

        if layer.role is LayerRole.FOREGROUND and self.shadow_enabled:
            self._draw_with_shadow(painter, qimage, dest, source, world, base, transform.scale, opacity, target_size)
        else:
            painter.setWorldTransform(world)
            painter.setOpacity(opacity)
            painter.drawImage(dest, qimage, source)

        if is_dragged:
            self._draw_highlight(painter, dest, world)

        result.drawn.append(layer.role)
        return True

    def _placement(self, fit, src_w, src_h):
        """Destination rect (content box, canvas px) and source rect (image px)"""
        canvas_w, canvas_h = self.canvas.width, self.canvas.height
        full_source = QRectF(0, 0, src_w, src_h)

        if fit is FitMode.COVER:
            rect = transform_math.cover_fit(src_w, src_h, canvas_w, canvas_h)
            k = rect.width / src_w
            if k <= 0:
                return QRectF(0, 0, 0, 0), full_source
            # Crop the source instead of clipping so the content box stays the canvas
            source = QRectF(rect.crop_x / k, rect.crop_y / k, canvas_w / k, canvas_h / k)
            return QRectF(0, 0, canvas_w, canvas_h), source

        if fit is FitMode.INTRINSIC:
            w, h = transform_math.capped_size(src_w, src_h)
            return QRectF(0, 0, w, h), full_source

        return QRectF(0, 0, canvas_w, canvas_h), full_source

    def _draw_with_shadow(self, painter, qimage, dest, source, world, base, scale, opacity, target_size):
        width, height = target_size

        # Transformed foreground on its own surface; its alpha casts the shadow
        layer_image = QImage(width, height, QImage.Format_ARGB32_Premultiplied)
        layer_image.fill(Qt.transparent)
        layer_painter = QPainter(layer_image)
        try:
            layer_painter.setRenderHint(QPainter.Antialiasing)
            layer_painter.setRenderHint(QPainter.SmoothPixmapTransform)
            layer_painter.setWorldTransform(world)
            layer_painter.drawImage(dest, qimage, source)
        finally:
            layer_painter.end()

        # Shadow distances are canvas units times the layer scale, unaffected by rotation
        sx, sy = base.m11(), base.m22()
        blur = SHADOW_BLUR * scale * (sx + sy) / 2.0
        shadow = make_shadow(qimage_to_array(layer_image)[..., 3], blur)

        painter.resetTransform()
        painter.setOpacity(opacity)
        painter.drawImage(QPointF(SHADOW_OFFSET_X * scale * sx, SHADOW_OFFSET_Y * scale * sy), array_to_qimage(shadow))
        painter.drawImage(QPointF(0, 0), layer_image)

    def _draw_highlight(self, painter, dest, world):
        pen = QPen(QColor(*HIGHLIGHT_COLOR))
        pen.setWidthF(HIGHLIGHT_WIDTH)
        pen.setCosmetic(True)
        painter.setWorldTransform(world)
        painter.setOpacity(1.0)
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)
        painter.drawRect(dest)


def session_layers(session, scene_raster: Callable = None) -> List[Layer]:
    """Build the layer stack for a SessionState

    Args:
        session: SessionState
        scene_raster: Optional RGBA array or loader for the 3D scene layer

    Returns:
        List of Layer (background only when show_background is on)
    """
    layers = []
    if session.show_background and session.background is not None:
        layers.append(Layer(LayerRole.BACKGROUND, session.background, session.background_transform))
    if scene_raster is not None:
        layers.append(Layer(LayerRole.SCENE, scene_raster))
    if session.keyed_foreground is not None:
        layers.append(Layer(LayerRole.FOREGROUND, session.keyed_foreground, session.transform))
    return layers
