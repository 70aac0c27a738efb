"""
ChromaGen Studio - Segmentation Engine

Chroma-key removal: recompute alpha from the Euclidean RGB distance to the
key color. RGB is never touched.

key_out() is a pure function over numpy arrays. KeyingScheduler wraps it with
a single-shot QTimer so that slider drags only trigger one recompute after
the user pauses.
"""

import logging

import numpy as np
from PyQt5.QtCore import QObject, QTimer, pyqtSignal

from chromagen.constants import MAX_RGB_DISTANCE, FEATHER_RANGE, KEYING_DEBOUNCE_MS
from chromagen.models.chroma import ChromaKeySettings

logger = logging.getLogger(__name__)


def _clamp01(value) -> float:
    value = float(value)
    if not np.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def _as_rgba(image: np.ndarray) -> np.ndarray:
    """Copy an HxWx3 or HxWx4 uint8 array to HxWx4 (opaque alpha for RGB input)"""
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Expected an HxWx3 or HxWx4 image, got shape {image.shape}")
    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)
    if image.shape[2] == 4:
        return image.copy()
    alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([image, alpha], axis=2)


def key_distances(image: np.ndarray, key_rgb) -> np.ndarray:
    """Per-pixel Euclidean RGB distance to the key color (float32, HxW)"""
    rgb = np.asarray(image)[..., :3].astype(np.float32)
    key = np.asarray(key_rgb, dtype=np.float32).reshape(1, 1, 3)
    return np.sqrt(np.sum((rgb - key) ** 2, axis=2))


def key_out(image: np.ndarray, settings: ChromaKeySettings) -> np.ndarray:
    """Remove the key color from an image

    Per pixel, with d the RGB distance to the key color:
    - d < inner: alpha = 0
    - inner <= d < outer: alpha = floor(255 * (d - inner) / (outer - inner))
    - otherwise: alpha unchanged

    where inner = similarity * 441.67 and outer = inner + smoothness * 100.

    Args:
        image: HxWx3 or HxWx4 uint8 array (not modified)
        settings: Key color and thresholds; similarity and smoothness are clamped to [0, 1]

    Returns:
        New HxWx4 uint8 array of the same height and width
    """
    result = _as_rgba(image)
    if result.size == 0:
        return result

    similarity = _clamp01(settings.similarity)
    smoothness = _clamp01(settings.smoothness)

    # Max similarity keys everything, including the one color at exactly max distance
    if similarity >= 1.0:
        result[..., 3] = 0
        return result

    inner = similarity * MAX_RGB_DISTANCE
    outer = inner + smoothness * FEATHER_RANGE

    distance = key_distances(result, settings.color.to_tuple())
    alpha = result[..., 3]

    alpha[distance < inner] = 0

    if outer > inner:
        band = (distance >= inner) & (distance < outer)
        if np.any(band):
            ramp = np.floor(255.0 * (distance[band] - inner) / (outer - inner))
            alpha[band] = np.clip(ramp, 0, 255).astype(np.uint8)

    return result


class KeyingScheduler(QObject):
    """Debounced keying

    Each request() restarts a single-shot timer; when it fires the latest
    image and settings are keyed and the result is emitted through `keyed`.
    flush() runs a pending job immediately.
    """

    keyed = pyqtSignal(object)

    def __init__(self, interval_ms: int = KEYING_DEBOUNCE_MS, parent=None):
        super().__init__(parent)
        self._pending = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._run)

    @property
    def interval(self) -> int:
        return self._timer.interval()

    def is_pending(self) -> bool:
        return self._pending is not None

    def request(self, image: np.ndarray, settings: ChromaKeySettings):
        """Queue a keying job, replacing any pending one"""
        self._pending = (image, settings.copy())
        self._timer.start()

    def cancel(self):
        self._timer.stop()
        self._pending = None

    def flush(self):
        """Run the pending job now. Returns the keyed image or None if nothing was pending."""
        self._timer.stop()
        return self._run()

    def _run(self):
        if self._pending is None:
            return None
        image, settings = self._pending
        self._pending = None
        result = key_out(image, settings)
        logger.debug("Keyed %dx%d image (similarity=%.2f, smoothness=%.2f)",
                     result.shape[1], result.shape[0], settings.similarity, settings.smoothness)
        self.keyed.emit(result)
        return result
