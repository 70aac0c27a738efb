"""Image decoding / encoding helpers.

All rasters inside the studio are HxWx4 uint8 RGBA numpy arrays. This module
converts from the formats callers hand us (file paths, raw bytes, data URIs,
PIL images) and back out to PNG bytes, data URIs and QImages.
"""

import base64
import binascii
import io
import logging
from pathlib import Path
from urllib.parse import unquote_to_bytes

import numpy as np
from PIL import Image, UnidentifiedImageError
from PyQt5.QtGui import QImage

logger = logging.getLogger(__name__)

_DATA_URI_PREFIX = 'data:'


class DecodeFailure(Exception):
    """Raised when an input cannot be turned into an RGBA raster."""

    def __init__(self, message, source=None):
        super().__init__(message)
        self.source = source


def _describe(source) -> str:
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    if isinstance(source, str) and source.startswith(_DATA_URI_PREFIX):
        return source[:32] + '...'
    return repr(source)


def _pil_to_array(img: Image.Image) -> np.ndarray:
    return np.array(img.convert('RGBA'), dtype=np.uint8)


def _decode_bytes(data: bytes, source) -> np.ndarray:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return _pil_to_array(img)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeFailure(f"Could not decode image {_describe(source)}: {e}", source) from e


def _decode_data_uri(uri: str) -> np.ndarray:
    header, sep, payload = uri.partition(',')
    if not sep:
        raise DecodeFailure("Malformed data URI (missing ',')", uri)
    try:
        if header.endswith(';base64'):
            data = base64.b64decode(payload, validate=True)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(f"Malformed data URI payload: {e}", uri) from e
    return _decode_bytes(data, uri)


def decode_image(source) -> np.ndarray:
    """Decode an image into an HxWx4 uint8 RGBA array.

    Args:
        source: numpy array (HxWx3 / HxWx4), PIL image, raw encoded bytes,
            a data URI string, or a filesystem path

    Returns:
        New RGBA array

    Raises:
        DecodeFailure: if the source cannot be read or decoded
    """
    if isinstance(source, np.ndarray):
        if source.ndim == 3 and source.shape[2] in (3, 4):
            arr = source if source.dtype == np.uint8 else np.clip(source, 0, 255).astype(np.uint8)
            if arr.shape[2] == 3:
                alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
                return np.concatenate([arr, alpha], axis=2)
            return arr.copy()
        raise DecodeFailure(f"Unsupported array shape {source.shape}", source)

    if isinstance(source, Image.Image):
        return _pil_to_array(source)

    if isinstance(source, (bytes, bytearray, memoryview)):
        return _decode_bytes(bytes(source), source)

    if isinstance(source, str) and source.startswith(_DATA_URI_PREFIX):
        return _decode_data_uri(source)

    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise DecodeFailure(f"Image file not found: {path}", source)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise DecodeFailure(f"Could not read {path}: {e}", source) from e
        return _decode_bytes(data, source)

    raise DecodeFailure(f"Unsupported image source type: {type(source).__name__}", source)


def encode_png(image: np.ndarray) -> bytes:
    """Encode an RGBA (or RGB) uint8 array as PNG bytes"""
    arr = np.ascontiguousarray(image, dtype=np.uint8)
    buffer = io.BytesIO()
    Image.fromarray(arr).save(buffer, format='PNG')
    return buffer.getvalue()


def to_data_uri(image: np.ndarray) -> str:
    """PNG data URI (data:image/png;base64,...) for an RGBA array"""
    return 'data:image/png;base64,' + base64.b64encode(encode_png(image)).decode('ascii')


def save_png(image: np.ndarray, path) -> Path:
    """Write an RGBA array to a PNG file, creating parent directories"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_png(image))
    logger.info("Saved %dx%d PNG to %s", image.shape[1], image.shape[0], path)
    return path


# ======================================================================
# QImage conversion
# ======================================================================

def array_to_qimage(image: np.ndarray) -> QImage:
    """Deep-copied QImage (Format_RGBA8888) from an RGBA array"""
    arr = np.ascontiguousarray(image, dtype=np.uint8)
    height, width = arr.shape[:2]
    return QImage(arr.tobytes(), width, height, 4 * width, QImage.Format_RGBA8888).copy()


def qimage_to_array(qimage: QImage) -> np.ndarray:
    """HxWx4 RGBA array (straight alpha) from any QImage"""
    img = qimage.convertToFormat(QImage.Format_RGBA8888)
    width, height = img.width(), img.height()
    if width == 0 or height == 0:
        return np.zeros((height, width, 4), dtype=np.uint8)
    ptr = img.constBits()
    ptr.setsize(img.sizeInBytes())
    rows = np.frombuffer(ptr, dtype=np.uint8).reshape(height, img.bytesPerLine())
    return rows[:, :width * 4].reshape(height, width, 4).copy()
